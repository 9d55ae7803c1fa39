"""Shared library for the product inspector Cloud Function."""

from .analyzer import (
    CACHE_TTL,
    ProductAnalyzer,
    validate_url,
)

from .analysis_utils import (
    build_prompt,
    normalize_analysis,
    normalize_score,
    normalize_sentiment,
    parse_analysis,
    strip_code_fences,
)

from .config import Settings, get_settings, load_settings

from .errors import (
    AnalysisError,
    AnalysisFailedError,
    InvalidUrlError,
    OriginFetchError,
    QuotaExhaustedError,
    RateLimitError,
)

from .metadata_utils import (
    MetadataExtractor,
    RegexMetadataExtractor,
    SoupMetadataExtractor,
)

from .models import AnalysisRecord, PageMetadata, ParsedAnalysis

from .schemas import EXTENDED_SCHEMA, STANDARD_SCHEMA, ResponseSchema, get_schema

__all__ = [
    # Pipeline
    'CACHE_TTL',
    'ProductAnalyzer',
    'validate_url',
    # Analysis utilities
    'build_prompt',
    'normalize_analysis',
    'normalize_score',
    'normalize_sentiment',
    'parse_analysis',
    'strip_code_fences',
    # Configuration
    'Settings',
    'get_settings',
    'load_settings',
    # Errors
    'AnalysisError',
    'AnalysisFailedError',
    'InvalidUrlError',
    'OriginFetchError',
    'QuotaExhaustedError',
    'RateLimitError',
    # Metadata extraction
    'MetadataExtractor',
    'RegexMetadataExtractor',
    'SoupMetadataExtractor',
    # Records and schemas
    'AnalysisRecord',
    'PageMetadata',
    'ParsedAnalysis',
    'EXTENDED_SCHEMA',
    'STANDARD_SCHEMA',
    'ResponseSchema',
    'get_schema',
]
