"""
Product analysis pipeline.

    validate url -> cache lookup -> (fresh hit: return) -> fetch page ->
    extract metadata (or scrape fallback) -> prompt -> LLM -> parse
    (or fixed fallback) -> normalize -> cache upsert -> response

Everything runs sequentially inside one request; the only short-circuit is
a fresh cache row. Concurrent requests for the same url may both miss and
both upsert, in which case the last write wins.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional, Tuple
from urllib.parse import urlparse

from .analysis_utils import build_messages, extract_message_content, normalize_analysis, parse_analysis
from .errors import InvalidUrlError, OriginFetchError
from .fetcher import ScrapeFallback, describe_fetch_failure, fetch_product_page
from .llm_gateway import ChatGateway
from .logger import get_logger
from .metadata_utils import MetadataExtractor, RegexMetadataExtractor, get_extractor
from .models import AnalysisRecord, PageMetadata
from .schemas import STANDARD_SCHEMA, ResponseSchema, get_schema
from .store import InspectionStore, SupabaseInspectionStore

logger = get_logger(__name__)

CACHE_TTL = timedelta(hours=24)

MISSING_URL_MESSAGE = 'Valid product URL is required'
INVALID_URL_MESSAGE = 'Invalid URL format'

# Registered names (IDN letters allowed) or a bracketed IPv6 literal
_HOSTNAME_RE = re.compile(r'(?:[\w-]+(?:\.[\w-]+)*\.?|[0-9a-f:.]+)')


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_url(url) -> Tuple[str, str]:
    """
    Check the submitted url and derive its domain.

    Returns:
        Tuple of (url, domain) where domain is the URL's hostname.

    Raises:
        InvalidUrlError: missing, non-string or unparseable url
    """
    if not url or not isinstance(url, str):
        raise InvalidUrlError(MISSING_URL_MESSAGE)

    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
        # Raises ValueError for a non-numeric or out-of-range port
        parsed.port
    except ValueError:
        raise InvalidUrlError(INVALID_URL_MESSAGE) from None

    if parsed.scheme.lower() not in ('http', 'https') or not hostname:
        raise InvalidUrlError(INVALID_URL_MESSAGE)
    if not _HOSTNAME_RE.fullmatch(hostname):
        raise InvalidUrlError(INVALID_URL_MESSAGE)

    return url, hostname


class ProductAnalyzer:
    """
    Runs the analysis pipeline for one url at a time.

    All collaborators are passed in; nothing is read from the environment
    after construction. Use from_settings() to wire the production ones.
    """

    def __init__(self,
                 store: InspectionStore,
                 gateway: ChatGateway,
                 extractor: MetadataExtractor = None,
                 schema: ResponseSchema = STANDARD_SCHEMA,
                 scraper: Optional[ScrapeFallback] = None,
                 fetch_timeout: float = 30,
                 clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.gateway = gateway
        self.extractor = extractor or RegexMetadataExtractor()
        self.schema = schema
        self.scraper = scraper
        self.fetch_timeout = fetch_timeout
        self.clock = clock

    @classmethod
    def from_settings(cls, settings) -> 'ProductAnalyzer':
        scraper = None
        if settings.scrape_fallback_enabled:
            scraper = ScrapeFallback(settings.firecrawl_api_key, settings.firecrawl_url)
        return cls(
            store=SupabaseInspectionStore.from_settings(settings),
            gateway=ChatGateway(
                settings.ai_gateway_api_key,
                settings.ai_gateway_url,
                settings.ai_model,
            ),
            extractor=get_extractor(settings.metadata_extractor),
            schema=get_schema(settings.analysis_schema),
            scraper=scraper,
            fetch_timeout=settings.fetch_timeout_seconds,
        )

    def analyze(self, url) -> Dict:
        """
        Analyze one product url.

        Returns:
            {'url': ..., 'meta': {...}, 'ai': {...}}

        Raises:
            AnalysisError: with the HTTP status the caller should answer with
        """
        url, domain = validate_url(url)
        logger.info('Analyzing product: %s', url)

        cached = self._lookup(url)
        if cached and cached.is_fresh(self.clock()):
            logger.info('Returning cached result for %s', url)
            return cached.to_response(extended=self.schema.extended)

        fetched_at = self.clock()
        metadata = self._page_metadata(url)

        logger.info('Calling AI for analysis of %s', url)
        payload = self.gateway.complete(
            build_messages(url, domain, metadata, self.schema),
            max_tokens=self.schema.max_tokens,
        )
        analysis, fallback_reason = parse_analysis(extract_message_content(payload), self.schema)
        if fallback_reason:
            logger.warning('Failed to parse AI response for %s (%s); using fallback analysis', url, fallback_reason)

        record = AnalysisRecord(
            url=url,
            domain=domain,
            fetched_at=fetched_at,
            title=metadata.title,
            image=metadata.image,
            description=metadata.description,
            cached_until=fetched_at + CACHE_TTL,
            analyser_version=self.schema.version,
            **normalize_analysis(analysis, self.schema),
        )
        self._save(record)

        return record.to_response(extended=self.schema.extended)

    def _lookup(self, url: str) -> Optional[AnalysisRecord]:
        try:
            return self.store.get(url)
        except Exception as e:
            # Treat an unreadable cache as a miss
            logger.error('Cache lookup error for %s: %s', url, e)
            return None

    def _page_metadata(self, url: str) -> PageMetadata:
        page = fetch_product_page(url, timeout=self.fetch_timeout)
        if page.ok:
            return self.extractor.extract(page.html)

        logger.error('Failed to fetch page %s: %s', url, page.error)
        if self.schema.fails_on_fetch_error:
            raise OriginFetchError(describe_fetch_failure(page.status))

        if self.scraper and page.status in self.schema.scrape_fallback_statuses:
            logger.info('Trying scrape fallback for %s', url)
            scraped = self.scraper.scrape_metadata(url)
            if scraped:
                return scraped

        return PageMetadata()

    def _save(self, record: AnalysisRecord):
        try:
            self.store.upsert(record, extended=self.schema.extended)
        except Exception as e:
            # Cache writes are advisory; the caller still gets the result
            logger.error('Failed to cache result for %s: %s', record.url, e)
        else:
            logger.info('Result cached for %s until %s', record.url, record.cached_until.isoformat())
