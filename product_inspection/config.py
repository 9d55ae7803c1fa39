"""
Runtime configuration for the product analyzer.

Values come from the process environment (optionally seeded from a .env
file). Required keys are checked once at startup so a misconfigured
deployment fails before it serves a request.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, HttpUrl, ValidationError, field_validator

DEFAULT_AI_GATEWAY_URL = 'https://ai.gateway.lovable.dev/v1/chat/completions'
DEFAULT_AI_MODEL = 'google/gemini-2.5-flash'
DEFAULT_FIRECRAWL_URL = 'https://api.firecrawl.dev/v1/scrape'


class Settings(BaseModel):
    supabase_url: HttpUrl = Field(alias='SUPABASE_URL')
    supabase_key: str = Field(alias='SUPABASE_SERVICE_ROLE_KEY')
    ai_gateway_api_key: str = Field(alias='AI_GATEWAY_API_KEY')
    ai_gateway_url: str = Field(default=DEFAULT_AI_GATEWAY_URL, alias='AI_GATEWAY_URL')
    ai_model: str = Field(default=DEFAULT_AI_MODEL, alias='AI_MODEL')
    firecrawl_api_key: Optional[str] = Field(default=None, alias='FIRECRAWL_API_KEY')
    firecrawl_url: str = Field(default=DEFAULT_FIRECRAWL_URL, alias='FIRECRAWL_URL')
    analysis_schema: str = Field(default='standard', alias='ANALYSIS_SCHEMA')
    metadata_extractor: str = Field(default='regex', alias='METADATA_EXTRACTOR')
    fetch_timeout_seconds: float = Field(default=30, alias='FETCH_TIMEOUT_SECONDS')
    log_level: str = Field(default='INFO', alias='LOG_LEVEL')

    model_config = {'populate_by_name': True}

    @field_validator('analysis_schema', 'metadata_extractor')
    @classmethod
    def _lowercase(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator('analysis_schema')
    @classmethod
    def _known_schema(cls, value: str) -> str:
        if value not in ('standard', 'extended'):
            raise ValueError(f"unknown analysis schema '{value}'")
        return value

    @field_validator('metadata_extractor')
    @classmethod
    def _known_extractor(cls, value: str) -> str:
        if value not in ('regex', 'soup'):
            raise ValueError(f"unknown metadata extractor '{value}'")
        return value

    @field_validator('log_level')
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        value = value.strip().upper()
        if value not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f"unknown log level '{value}'")
        return value

    @field_validator('firecrawl_api_key')
    @classmethod
    def _blank_is_none(cls, value: Optional[str]) -> Optional[str]:
        # An empty FIRECRAWL_API_KEY= line in .env means "not configured"
        return value or None

    @property
    def scrape_fallback_enabled(self) -> bool:
        return bool(self.firecrawl_api_key)


def _load_dotenv():
    # Prefer the repo root .env, otherwise let python-dotenv search upwards.
    root_env = Path(__file__).resolve().parents[1] / '.env'
    if root_env.exists():
        load_dotenv(root_env)
    else:
        load_dotenv()


def load_settings(environ: dict) -> Settings:
    """
    Build Settings from a mapping of environment variables.

    Raises:
        RuntimeError: naming every missing required variable, or wrapping
            any other validation problem.
    """
    try:
        return Settings(**environ)
    except ValidationError as exc:
        missing = [e['loc'][0] for e in exc.errors() if e['type'] == 'missing']
        if missing:
            detail = f"Missing required environment variables: {', '.join(missing)}"
        else:
            detail = f"Invalid configuration: {exc}"
        raise RuntimeError(detail) from exc


@lru_cache()
def get_settings() -> Settings:
    _load_dotenv()
    return load_settings(dict(os.environ))
