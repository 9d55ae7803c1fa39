"""
Shared pytest fixtures for the product inspector tests.
"""

import pytest
import sys
import importlib.util
from datetime import datetime, timezone
from pathlib import Path

from product_inspection.analyzer import ProductAnalyzer
from product_inspection.fetcher import ScrapeFallback
from product_inspection.llm_gateway import ChatGateway
from product_inspection.schemas import STANDARD_SCHEMA
from product_inspection.store import InspectionStore

# Project root for finding Cloud Function modules
PROJECT_ROOT = Path(__file__).parent.parent

GATEWAY_URL = 'https://ai.gateway.test/v1/chat/completions'
SCRAPER_URL = 'https://scraper.test/v1/scrape'
NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def _load_module_from_path(module_name: str, file_path: Path):
    """Load a module from a specific file path."""
    spec = importlib.util.spec_from_file_location(module_name, file_path)
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    spec.loader.exec_module(module)
    return module


# Load the Cloud Function module with a unique name at module load time
_analyze_product_module = _load_module_from_path(
    'analyze_product_main',
    PROJECT_ROOT / 'analyze-product' / 'main.py'
)


class FakeStore(InspectionStore):
    """In-memory stand-in for the product_inspections table."""

    def __init__(self, records=None, fail_get=False, fail_upsert=False):
        self.records = dict(records or {})
        self.fail_get = fail_get
        self.fail_upsert = fail_upsert
        self.get_calls = []
        self.upserts = []

    def get(self, url):
        self.get_calls.append(url)
        if self.fail_get:
            raise ConnectionError('database unavailable')
        return self.records.get(url)

    def upsert(self, record, extended=False):
        self.upserts.append((record, extended))
        if self.fail_upsert:
            raise ConnectionError('database unavailable')
        self.records[record.url] = record


# ============================================================================
# Cloud Function Fixtures
# ============================================================================

@pytest.fixture
def analyze_product_module():
    """Returns the loaded analyze-product main module."""
    return _analyze_product_module


@pytest.fixture
def analyze_product():
    """Returns main entry point from analyze-product."""
    return _analyze_product_module.analyze_product


@pytest.fixture
def mock_flask_request():
    """Factory for creating mock Flask request objects."""
    class MockRequest:
        def __init__(self, json_data=None, method='POST'):
            self._json = json_data
            self.method = method
            self.data = b''

        def get_json(self, force=False, silent=False):
            return self._json

    return MockRequest


# ============================================================================
# Pipeline Fixtures
# ============================================================================

@pytest.fixture
def now():
    return NOW


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def gateway():
    return ChatGateway('test-gateway-key', GATEWAY_URL, 'test-model')


@pytest.fixture
def scraper():
    return ScrapeFallback('test-scrape-key', SCRAPER_URL)


@pytest.fixture
def make_analyzer(fake_store, gateway):
    """Factory for analyzers wired to the fake store and a fixed clock."""
    def _make(schema=STANDARD_SCHEMA, store=None, **kwargs):
        return ProductAnalyzer(
            store=fake_store if store is None else store,
            gateway=gateway,
            schema=schema,
            clock=lambda: NOW,
            **kwargs
        )

    return _make


@pytest.fixture
def chat_reply():
    """Builds a chat-completion response body around the given content."""
    def _reply(content):
        return {
            'id': 'chatcmpl-test',
            'choices': [
                {'index': 0, 'message': {'role': 'assistant', 'content': content}, 'finish_reason': 'stop'}
            ],
        }

    return _reply


@pytest.fixture
def widget_html():
    """A minimal product page with a title and Open Graph image."""
    return """
    <!DOCTYPE html>
    <html>
    <head>
        <title>Widget</title>
        <meta property="og:image" content="https://example.com/widget.jpg">
        <meta name="description" content="A very useful widget">
    </head>
    <body>
        <h1>Widget</h1>
        <img src="https://example.com/thumb.jpg">
    </body>
    </html>
    """


@pytest.fixture
def sample_product_html():
    """A product page carrying a full set of Open Graph tags."""
    return """
    <!DOCTYPE html>
    <html>
    <head>
        <meta property="og:title" content="Widget Pro 2000">
        <meta property="og:image" content="https://shop.example.com/images/widget-pro.jpg">
        <meta property="og:description" content="The best widget money can buy">
        <meta name="description" content="Plain description">
    </head>
    <body>
        <div class="product">
            <img src="https://shop.example.com/images/logo.png">
            <span class="price">$29.99</span>
        </div>
    </body>
    </html>
    """


@pytest.fixture
def store_factory():
    """Returns the FakeStore class for tests that need a pre-seeded or failing store."""
    return FakeStore
