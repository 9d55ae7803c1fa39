"""
Product Analyzer Cloud Function

Scores a product page with an LLM and caches the result for 24 hours.

Responsibilities:
- Validate the submitted product URL
- Serve fresh cached analyses from product_inspections
- Fetch the product page and extract title / image / description
- Ask the AI gateway for score, review, pros/cons and sentiment
- Upsert the normalized result into the cache

Does NOT:
- Retry any external call
- Render anything (the web client owns presentation)
- Manage the product_inspections schema
"""

import json
from functools import lru_cache

import functions_framework

from product_inspection import AnalysisError, ProductAnalyzer, get_settings, validate_url
from product_inspection.logger import get_logger, setup_logging

logger = get_logger('analyze_product')

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': 'authorization, x-client-info, apikey, content-type',
}

PREFLIGHT_HEADERS = {
    **CORS_HEADERS,
    'Access-Control-Allow-Methods': 'POST, OPTIONS',
    'Access-Control-Max-Age': '3600',
}

JSON_HEADERS = {**CORS_HEADERS, 'Content-Type': 'application/json'}


@lru_cache()
def get_analyzer() -> ProductAnalyzer:
    """Build the analyzer once per instance; fails fast on missing configuration."""
    settings = get_settings()
    setup_logging(settings.log_level)
    return ProductAnalyzer.from_settings(settings)


@functions_framework.http
def analyze_product(request):
    """
    Main Cloud Function entry point.

    Expected JSON input:
    {
        "url": "https://example.com/product/123"
    }

    Returns {"url", "meta", "ai"} on success, {"error": "..."} otherwise.
    """
    # Handle CORS
    if request.method == 'OPTIONS':
        return ('', 204, PREFLIGHT_HEADERS)

    try:
        request_json = request.get_json(silent=True)

        url = request_json.get('url') if isinstance(request_json, dict) else None

        # Reject bad input before touching configuration or the network
        validate_url(url)

        result = get_analyzer().analyze(url)
        return (json.dumps(result), 200, JSON_HEADERS)

    except AnalysisError as e:
        logger.warning('Analysis rejected (%s): %s', e.status_code, e.message)
        return (json.dumps(e.to_dict()), e.status_code, JSON_HEADERS)

    except Exception as e:
        logger.exception('Analysis error')
        return (json.dumps({
            'error': f'Internal server error: {str(e) or "Unknown error"}'
        }), 500, JSON_HEADERS)
