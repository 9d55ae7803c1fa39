"""
Product page retrieval.

One GET against the product page with browser-like headers, plus an
optional single POST to a scraping API for pages that block plain clients.
Nothing here retries.
"""

from typing import NamedTuple, Optional

import requests

from .logger import get_logger
from .models import PLACEHOLDER_TITLE, PageMetadata

logger = get_logger(__name__)

USER_AGENT = 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'

BROWSER_HEADERS = {
    'User-Agent': USER_AGENT,
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.5',
    'Accept-Encoding': 'gzip, deflate, br',
    'Connection': 'keep-alive',
    'Upgrade-Insecure-Requests': '1',
    'Sec-Fetch-Dest': 'document',
    'Sec-Fetch-Mode': 'navigate',
    'Sec-Fetch-Site': 'none',
    'Cache-Control': 'max-age=0',
}

FETCH_FAILURE_PREFIX = 'Unable to access this product page. '


class PageFetch(NamedTuple):
    html: Optional[str]
    status: Optional[int]
    error: Optional[str]

    @property
    def ok(self) -> bool:
        return self.html is not None


def fetch_product_page(url: str, session: requests.Session = None, timeout: float = 30) -> PageFetch:
    """
    Fetch the product page.

    Returns:
        PageFetch(html, status, error). html is None on any failure; status is
        None when no HTTP response arrived (timeout, connection error).
    """
    http = session or requests
    try:
        response = http.get(url, headers=BROWSER_HEADERS, timeout=timeout, allow_redirects=True)
    except requests.exceptions.Timeout:
        return PageFetch(None, None, 'Request timed out')
    except requests.exceptions.RequestException as e:
        return PageFetch(None, None, f'Request failed: {str(e)}')

    if not response.ok:
        return PageFetch(None, response.status_code, f'HTTP error: {response.status_code} {response.reason or ""}'.strip())

    return PageFetch(response.text, response.status_code, None)


def describe_fetch_failure(status: Optional[int]) -> str:
    """User-facing explanation for a page that could not be fetched."""
    if status in (429, 529):
        hint = 'The website is blocking automated requests. Try a different product or wait a few minutes.'
    elif status == 403:
        hint = 'Access to this page is restricted.'
    elif status == 404:
        hint = 'Product page not found. Please check the URL.'
    else:
        hint = 'Please try again or use a different product URL.'
    return FETCH_FAILURE_PREFIX + hint


class ScrapeFallback:
    """
    Client for a Firecrawl-style scraping API.

    Used only when the direct fetch was blocked; returns whatever page
    metadata the service reports, or None when it can't help.
    """

    def __init__(self, api_key: str, endpoint: str, session: requests.Session = None, timeout: float = 60):
        self.api_key = api_key
        self.endpoint = endpoint
        self.http = session or requests
        self.timeout = timeout

    def scrape_metadata(self, url: str) -> Optional[PageMetadata]:
        try:
            response = self.http.post(
                self.endpoint,
                headers={
                    'Authorization': f'Bearer {self.api_key}',
                    'Content-Type': 'application/json',
                },
                json={
                    'url': url,
                    'formats': ['html'],
                    'onlyMainContent': False,
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.HTTPError as e:
            logger.warning('Scrape fallback failed for %s: HTTP %s', url, e.response.status_code)
            return None
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.warning('Scrape fallback failed for %s: %s', url, e)
            return None

        data = payload.get('data') if isinstance(payload, dict) else None
        metadata = data.get('metadata') if isinstance(data, dict) else None
        if not isinstance(metadata, dict):
            logger.warning('Scrape fallback for %s returned no metadata', url)
            return None

        image = metadata.get('ogImage')
        if isinstance(image, list):
            image = image[0] if image else None

        return PageMetadata(
            title=_text(metadata.get('title')) or _text(metadata.get('ogTitle')) or PLACEHOLDER_TITLE,
            image=_text(image),
            description=_text(metadata.get('description')) or _text(metadata.get('ogDescription')),
        )


def _text(value) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None
