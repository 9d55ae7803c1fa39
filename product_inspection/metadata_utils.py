"""
Product page metadata extraction.

Two interchangeable extractors implement the same precedence:

    title:       <title> text -> og:title -> "Product"
    image:       og:image -> first <img src> -> None
    description: og:description -> <meta name="description"> -> None

RegexMetadataExtractor is the default: best-effort pattern matching over the
raw HTML with no entity decoding. SoupMetadataExtractor does the same job
with BeautifulSoup for pages where the patterns fall short.
"""

import re
from abc import ABC, abstractmethod
from typing import Optional

from bs4 import BeautifulSoup

from .models import PLACEHOLDER_TITLE, PageMetadata

_CONTENT = r'content\s*=\s*(?:"([^"]+)"|\'([^\']+)\')'


def _attr(name: str, value: str) -> str:
    return r'%s\s*=\s*["\']%s["\']' % (name, re.escape(value))


class MetadataExtractor(ABC):
    """Turns raw page HTML into PageMetadata."""

    @abstractmethod
    def extract(self, html: str) -> PageMetadata:
        raise NotImplementedError


class RegexMetadataExtractor(MetadataExtractor):
    """Case-insensitive pattern matching; attributes may appear in either order."""

    TITLE_PATTERN = re.compile(r'<title[^>]*>([^<]+)</title>', re.I)
    IMG_PATTERN = re.compile(r'<img[^>]*?\ssrc\s*=\s*(?:"([^"]+)"|\'([^\']+)\')', re.I)

    @staticmethod
    def _first_group(match) -> Optional[str]:
        if not match:
            return None
        for group in match.groups():
            if group:
                value = group.replace('"', '').strip()
                return value or None
        return None

    def meta_content(self, html: str, attr: str, value: str) -> Optional[str]:
        """Return the content of the first <meta attr="value" content="..."> tag."""
        key = _attr(attr, value)
        patterns = (
            key + r'[^>]*?' + _CONTENT,
            r'<meta[^>]*?' + _CONTENT + r'[^>]*?' + key,
        )
        for pattern in patterns:
            found = self._first_group(re.search(pattern, html, re.I))
            if found:
                return found
        return None

    def og(self, html: str, prop: str) -> Optional[str]:
        # Some sites publish Open Graph tags with name= instead of property=
        return (
            self.meta_content(html, 'property', prop) or
            self.meta_content(html, 'name', prop)
        )

    def extract(self, html: str) -> PageMetadata:
        if not html:
            return PageMetadata()

        title = (
            self._first_group(self.TITLE_PATTERN.search(html)) or
            self.og(html, 'og:title') or
            PLACEHOLDER_TITLE
        )
        image = (
            self.og(html, 'og:image') or
            self._first_group(self.IMG_PATTERN.search(html))
        )
        description = (
            self.og(html, 'og:description') or
            self.meta_content(html, 'name', 'description')
        )
        return PageMetadata(title=title, image=image, description=description)


class SoupMetadataExtractor(MetadataExtractor):
    """BeautifulSoup-backed extractor with the same precedence as the regex one."""

    @staticmethod
    def _content(tag) -> Optional[str]:
        if not tag:
            return None
        value = (tag.get('content') or '').strip()
        return value or None

    def extract(self, html: str) -> PageMetadata:
        if not html:
            return PageMetadata()

        soup = BeautifulSoup(html, 'html.parser')

        title_tag = soup.find('title')
        og_title = soup.find('meta', property='og:title')
        title = (
            (title_tag.get_text(strip=True) if title_tag else None) or
            self._content(og_title) or
            PLACEHOLDER_TITLE
        )

        og_image = soup.find('meta', property='og:image')
        first_img = soup.find('img', src=True)
        image = (
            self._content(og_image) or
            (first_img.get('src') if first_img else None)
        )

        og_desc = soup.find('meta', property='og:description')
        meta_desc = soup.find('meta', attrs={'name': 'description'})
        description = self._content(og_desc) or self._content(meta_desc)

        return PageMetadata(title=title, image=image, description=description)


EXTRACTORS = {
    'regex': RegexMetadataExtractor,
    'soup': SoupMetadataExtractor,
}


def get_extractor(name: str = 'regex') -> MetadataExtractor:
    """Instantiate an extractor by configuration name."""
    try:
        return EXTRACTORS[name]()
    except KeyError:
        raise ValueError(f"Unknown metadata extractor: {name}") from None
