"""
Response schema variants.

The analyzer runs one pipeline for both product-inspection flavours; the
differences (list caps, extra fields, fetch failure policy, fallback
payload) live here.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple

# Statuses for which the extended schema retries the page through the scraper
SCRAPE_FALLBACK_STATUSES = (403, 429, 529)


@dataclass(frozen=True)
class ResponseSchema:
    name: str
    version: str
    pros_cap: int
    cons_cap: int
    extended: bool
    max_tokens: int
    category_scores_cap: int = 4
    fallback: Dict = field(default_factory=dict)
    scrape_fallback_statuses: Tuple[int, ...] = ()

    @property
    def fails_on_fetch_error(self) -> bool:
        """Standard schema aborts the request when the page can't be fetched."""
        return not self.extended


STANDARD_SCHEMA = ResponseSchema(
    name='standard',
    version='v1',
    pros_cap=3,
    cons_cap=3,
    extended=False,
    max_tokens=500,
    fallback={
        'score': 75,
        'short_review': 'Product analysis completed. Please check product details for more information.',
        'pros': ['Available for purchase', 'Listed on reputable platform', 'Product information provided'],
        'cons': ['Limited analysis data', 'Manual review recommended', 'Details may vary'],
        'sentiment_score': 0.5,
    },
)

EXTENDED_SCHEMA = ResponseSchema(
    name='extended',
    version='v2',
    pros_cap=6,
    cons_cap=2,
    extended=True,
    max_tokens=1500,
    fallback={
        'score': 75,
        'short_review': 'Product analysis completed. Please check product details for more information.',
        'pros': ['Available for purchase', 'Listed on reputable platform', 'Product information provided'],
        'cons': ['Limited analysis data', 'Manual review recommended'],
        'sentiment_score': 0.0,
        'category': 'General',
        'category_scores': [],
        'stores': [],
        'reviews_summary': 'Not enough review data was available to summarize.',
        'sources_count': 0,
    },
    scrape_fallback_statuses=SCRAPE_FALLBACK_STATUSES,
)

SCHEMAS = {
    STANDARD_SCHEMA.name: STANDARD_SCHEMA,
    EXTENDED_SCHEMA.name: EXTENDED_SCHEMA,
}


def get_schema(name: str) -> ResponseSchema:
    """Look up a schema by name ('standard' or 'extended')."""
    try:
        return SCHEMAS[name.strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown analysis schema: {name}") from None
