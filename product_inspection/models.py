"""
Typed records for the analysis pipeline.

Anything that crosses a service boundary (model output, scraper payloads,
cache rows) is validated into one of these models before the pipeline
touches it.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

PLACEHOLDER_TITLE = 'Product'

EXTENDED_FIELDS = ('category', 'category_scores', 'stores', 'reviews_summary', 'sources_count')


def _valid_items(value, model) -> list:
    """Keep the list entries that validate as `model`, drop the rest."""
    if not isinstance(value, list):
        return []
    items = []
    for item in value:
        try:
            items.append(model.model_validate(item))
        except ValidationError:
            continue
    return items


class PageMetadata(BaseModel):
    title: str = PLACEHOLDER_TITLE
    image: Optional[str] = None
    description: Optional[str] = None


class CategoryScore(BaseModel):
    label: str
    score: float = Field(allow_inf_nan=False)


class StoreListing(BaseModel):
    name: str
    url: str
    price: Optional[Union[float, str]] = None

    @field_validator('name', 'url')
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError('must not be blank')
        return value.strip()


class ParsedAnalysis(BaseModel):
    """Model output after JSON decoding and shape validation, before clamping."""

    score: float = Field(allow_inf_nan=False)
    short_review: str = ''
    pros: List[str] = Field(default_factory=list)
    cons: List[str] = Field(default_factory=list)
    sentiment_score: float = Field(default=0.0, allow_inf_nan=False)

    # Extended schema only
    category: Optional[str] = None
    category_scores: List[CategoryScore] = Field(default_factory=list)
    stores: List[StoreListing] = Field(default_factory=list)
    reviews_summary: Optional[str] = None
    sources_count: int = 0

    @field_validator('short_review', mode='before')
    @classmethod
    def _review_text(cls, value):
        return '' if value is None else str(value)

    @field_validator('category', 'reviews_summary', mode='before')
    @classmethod
    def _optional_text(cls, value):
        return None if value is None else str(value)

    @field_validator('pros', 'cons', mode='before')
    @classmethod
    def _text_list(cls, value):
        if not isinstance(value, list):
            return []
        return [str(item) for item in value if item is not None]

    @field_validator('sentiment_score', mode='before')
    @classmethod
    def _missing_sentiment(cls, value):
        return 0.0 if value is None else value

    @field_validator('category_scores', mode='before')
    @classmethod
    def _category_scores(cls, value):
        return _valid_items(value, CategoryScore)

    @field_validator('stores', mode='before')
    @classmethod
    def _stores(cls, value):
        return _valid_items(value, StoreListing)

    @field_validator('sources_count', mode='before')
    @classmethod
    def _sources_count(cls, value):
        try:
            return max(0, int(float(value)))
        except (TypeError, ValueError, OverflowError):
            return 0


class AnalysisRecord(BaseModel):
    """One row of the product_inspections cache table."""

    url: str
    domain: str
    fetched_at: datetime
    title: Optional[str] = None
    image: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    currency: Optional[str] = None
    rating: Optional[float] = None
    ai_score: int
    sentiment_score: float = 0.0
    short_review: str = ''
    pros: List[str] = Field(default_factory=list)
    cons: List[str] = Field(default_factory=list)
    cached_until: datetime
    analyser_version: str = 'v1'

    category: Optional[str] = None
    category_scores: List[CategoryScore] = Field(default_factory=list)
    stores: List[StoreListing] = Field(default_factory=list)
    reviews_summary: Optional[str] = None
    sources_count: Optional[int] = None

    @field_validator('price', 'rating', mode='before')
    @classmethod
    def _decimal_or_none(cls, value):
        # Postgres DECIMAL columns come back as strings
        if value is None or value == '':
            return None
        return float(value)

    @field_validator('sentiment_score', mode='before')
    @classmethod
    def _decimal_sentiment(cls, value):
        if value is None or value == '':
            return 0.0
        return float(value)

    @field_validator('pros', 'cons', 'category_scores', 'stores', mode='before')
    @classmethod
    def _null_list(cls, value):
        return [] if value is None else value

    @field_validator('short_review', mode='before')
    @classmethod
    def _null_review(cls, value):
        return '' if value is None else value

    @field_validator('fetched_at', 'cached_until')
    @classmethod
    def _aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @classmethod
    def from_row(cls, row: Dict) -> 'AnalysisRecord':
        return cls.model_validate(row)

    def is_fresh(self, now: datetime) -> bool:
        return now < self.cached_until

    def to_row(self, extended: bool = False) -> Dict:
        """Serialize for an upsert; extended columns only when that schema is active."""
        exclude = None if extended else set(EXTENDED_FIELDS)
        return self.model_dump(mode='json', exclude=exclude)

    def to_response(self, extended: bool = False) -> Dict:
        """Reshape into the `{url, meta, ai}` contract returned to callers."""
        ai = {
            'score': self.ai_score,
            'short_review': self.short_review,
            'pros': list(self.pros),
            'cons': list(self.cons),
            'sentiment_score': self.sentiment_score,
        }
        if extended:
            ai.update({
                'category': self.category,
                'category_scores': [s.model_dump() for s in self.category_scores],
                'stores': [s.model_dump() for s in self.stores],
                'reviews_summary': self.reviews_summary,
                'sources_count': self.sources_count or 0,
            })
        return {
            'url': self.url,
            'meta': {
                'title': self.title,
                'image': self.image,
                'description': self.description,
                'price': self.price,
                'currency': self.currency,
                'rating': self.rating,
            },
            'ai': ai,
        }
