"""
Cache storage for analysis results.

The cache is the product_inspections table: one row per url, replaced on
every re-analysis. Expiry is logical (cached_until); nothing here deletes.
"""

from abc import ABC, abstractmethod
from typing import Optional

from supabase import Client, create_client

from .models import AnalysisRecord

TABLE_NAME = 'product_inspections'


class InspectionStore(ABC):
    @abstractmethod
    def get(self, url: str) -> Optional[AnalysisRecord]:
        """Return the row for exactly this url, fresh or not, or None."""

    @abstractmethod
    def upsert(self, record: AnalysisRecord, extended: bool = False) -> None:
        """Insert or replace the row keyed by record.url."""


class SupabaseInspectionStore(InspectionStore):
    def __init__(self, client: Client, table: str = TABLE_NAME):
        self.client = client
        self.table = table

    @classmethod
    def from_settings(cls, settings) -> 'SupabaseInspectionStore':
        url = str(settings.supabase_url)
        if 'your-project.supabase.co' in url:
            raise RuntimeError(
                "SUPABASE_URL is still the placeholder (your-project). "
                "Fill in your real project URL and service role key."
            )
        return cls(create_client(url, settings.supabase_key))

    def get(self, url: str) -> Optional[AnalysisRecord]:
        response = (
            self.client.table(self.table)
            .select('*')
            .eq('url', url)
            .maybe_single()
            .execute()
        )
        # maybe_single() yields no response object at all when nothing matched
        if response is None or not response.data:
            return None
        return AnalysisRecord.from_row(response.data)

    def upsert(self, record: AnalysisRecord, extended: bool = False) -> None:
        (
            self.client.table(self.table)
            .upsert(record.to_row(extended=extended), on_conflict='url')
            .execute()
        )
