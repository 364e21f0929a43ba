"""Map provider seam.

Rendering and tile fetching belong to the provider; this module only turns a
record into something the provider can open. The key is read from settings
and handed in at construction, never stored in source.
"""
from __future__ import annotations

from typing import Protocol
from urllib.parse import urlencode

from pydantic import SecretStr

from .models import Record
from .settings import Settings, require_map_api_key


class MapProvider(Protocol):
    name: str

    def link_for(self, record: Record) -> str: ...


class SearchLinkProvider:
    """Builds a provider search URL for a record's address.

    The public search link needs no key; the key is kept for provider calls
    that do (embedding, static images) and is never written into the link.
    """

    name = "maps-search"
    base_url = "https://www.google.com/maps/search/"

    def __init__(self, api_key: SecretStr):
        self._api_key = api_key

    @property
    def api_key(self) -> SecretStr:
        return self._api_key

    def link_for(self, record: Record) -> str:
        query = ", ".join(part for part in (record.name, record.address) if part)
        return f"{self.base_url}?{urlencode({'api': 1, 'query': query})}"


def provider_from_settings(settings: Settings) -> MapProvider:
    """Fail with ConfigMissing when the key is absent."""
    return SearchLinkProvider(require_map_api_key(settings))
