"""Read-only PostgREST client for the transactions table."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen


# PostgREST answers 416 when a ranged read starts past the last row.
_RANGE_NOT_SATISFIABLE = 416


class StoreUnavailableError(RuntimeError):
    """Raised when the persistence backend cannot serve a request."""


@dataclass(slots=True)
class SupabaseSettings:
    url: str
    service_role_key: str


def parse_content_range_total(content_range: str | None) -> int | None:
    """Return ``N`` from a ``Content-Range: a-b/N`` or ``*/N`` header."""

    if not content_range or "/" not in content_range:
        return None
    total_text = content_range.rsplit("/", maxsplit=1)[1].strip()
    return int(total_text) if total_text.isdigit() else None


class SupabaseClient:
    def __init__(self, settings: SupabaseSettings) -> None:
        self.settings = settings

    def _build_request(self, table: str, query: Any, with_count: bool) -> Request:
        api_key = self.settings.service_role_key
        if not api_key:
            raise ValueError("Missing Supabase API key")
        return Request(
            url=f"{self.settings.url.rstrip('/')}/rest/v1/{table}?{urlencode(query, doseq=True)}",
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
                "Prefer": "count=exact" if with_count else "return=representation",
            },
            method="GET",
        )

    def get_rows(
        self,
        *,
        table: str,
        query: dict[str, str | int] | list[tuple[str, str | int]],
        with_count: bool,
    ) -> tuple[list[dict[str, Any]], int | None]:
        """Fetch rows, plus the exact match count when ``with_count`` is set.

        A read whose offset lies past the end yields no rows, not an error.
        """

        request = self._build_request(table, query, with_count)
        try:
            with urlopen(request) as response:  # noqa: S310 - URL comes from trusted env config
                rows = json.loads(response.read().decode("utf-8"))
                total = parse_content_range_total(response.headers.get("content-range")) if with_count else None
                return rows, total
        except HTTPError as exc:
            if exc.code == _RANGE_NOT_SATISFIABLE:
                headers = exc.headers
                content_range = headers.get("content-range") if headers is not None else None
                return [], parse_content_range_total(content_range) if with_count else None
            body = exc.read().decode("utf-8", errors="replace")[:500]
            raise StoreUnavailableError(f"Supabase request failed with status {exc.code}: {body}") from exc
        except URLError as exc:
            raise StoreUnavailableError(f"Supabase is unreachable: {exc.reason}") from exc
