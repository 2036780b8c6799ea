from __future__ import annotations

import logging
from typing import Any, Callable, Hashable, List, Optional

import requests

from ..errors import SourceFailure
from ..models import PaginatedCollection

logger = logging.getLogger(__name__)


def _identity(payload: Any) -> Any:
    return payload


class RestDataSource:
    """Reads and writes a JSON collection exposed at ``{base_url}/{resource}``.

    - ``GET    /{resource}/{key}``            -> one item, 404 means absent
    - ``GET    /{resource}``                  -> list of items
    - ``GET    /{resource}?offset=&limit=``   -> ``{"items": [...], "has_more": bool}`` or a list
    - ``PUT    /{resource}/{key}``            -> upsert, echoes the stored item
    - ``DELETE /{resource}/{key}`` and ``DELETE /{resource}``

    Transport errors, timeouts and non-2xx replies surface as SourceFailure.
    """

    def __init__(
        self,
        base_url: str,
        resource: str = "items",
        key_of: Optional[Callable[[Any], Hashable]] = None,
        to_value: Callable[[Any], Any] = _identity,
        to_payload: Callable[[Any], Any] = _identity,
        timeout_seconds: float = 30,
        name: Optional[str] = None,
    ) -> None:
        base = (base_url or "").rstrip("/")
        if not base:
            raise ValueError("RestDataSource needs a base_url")
        self.collection_url = f"{base}/{resource.strip('/')}"
        self.key_of = key_of
        self.to_value = to_value
        self.to_payload = to_payload
        self.timeout_seconds = timeout_seconds
        self.name = name or f"rest:{resource}"

    def _item_url(self, key: Hashable) -> str:
        return f"{self.collection_url}/{key}"

    def _failure(self, operation: str, exc: Exception) -> SourceFailure:
        return SourceFailure(self, operation, cause=exc)

    # ---- Readable ----
    def get(self, key: Hashable) -> Optional[Any]:
        try:
            resp = requests.get(self._item_url(key), timeout=self.timeout_seconds)
            if resp.status_code == 404:
                return None
            resp.raise_for_status()
            return self.to_value(resp.json())
        except (requests.RequestException, ValueError) as exc:
            raise self._failure("get", exc) from exc

    def get_all(self) -> List[Any]:
        try:
            resp = requests.get(self.collection_url, timeout=self.timeout_seconds)
            resp.raise_for_status()
            return [self.to_value(item) for item in resp.json()]
        except (requests.RequestException, ValueError, TypeError) as exc:
            raise self._failure("get_all", exc) from exc

    def get_page(self, offset: int, limit: int) -> PaginatedCollection[Any]:
        try:
            resp = requests.get(
                self.collection_url,
                params={"offset": offset, "limit": limit},
                timeout=self.timeout_seconds,
            )
            resp.raise_for_status()
            body = resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise self._failure("get_page", exc) from exc

        if isinstance(body, dict):
            raw = body.get("items") or []
            has_more = bool(body.get("has_more", body.get("hasMore", False)))
        else:
            raw = body or []
            has_more = len(raw) >= limit > 0
        return PaginatedCollection(
            items=[self.to_value(item) for item in raw],
            offset=offset,
            limit=limit,
            has_more=has_more,
        )

    # ---- Writeable ----
    def put(self, value: Any) -> Any:
        if self.key_of is None:
            raise ValueError(f"{self.name} needs key_of to write")
        try:
            resp = requests.put(
                self._item_url(self.key_of(value)),
                json=self.to_payload(value),
                timeout=self.timeout_seconds,
            )
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise self._failure("put", exc) from exc
        if resp.status_code == 204 or not resp.content:
            return value
        try:
            return self.to_value(resp.json())
        except ValueError:
            return value

    def delete(self, key: Hashable) -> None:
        try:
            resp = requests.delete(self._item_url(key), timeout=self.timeout_seconds)
            if resp.status_code != 404:
                resp.raise_for_status()
        except requests.RequestException as exc:
            raise self._failure("delete", exc) from exc

    def delete_all(self) -> None:
        try:
            resp = requests.delete(self.collection_url, timeout=self.timeout_seconds)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise self._failure("delete_all", exc) from exc
