from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence, Union

Filter = Mapping[str, Any]
SortSpec = Union[Mapping[str, int], Sequence[tuple]]


class DocumentStore(Protocol):
    """Generic CRUD interface over named document collections.

    Note: services depend on this interface, never on a concrete driver.
    Every method returns documents in app format (no `_id`, string `id`).
    """

    def find(
        self,
        collection: str,
        filter: Optional[Filter] = None,
        *,
        sort: Optional[SortSpec] = None,
        limit: Optional[int] = None,
        skip: Optional[int] = None,
    ) -> list[dict]:
        raise NotImplementedError

    def find_one(self, collection: str, filter: Filter) -> Optional[dict]:
        raise NotImplementedError

    def find_by_id(self, collection: str, doc_id: str) -> Optional[dict]:
        raise NotImplementedError

    def insert_one(self, collection: str, document: Mapping[str, Any]) -> dict:
        raise NotImplementedError

    def insert_many(self, collection: str, documents: Sequence[Mapping[str, Any]]) -> list[dict]:
        raise NotImplementedError

    def update_one(self, collection: str, filter: Filter, fields: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def update_by_id(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def delete_one(self, collection: str, filter: Filter) -> bool:
        raise NotImplementedError

    def delete_by_id(self, collection: str, doc_id: str) -> bool:
        raise NotImplementedError

    def delete_many(self, collection: str, filter: Filter) -> int:
        raise NotImplementedError

    def count(self, collection: str, filter: Optional[Filter] = None) -> int:
        raise NotImplementedError

    def upsert(self, collection: str, filter: Filter, fields: Mapping[str, Any]) -> dict:
        raise NotImplementedError

    def ping(self) -> bool:
        raise NotImplementedError
