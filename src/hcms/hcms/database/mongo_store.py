from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from bson import ObjectId
from pymongo import ReturnDocument

from .connection import DatabaseConnection
from .documents import id_filter, normalize_sort, prepare_insert, prepare_update, to_app_format
from .store import DocumentStore, Filter, SortSpec


class MongoDocumentStore(DocumentStore):
    def __init__(self, conn: DatabaseConnection):
        self._conn = conn

    def _collection(self, name: str):
        return self._conn.get_database()[name]

    def find(
        self,
        collection: str,
        filter: Optional[Filter] = None,
        *,
        sort: Optional[SortSpec] = None,
        limit: Optional[int] = None,
        skip: Optional[int] = None,
    ) -> list[dict]:
        cursor = self._collection(collection).find(dict(filter or {}))
        sort_pairs = normalize_sort(sort)
        if sort_pairs:
            cursor = cursor.sort(sort_pairs)
        if skip:
            cursor = cursor.skip(int(skip))
        if limit:
            cursor = cursor.limit(int(limit))
        return [to_app_format(doc) for doc in cursor]

    def find_one(self, collection: str, filter: Filter) -> Optional[dict]:
        return to_app_format(self._collection(collection).find_one(dict(filter)))

    def find_by_id(self, collection: str, doc_id: str) -> Optional[dict]:
        return self.find_one(collection, id_filter(doc_id))

    def insert_one(self, collection: str, document: Mapping[str, Any]) -> dict:
        doc = prepare_insert(document)
        self._collection(collection).insert_one(doc)
        return to_app_format(doc)

    def insert_many(self, collection: str, documents: Sequence[Mapping[str, Any]]) -> list[dict]:
        docs = [prepare_insert(d) for d in documents]
        if not docs:
            return []
        self._collection(collection).insert_many(docs)
        return [to_app_format(d) for d in docs]

    def update_one(self, collection: str, filter: Filter, fields: Mapping[str, Any]) -> bool:
        result = self._collection(collection).update_one(dict(filter), {"$set": prepare_update(fields)})
        return result.matched_count > 0

    def update_by_id(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> bool:
        return self.update_one(collection, id_filter(doc_id), fields)

    def delete_one(self, collection: str, filter: Filter) -> bool:
        return self._collection(collection).delete_one(dict(filter)).deleted_count > 0

    def delete_by_id(self, collection: str, doc_id: str) -> bool:
        return self.delete_one(collection, id_filter(doc_id))

    def delete_many(self, collection: str, filter: Filter) -> int:
        return int(self._collection(collection).delete_many(dict(filter)).deleted_count)

    def count(self, collection: str, filter: Optional[Filter] = None) -> int:
        return int(self._collection(collection).count_documents(dict(filter or {})))

    def upsert(self, collection: str, filter: Filter, fields: Mapping[str, Any]) -> dict:
        to_set = prepare_update(fields)
        oid = ObjectId()
        on_insert = {"_id": oid, "id": str(oid), "created_at": to_set["updated_at"]}
        # A field cannot appear in both $set and $setOnInsert.
        for key in list(on_insert):
            if key in to_set or key in filter:
                on_insert.pop(key)

        result = self._collection(collection).find_one_and_update(
            dict(filter),
            {"$set": to_set, "$setOnInsert": on_insert},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return to_app_format(result)

    def ping(self) -> bool:
        return self._conn.ping()
