from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..common.validators import optional_int
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..database.collections import Collections
from ..database.documents import SECRET_FIELDS, normalize_sort, public_document
from ..database.store import DocumentStore
from ..users.model import Viewer
from ..users.passwords import hash_password

logger = logging.getLogger(__name__)

# Operators that run JavaScript on the database server.
FORBIDDEN_OPERATORS = frozenset({"$where", "$function", "$accumulator"})

# Collections whose writes are reserved for user managers.
USER_ADMIN_COLLECTIONS = frozenset({Collections.USERS, Collections.PERMISSIONS})


@dataclass(frozen=True)
class ListQuery:
    filter: dict
    sort: Optional[list]
    limit: Optional[int]
    skip: Optional[int]


def _parse_json_object(raw: Optional[str], name: str) -> dict:
    if raw in (None, ""):
        return {}
    try:
        value = json.loads(raw)
    except ValueError:
        raise ValidationError(f"Invalid JSON in '{name}' parameter")
    if not isinstance(value, dict):
        raise ValidationError(f"'{name}' must be a JSON object")
    return value


def check_filter(value: Any) -> None:
    """Reject server-side JavaScript operators and secret fields anywhere in a filter."""
    if isinstance(value, Mapping):
        for key, inner in value.items():
            if key in FORBIDDEN_OPERATORS:
                raise ValidationError(f"Operator {key} is not allowed")
            if key in SECRET_FIELDS:
                raise ValidationError(f"Filtering on {key} is not allowed")
            check_filter(inner)
    elif isinstance(value, (list, tuple)):
        for inner in value:
            check_filter(inner)


def parse_list_query(args: Mapping[str, Any]) -> ListQuery:
    filter = _parse_json_object(args.get("filter"), "filter")
    check_filter(filter)
    return ListQuery(
        filter=filter,
        sort=normalize_sort(_parse_json_object(args.get("sort"), "sort")),
        limit=optional_int(args.get("limit"), "limit"),
        skip=optional_int(args.get("skip"), "skip"),
    )


class CrudService:
    """Generic access to the known collections, with the few rules every client must follow."""

    def __init__(self, store: DocumentStore):
        self._store = store

    @staticmethod
    def require_collection(name: str) -> str:
        if name not in Collections.ALL:
            raise NotFoundError(f"Unknown collection: {name}")
        return name

    @staticmethod
    def check_write(viewer: Viewer, collection: str, *, deleting: bool = False) -> None:
        if viewer.role == Role.VIEWER:
            raise AuthorizationError("Read-only account")
        if collection in USER_ADMIN_COLLECTIONS and not viewer.can("can_manage_users"):
            raise AuthorizationError("You do not have permission to manage users")
        if deleting and collection == Collections.SCHOOLS and not viewer.can("can_delete_schools"):
            raise AuthorizationError("You do not have permission to delete schools")

    @staticmethod
    def _prepare(collection: str, document: Any) -> dict:
        if not isinstance(document, Mapping):
            raise ValidationError("Document must be a JSON object")
        doc = {k: v for k, v in document.items() if k not in SECRET_FIELDS}
        password = doc.pop("password", None)
        if collection in Collections.WITH_CREDENTIALS and password:
            doc["password_hash"] = hash_password(str(password))
        return doc

    def list_documents(self, collection: str, query: ListQuery) -> list[dict]:
        self.require_collection(collection)
        docs = self._store.find(collection, query.filter, sort=query.sort, limit=query.limit, skip=query.skip)
        return [public_document(d) for d in docs]

    def count(self, collection: str, filter_raw: Optional[str]) -> int:
        self.require_collection(collection)
        filter = _parse_json_object(filter_raw, "filter")
        check_filter(filter)
        return self._store.count(collection, filter)

    def get(self, collection: str, doc_id: str) -> dict:
        self.require_collection(collection)
        doc = self._store.find_by_id(collection, doc_id)
        if not doc:
            raise NotFoundError("Document not found")
        return public_document(doc)

    def create(self, viewer: Viewer, collection: str, document: Any) -> dict:
        self.require_collection(collection)
        self.check_write(viewer, collection)
        return public_document(self._store.insert_one(collection, self._prepare(collection, document)))

    def create_many(self, viewer: Viewer, collection: str, documents: Any) -> list[dict]:
        self.require_collection(collection)
        self.check_write(viewer, collection)
        if not isinstance(documents, list):
            raise ValidationError("Body must be a JSON array of documents")
        created = self._store.insert_many(collection, [self._prepare(collection, d) for d in documents])
        logger.info("Inserted %d document(s) into %s", len(created), collection)
        return [public_document(d) for d in created]

    def update(self, viewer: Viewer, collection: str, doc_id: str, fields: Any) -> None:
        self.require_collection(collection)
        self.check_write(viewer, collection)
        if not self._store.update_by_id(collection, doc_id, self._prepare(collection, fields)):
            raise NotFoundError("Document not found")

    def delete(self, viewer: Viewer, collection: str, doc_id: str) -> None:
        self.require_collection(collection)
        self.check_write(viewer, collection, deleting=True)
        if not self._store.delete_by_id(collection, doc_id):
            raise NotFoundError("Document not found")
        logger.info("Deleted %s/%s", collection, doc_id)

    def upsert(self, viewer: Viewer, collection: str, body: Any) -> dict:
        self.require_collection(collection)
        self.check_write(viewer, collection)
        if not isinstance(body, Mapping):
            raise ValidationError("Body must be a JSON object with 'filter' and 'document'")
        filter = body.get("filter")
        if not isinstance(filter, Mapping) or not filter:
            raise ValidationError("'filter' must be a non-empty JSON object")
        check_filter(filter)
        return public_document(self._store.upsert(collection, dict(filter), self._prepare(collection, body.get("document"))))
