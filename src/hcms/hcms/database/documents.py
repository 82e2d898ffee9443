"""Helpers shared by document store implementations.

Documents leave the store in "app format": the driver's `_id` is dropped and a
string `id` is always present.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from bson import ObjectId

from ..common.datetime_utils import utc_now_iso
from ..core.exceptions import ValidationError

_OBJECT_ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")

# Never writable through an update.
PROTECTED_FIELDS = frozenset({"_id", "id", "created_at"})

# Never returned to API clients.
SECRET_FIELDS = frozenset({"password_hash"})


def is_object_id(value: str) -> bool:
    return bool(_OBJECT_ID_RE.match(str(value)))


def id_filter(doc_id: str) -> dict:
    """Filter matching a document by either its ObjectId or its string `id`."""
    if is_object_id(doc_id):
        return {"_id": ObjectId(doc_id)}
    return {"id": str(doc_id)}


def to_app_format(doc: Optional[Mapping[str, Any]]) -> Optional[dict]:
    if doc is None:
        return None
    out = {k: v for k, v in doc.items() if k != "_id"}
    if not out.get("id") and doc.get("_id") is not None:
        out["id"] = str(doc["_id"])
    return out


def public_document(doc: Optional[Mapping[str, Any]]) -> Optional[dict]:
    if doc is None:
        return None
    return {k: v for k, v in doc.items() if k not in SECRET_FIELDS}


def prepare_insert(document: Mapping[str, Any], *, now: Optional[str] = None) -> dict:
    """Copy a document for insertion, allocating its ObjectId and timestamps."""
    if not isinstance(document, Mapping):
        raise ValidationError("Document must be a JSON object")

    stamp = now or utc_now_iso()
    doc = dict(document)
    doc.pop("_id", None)
    oid = ObjectId()
    doc["_id"] = oid
    if not doc.get("id"):
        doc["id"] = str(oid)
    doc["created_at"] = doc.get("created_at") or stamp
    doc["updated_at"] = doc.get("updated_at") or stamp
    return doc


def prepare_update(fields: Mapping[str, Any], *, now: Optional[str] = None) -> dict:
    """Fields for a `$set`, minus identity fields, with a fresh `updated_at`."""
    if not isinstance(fields, Mapping):
        raise ValidationError("Update must be a JSON object")

    out = {k: v for k, v in fields.items() if k not in PROTECTED_FIELDS}
    out["updated_at"] = now or utc_now_iso()
    return out


def normalize_sort(sort: Any) -> Optional[list[tuple[str, int]]]:
    """Turn `{"field": 1, "other": -1}` into the driver's list-of-pairs form."""
    if not sort:
        return None
    items = sort.items() if isinstance(sort, Mapping) else sort
    out: list[tuple[str, int]] = []
    for item in items:
        try:
            field, direction = item
            direction = int(direction)
        except (TypeError, ValueError):
            raise ValidationError("Sort must map field names to 1 or -1")
        if direction not in (1, -1):
            raise ValidationError("Sort must map field names to 1 or -1")
        out.append((str(field), direction))
    return out
