"""Conversión tolerante de ids (str ↔ ObjectId) para documentos Mongo."""
from typing import Any, Optional

from bson import ObjectId
from bson.errors import InvalidId


def parse_object_id(value: Any) -> Optional[ObjectId]:
    """Devuelve ObjectId o None si `value` no es un id válido."""
    if isinstance(value, ObjectId):
        return value
    if not value:
        return None
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def serialize_doc(value: Any) -> Any:
    """Convierte documentos (anidados) a JSON: ObjectId → str, `_id` → `id`."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        out = {}
        for k, v in value.items():
            out["id" if k == "_id" else k] = serialize_doc(v)
        return out
    if isinstance(value, (list, tuple)):
        return [serialize_doc(v) for v in value]
    return value
