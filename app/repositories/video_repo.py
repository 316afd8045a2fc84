"""Repo de la colección `video`.

- `owner` se guarda como ObjectId (referencia a `user`).
- Listado paginado con un único `$facet` (docs + total).
"""
import re
from typing import Any, Dict, List, Optional

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from app.core import errors
from app.core.time import now_iso
from app.infrastructure.db.ids import parse_object_id

COLLECTION = "video"

SORTABLE_FIELDS = ("created_at", "views", "duration", "title")

# Datos del dueño que se embeben en listados/detalle
OWNER_PROJECTION = {"username": 1, "full_name": 1, "avatar": 1}


def owner_lookup(local_field: str = "owner", as_field: str = "owner") -> List[Dict[str, Any]]:
    return [
        {
            "$lookup": {
                "from": "user",
                "localField": local_field,
                "foreignField": "_id",
                "as": as_field,
                "pipeline": [{"$project": OWNER_PROJECTION}],
            }
        },
        {"$unwind": {"path": f"${as_field}", "preserveNullAndEmptyArrays": True}},
    ]


def video_list_pipeline(
    *,
    page: int = 1,
    limit: int = 10,
    query: Optional[str] = None,
    sort_by: str = "created_at",
    sort_type: str = "desc",
    owner_id: Any = None,
    include_unpublished: bool = False,
) -> List[Dict[str, Any]]:
    """Pipeline de listado con filtros, orden y paginación (`$facet`)."""
    match: Dict[str, Any] = {}
    if not include_unpublished:
        match["is_published"] = True
    owner = parse_object_id(owner_id)
    if owner_id is not None:
        # owner inválido no debe listar todo el catálogo
        match["owner"] = owner
    if query and query.strip():
        rx = {"$regex": re.escape(query.strip()), "$options": "i"}
        match["$or"] = [{"title": rx}, {"description": rx}]

    field = sort_by if sort_by in SORTABLE_FIELDS else "created_at"
    direction = 1 if (sort_type or "").lower() == "asc" else -1
    page = max(1, int(page))
    limit = max(1, int(limit))

    return [
        {"$match": match},
        {"$sort": {field: direction, "_id": direction}},
        {
            "$facet": {
                "docs": [
                    {"$skip": (page - 1) * limit},
                    {"$limit": limit},
                    *owner_lookup(),
                ],
                "total": [{"$count": "count"}],
            }
        },
    ]


def video_detail_pipeline(video_id: Any, viewer_id: Any = None) -> List[Dict[str, Any]]:
    """Detalle de un video con dueño, conteo de likes/dislikes y reacción del viewer."""
    vid = parse_object_id(video_id)
    viewer = parse_object_id(viewer_id)
    return [
        {"$match": {"_id": vid}},
        {"$lookup": {"from": "like", "localField": "_id", "foreignField": "video", "as": "reactions"}},
        {
            "$addFields": {
                "likes_count": {
                    "$size": {"$filter": {"input": "$reactions", "as": "r", "cond": {"$eq": ["$$r.is_like", True]}}}
                },
                "dislikes_count": {
                    "$size": {"$filter": {"input": "$reactions", "as": "r", "cond": {"$eq": ["$$r.is_like", False]}}}
                },
                "viewer_reaction": {
                    "$let": {
                        "vars": {
                            "mine": {
                                "$first": {
                                    "$filter": {
                                        "input": "$reactions",
                                        "as": "r",
                                        "cond": {"$eq": ["$$r.liked_by", viewer]},
                                    }
                                }
                            }
                        },
                        "in": {
                            "$cond": [
                                {"$eq": [{"$type": "$$mine"}, "missing"]},
                                None,
                                {"$cond": ["$$mine.is_like", "like", "dislike"]},
                            ]
                        },
                    }
                },
            }
        },
        {"$project": {"reactions": 0}},
        *owner_lookup(),
    ]


def paginated(result: List[Dict[str, Any]], page: int, limit: int) -> Dict[str, Any]:
    """Normaliza la salida del `$facet` al formato de paginación público."""
    facet = result[0] if result else {}
    docs = facet.get("docs") or []
    total_list = facet.get("total") or []
    total = total_list[0]["count"] if total_list else 0
    page = max(1, int(page))
    limit = max(1, int(limit))
    total_pages = (total + limit - 1) // limit if total else 0
    return {
        "docs": docs,
        "total_docs": total,
        "page": page,
        "limit": limit,
        "total_pages": total_pages,
        "has_prev_page": page > 1,
        "has_next_page": page < total_pages,
    }


class VideoRepository:
    def __init__(self, db) -> None:
        self.coll = db[COLLECTION]

    async def insert_video(self, doc: Dict[str, Any]) -> str:
        """Inserta video con defaults y devuelve id (str)."""
        data = dict(doc)
        now = now_iso()
        data.setdefault("tags", [])
        data.setdefault("views", 0)
        data.setdefault("is_published", True)
        data.setdefault("created_at", now)
        data["updated_at"] = now
        try:
            res = await self.coll.insert_one(data)
        except DuplicateKeyError as e:
            raise errors.Conflict("Video with the same title already exists") from e
        return str(res.inserted_id)

    async def find_by_id(self, video_id: Any) -> Optional[Dict[str, Any]]:
        oid = parse_object_id(video_id)
        if oid is None:
            return None
        return await self.coll.find_one({"_id": oid})

    async def find_by_owner_and_title(self, owner_id: Any, title: str) -> Optional[Dict[str, Any]]:
        return await self.coll.find_one({"owner": parse_object_id(owner_id), "title": title})

    async def list_videos(self, *, page: int = 1, limit: int = 10, **filters) -> Dict[str, Any]:
        pipeline = video_list_pipeline(page=page, limit=limit, **filters)
        result = await self.coll.aggregate(pipeline).to_list(length=1)
        return paginated(result, page, limit)

    async def get_detail(self, video_id: Any, viewer_id: Any = None) -> Optional[Dict[str, Any]]:
        if parse_object_id(video_id) is None:
            return None
        docs = await self.coll.aggregate(video_detail_pipeline(video_id, viewer_id)).to_list(length=1)
        return docs[0] if docs else None

    async def increment_views(self, video_id: Any) -> None:
        await self.coll.update_one({"_id": parse_object_id(video_id)}, {"$inc": {"views": 1}})

    async def update_video(self, video_id: Any, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        set_ops = dict(fields)
        set_ops["updated_at"] = now_iso()
        try:
            return await self.coll.find_one_and_update(
                {"_id": parse_object_id(video_id)},
                {"$set": set_ops},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as e:
            raise errors.Conflict("Video with the same title already exists") from e

    async def delete_video(self, video_id: Any) -> bool:
        res = await self.coll.delete_one({"_id": parse_object_id(video_id)})
        return res.deleted_count == 1
