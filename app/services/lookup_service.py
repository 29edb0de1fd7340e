"""
app/services/lookup_service.py

Purpose: Document lookups shared by routers

- Fetch-by-id with a 404 when missing
- Batch population of referenced documents (users, products)
"""

from typing import Any, Dict, Iterable, List, Optional

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase

from app.core.exceptions import ResourceNotFoundError
from utils.validation_utils import parse_object_id


async def get_or_404(
    collection: AsyncIOMotorCollection,
    id_value: Any,
    message: str = "Resource not found",
    projection: Optional[Dict[str, int]] = None,
) -> Dict[str, Any]:
    """
    Loads a document by id.

    Raises:
        ResourceNotFoundError: If the id is malformed or no document matches
    """
    oid = parse_object_id(id_value)
    doc = await collection.find_one({"_id": oid}, projection) if oid else None
    if not doc:
        raise ResourceNotFoundError(message)
    return doc


def _walk(docs: Iterable[Dict[str, Any]], path: List[str]):
    """Yields (container, key) pairs for a dotted path, descending into lists."""
    head, rest = path[0], path[1:]
    for doc in docs:
        if not isinstance(doc, dict):
            continue
        if not rest:
            yield doc, head
            continue
        child = doc.get(head)
        if isinstance(child, list):
            yield from _walk(child, rest)
        elif isinstance(child, dict):
            yield from _walk([child], rest)


async def populate(
    db: AsyncIOMotorDatabase,
    docs: List[Dict[str, Any]],
    path: str,
    collection: str,
    projection: Optional[Dict[str, int]] = None,
) -> List[Dict[str, Any]]:
    """
    Replaces reference ids at ``path`` with the referenced documents.

    ``path`` may go through embedded lists (``items.product``) and may end
    in a list of ids (``targetUsers``). References that no longer resolve
    become None. Docs are modified in place and returned for chaining.
    """
    slots = list(_walk(docs, path.split(".")))
    ids = set()
    for container, key in slots:
        value = container.get(key)
        for ref in value if isinstance(value, list) else [value]:
            if ref is not None and not isinstance(ref, dict):
                ids.add(ref)
    if not ids:
        return docs

    found = {}
    async for ref in db[collection].find({"_id": {"$in": list(ids)}}, projection):
        found[ref["_id"]] = ref

    def resolve(ref):
        return ref if ref is None or isinstance(ref, dict) else found.get(ref)

    for container, key in slots:
        value = container.get(key)
        if isinstance(value, list):
            container[key] = [resolve(ref) for ref in value]
        else:
            container[key] = resolve(value)
    return docs
