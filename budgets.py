"""
Budget store

Each user owns at most one budget document holding an ordered list of items.
Items carry their own ObjectId so edits and deletes address them by identity,
never by position. Item changes are single atomic updates on the parent
document ($push, positional $set, $pull), so overlapping writes never drop
each other.
"""

from typing import Any, Dict, Iterable, List, Optional

import structlog
from bson import ObjectId
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import parse_object_id
from errors import Conflict, NotFound
from schemas import BudgetItemIn

logger = structlog.get_logger(__name__)


def summarize_items(items: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """Total of all amounts and per-category sums, in first-seen category order."""
    total = 0.0
    categories: Dict[str, float] = {}
    for item in items:
        amount = float(item.get("amount") or 0)
        total += amount
        category = item.get("category")
        categories[category] = categories.get(category, 0.0) + amount
    return {"total": total, "categories": categories}


def _new_item(name: str, amount: float, category: str) -> Dict[str, Any]:
    return {"_id": ObjectId(), "name": name, "amount": amount, "category": category}


class BudgetStore:
    def __init__(self, db: Database):
        self._collection = db["budget"]

    def get(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self._collection.find_one({"userId": user_id})

    def create(self, user_id: str, items: List[BudgetItemIn]) -> None:
        if self.get(user_id):
            raise Conflict("Budget already exists")
        doc = {
            "userId": user_id,
            "items": [_new_item(i.name, i.amount, i.category) for i in items],
        }
        try:
            self._collection.insert_one(doc)
        except DuplicateKeyError:
            raise Conflict("Budget already exists")
        logger.info("budget_created", user_id=user_id, items=len(doc["items"]))

    def _raise_missing(self, user_id: str) -> None:
        if not self.get(user_id):
            raise NotFound("Budget not found")
        raise NotFound("Item not found")

    def add_item(self, user_id: str, name: str, amount: float, category: str) -> Dict[str, Any]:
        item = _new_item(name, amount, category)
        result = self._collection.update_one({"userId": user_id}, {"$push": {"items": item}})
        if result.matched_count == 0:
            raise NotFound("Budget not found")
        return item

    def update_item(self, user_id: str, item_id: str, name: str, amount: float, category: str) -> Dict[str, Any]:
        oid = parse_object_id(item_id)
        if oid is not None:
            result = self._collection.update_one(
                {"userId": user_id, "items._id": oid},
                {"$set": {"items.$.name": name, "items.$.amount": amount, "items.$.category": category}},
            )
            if result.matched_count:
                return {"_id": oid, "name": name, "amount": amount, "category": category}
        self._raise_missing(user_id)

    def delete_item(self, user_id: str, item_id: str) -> None:
        oid = parse_object_id(item_id)
        if oid is not None:
            result = self._collection.update_one(
                {"userId": user_id, "items._id": oid},
                {"$pull": {"items": {"_id": oid}}},
            )
            if result.matched_count:
                logger.info("budget_item_deleted", user_id=user_id, item_id=item_id)
                return
        self._raise_missing(user_id)
