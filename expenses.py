"""
Expense store

Every lookup filters on both the expense id and the owner, so another user's
expense is indistinguishable from one that does not exist.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database

from database import create_document, get_documents, parse_object_id, to_utc, utcnow
from errors import NotFound
from schemas import Expense

logger = structlog.get_logger(__name__)


class ExpenseStore:
    def __init__(self, db: Database):
        self._db = db
        self._collection = db["expense"]

    def _owned(self, user_id: str, expense_id: str) -> Dict[str, Any]:
        oid = parse_object_id(expense_id)
        if oid is None:
            raise NotFound("Expense not found")
        return {"_id": oid, "userId": user_id}

    def list(self, user_id: str) -> List[Dict[str, Any]]:
        return get_documents(self._db, "expense", {"userId": user_id}, sort=[("date", DESCENDING)])

    def create(self, user_id: str, amount: float, category: str, note: Optional[str] = None,
               date: Optional[datetime] = None) -> Dict[str, Any]:
        expense = Expense(
            userId=user_id,
            amount=amount,
            category=category,
            note=note or "",
            date=to_utc(date) or utcnow(),
        )
        expense_id = create_document(self._db, "expense", expense)
        return {"_id": expense_id, **expense.model_dump()}

    def update(self, user_id: str, expense_id: str, amount: float, category: str,
               note: Optional[str] = None, date: Optional[datetime] = None) -> Dict[str, Any]:
        changes: Dict[str, Any] = {"amount": amount, "category": category}
        if note is not None:
            changes["note"] = note
        if date is not None:
            changes["date"] = to_utc(date)
        updated = self._collection.find_one_and_update(
            self._owned(user_id, expense_id),
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        if not updated:
            raise NotFound("Expense not found")
        return updated

    def delete(self, user_id: str, expense_id: str) -> None:
        deleted = self._collection.find_one_and_delete(self._owned(user_id, expense_id))
        if not deleted:
            raise NotFound("Expense not found")
        logger.info("expense_deleted", user_id=user_id, expense_id=expense_id)
