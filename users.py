"""Credential store: registration and login."""

from typing import Any, Dict, Optional

import structlog
from passlib.context import CryptContext
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import create_document
from errors import Conflict, InvalidCredential, UnknownUser
from schemas import User
from security import TokenService, hash_password, verify_password

logger = structlog.get_logger(__name__)


class UserStore:
    def __init__(self, db: Database):
        self._collection = db["user"]
        self._db = db

    def find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        return self._collection.find_one({"email": email})

    def create(self, email: str, password_hash: str) -> str:
        try:
            return create_document(self._db, "user", User(email=email, password_hash=password_hash))
        except DuplicateKeyError:
            raise Conflict("User already exists")


class AuthService:
    def __init__(self, users: UserStore, tokens: TokenService, pwd_context: CryptContext):
        self._users = users
        self._tokens = tokens
        self._pwd_context = pwd_context

    def register(self, email: str, password: str) -> str:
        if self._users.find_by_email(email):
            raise Conflict("User already exists")
        user_id = self._users.create(email, hash_password(self._pwd_context, password))
        logger.info("user_registered", user_id=user_id)
        return self._tokens.issue(user_id)

    def login(self, email: str, password: str) -> str:
        user = self._users.find_by_email(email)
        if not user:
            logger.info("login_failed", email=email, reason="unknown_email")
            raise UnknownUser("User not found")
        if not verify_password(self._pwd_context, password, user.get("password_hash", "")):
            logger.info("login_failed", email=email, reason="bad_password")
            raise InvalidCredential("Invalid password")
        return self._tokens.issue(str(user["_id"]))
