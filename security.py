"""
Passwords, identity tokens and the request gate.

Every protected route depends on ``get_current_user``: it reads the raw token
from the Authorization header, verifies it and hands the user id to the
handler. Nothing about the caller is kept between requests.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt
from fastapi import Depends, Header, Request
from passlib.context import CryptContext

from errors import InvalidToken, Unauthenticated


def make_password_context(rounds: int = 10) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def hash_password(pwd_context: CryptContext, password: str) -> str:
    return pwd_context.hash(password)


def verify_password(pwd_context: CryptContext, password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Issues and verifies signed, expiring identity tokens.

    ``clock`` returns the current aware UTC datetime; tests pass a fixed one.
    Expiry is checked against that clock rather than the wall clock so both
    directions of a test see the same time.
    """

    def __init__(self, secret: str, ttl: timedelta = timedelta(hours=24), algorithm: str = "HS256",
                 clock: Optional[Callable[[], datetime]] = None):
        self._secret = secret
        self._ttl = ttl
        self._algorithm = algorithm
        self._clock = clock or _utcnow

    def issue(self, user_id: str) -> str:
        now = self._clock()
        payload = {
            "sub": str(user_id),
            "iat": int(now.timestamp()),
            "exp": int((now + self._ttl).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> str:
        try:
            data = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp"], "verify_exp": False, "verify_iat": False},
            )
        except jwt.PyJWTError:
            raise InvalidToken("Invalid token")
        if data["exp"] <= self._clock().timestamp():
            raise InvalidToken("Invalid token")
        user_id = data.get("sub")
        if not user_id:
            raise InvalidToken("Invalid token")
        return user_id


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def get_current_user(authorization: Optional[str] = Header(None),
                     tokens: TokenService = Depends(get_token_service)) -> str:
    token = (authorization or "").strip()
    if not token:
        raise Unauthenticated("No token provided")
    return tokens.verify(token)
