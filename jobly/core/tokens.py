from __future__ import annotations

from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any

import jwt

from jobly.core.auth import Identity
from jobly.core.config import get_settings


class TokenCodec:
    """Signs and verifies the bearer tokens carrying ``username`` and ``isAdmin``.

    Decoding never raises: a token that is malformed, expired, signed with a
    different key or missing the identity claims decodes to ``None``, exactly
    like a request that carried no token at all.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", ttl_seconds: int | None = None) -> None:
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.ttl_seconds = ttl_seconds

    def encode(self, identity: Identity) -> str:
        claims: dict[str, Any] = {
            "username": identity.username,
            "isAdmin": identity.is_admin is True,
        }
        if self.ttl_seconds is not None:
            claims["exp"] = datetime.now(timezone.utc) + timedelta(seconds=self.ttl_seconds)
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def decode(self, token: Any) -> Identity | None:
        if not isinstance(token, str) or not token:
            return None
        try:
            claims = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.InvalidTokenError:
            return None

        username = claims.get("username")
        if not isinstance(username, str) or not username:
            return None
        is_admin = claims.get("isAdmin")
        if not isinstance(is_admin, bool):
            return None
        return Identity(username=username, is_admin=is_admin)


@lru_cache
def get_token_codec() -> TokenCodec:
    settings = get_settings()
    return TokenCodec(
        secret_key=settings.secret_key,
        algorithm=settings.jwt_algorithm,
        ttl_seconds=settings.token_ttl_seconds,
    )
