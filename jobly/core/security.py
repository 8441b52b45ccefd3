import logging
import re
from functools import lru_cache

from fastapi import Depends, Header, HTTPException, status
from passlib.context import CryptContext

from jobly.core.auth import Capability, Identity, UnauthorizedError, authorize
from jobly.core.config import get_settings
from jobly.core.tokens import TokenCodec, get_token_codec

logger = logging.getLogger(__name__)

_BEARER_PREFIX_RE = re.compile(r"^[Bb]earer ")


async def get_identity(
    codec: TokenCodec = Depends(get_token_codec),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> Identity | None:
    if not authorization:
        return None

    token = _BEARER_PREFIX_RE.sub("", authorization).strip()
    identity = codec.decode(token)
    if identity is None:
        # Treated like an anonymous request; only the log records the difference.
        logger.info("ignoring invalid bearer token")
    return identity


def require_capability(
    identity: Identity | None,
    capability: Capability,
    route_subject: str | None = None,
) -> None:
    try:
        authorize(identity, capability, route_subject)
    except UnauthorizedError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc


@lru_cache
def get_password_context() -> CryptContext:
    settings = get_settings()
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.bcrypt_work_factor)


def hash_password(password: str) -> str:
    # bcrypt only looks at the first 72 bytes
    return get_password_context().hash(password.encode("utf-8")[:72])


def verify_password(password: str, hashed_password: str) -> bool:
    return get_password_context().verify(password.encode("utf-8")[:72], hashed_password)
