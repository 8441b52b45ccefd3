from dataclasses import dataclass
from enum import Enum


class UnauthorizedError(Exception):
    """Raised when the caller lacks the capability a route requires."""

    def __init__(self, message: str = "unauthorized") -> None:
        super().__init__(message)


@dataclass(slots=True, frozen=True)
class Identity:
    username: str
    is_admin: bool = False


class CapabilityKind(str, Enum):
    PUBLIC = "public"
    AUTHENTICATED = "authenticated"
    ADMIN = "admin"
    ADMIN_OR_SELF = "admin_or_self"


@dataclass(slots=True, frozen=True)
class Capability:
    kind: CapabilityKind


PUBLIC = Capability(kind=CapabilityKind.PUBLIC)
AUTHENTICATED = Capability(kind=CapabilityKind.AUTHENTICATED)
ADMIN_ONLY = Capability(kind=CapabilityKind.ADMIN)
ADMIN_OR_SELF = Capability(kind=CapabilityKind.ADMIN_OR_SELF)


def is_permitted(identity: Identity | None, capability: Capability, route_subject: str | None = None) -> bool:
    if capability.kind is CapabilityKind.PUBLIC:
        return True
    if identity is None or not identity.username:
        return False
    if capability.kind is CapabilityKind.AUTHENTICATED:
        return True

    is_admin = identity.is_admin is True
    if capability.kind is CapabilityKind.ADMIN:
        return is_admin
    if capability.kind is CapabilityKind.ADMIN_OR_SELF:
        return is_admin or (route_subject is not None and identity.username == route_subject)
    return False


def authorize(identity: Identity | None, capability: Capability, route_subject: str | None = None) -> None:
    """Raise UnauthorizedError unless ``identity`` holds ``capability``.

    ``route_subject`` is the owning username taken from the route for
    admin-or-self checks; it is ignored by every other capability.
    """
    if not is_permitted(identity, capability, route_subject):
        raise UnauthorizedError()
