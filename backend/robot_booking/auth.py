# backend/robot_booking/auth.py
# Bearer auth and the capability table used by require(...).

from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session

from .db import get_session
from .errors import Forbidden, Unauthorized
from .models import User, ROLE_ADMIN, ROLE_USER
from .security import create_access_token, decode_access_token
from .users import get_user, roles_for

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/account/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/account/login", auto_error=False)

ANY_ROLE = frozenset({ROLE_USER, ROLE_ADMIN})
ADMIN_ONLY = frozenset({ROLE_ADMIN})

CAPABILITIES = {
    "account:self": ANY_ROLE,
    "bookings:create": ANY_ROLE,
    "bookings:read": ANY_ROLE,
    "bookings:cancel": ANY_ROLE,
    "robots:read": ANY_ROLE,
    "robots:write": ADMIN_ONLY,
    "documents:read": ANY_ROLE,
    "documents:write": ADMIN_ONLY,
    "users:manage": ADMIN_ONLY,
}


@dataclass
class Caller:
    user: User
    roles: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def id(self) -> str:
        return self.user.id

    @property
    def is_admin(self) -> bool:
        return ROLE_ADMIN in self.roles


def issue_token(session: Session, user: User) -> str:
    return create_access_token({
        "sub": user.id,
        "email": user.email,
        "given_name": user.first_name,
        "family_name": user.last_name,
        "roles": roles_for(session, user.id),
    })


def caller_from_token(token: str, session: Session) -> Caller:
    payload = decode_access_token(token)
    if not payload or not payload.get("sub"):
        raise Unauthorized("Invalid token")
    user = get_user(session, payload["sub"])
    if not user:
        raise Unauthorized("Invalid token")
    if not user.is_active:
        raise Forbidden("Kontot är inaktiverat")
    return Caller(user=user, roles=frozenset(roles_for(session, user.id)))


def get_current_caller(token: str = Depends(oauth2_scheme), session: Session = Depends(get_session)) -> Caller:
    return caller_from_token(token, session)


def require(capability: str):
    """Dependency factory: resolve the caller and check ``capability`` once per request."""
    allowed = CAPABILITIES[capability]

    def guard(caller: Caller = Depends(get_current_caller)) -> Caller:
        if not (caller.roles & allowed):
            raise Forbidden("Not allowed")
        return caller

    return guard
