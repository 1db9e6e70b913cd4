import logging
from typing import List, Optional, Tuple

from sqlalchemy import delete
from sqlmodel import Session, select

from .errors import Forbidden, NotFound, Unauthorized, ValidationFailed
from .models import Booking, User, UserRole, ROLE_ADMIN, ROLE_USER, ROLES
from .security import (
    create_reset_token,
    hash_password,
    password_is_strong,
    reset_token_is_valid,
    verify_password,
)

logger = logging.getLogger(__name__)

WEAK_PASSWORD_MESSAGE = (
    "Lösenordet måste innehålla minst en stor bokstav, en liten bokstav, "
    "en siffra, ett specialtecken och vara minst 6 tecken långt"
)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


# ---- lookups ----
def get_user(session: Session, user_id: str) -> Optional[User]:
    return session.get(User, user_id)

def get_user_by_email(session: Session, email: str) -> Optional[User]:
    stmt = select(User).where(User.email == normalize_email(email))
    return session.exec(stmt).first()

def require_user(session: Session, user_id: str, message: str = "Användaren hittades inte") -> User:
    user = session.get(User, user_id)
    if not user:
        raise NotFound(message)
    return user

def list_users(session: Session) -> List[User]:
    return list(session.exec(select(User).order_by(User.created_at)).all())


# ---- roles ----
def roles_for(session: Session, user_id: str) -> List[str]:
    stmt = select(UserRole.role).where(UserRole.user_id == user_id)
    return list(session.exec(stmt).all())

def is_admin(session: Session, user_id: str) -> bool:
    return ROLE_ADMIN in roles_for(session, user_id)

def add_role(session: Session, user: User, role: str) -> None:
    if role not in ROLES:
        raise ValueError(f"unknown role {role!r}")
    if role in roles_for(session, user.id):
        return
    session.add(UserRole(user_id=user.id, role=role))


# ---- lifecycle ----
def create_user(
    session: Session,
    email: str,
    password: str,
    first_name: str = "",
    last_name: str = "",
    company: Optional[str] = None,
    phone: Optional[str] = None,
    is_admin: bool = False,
    duplicate_message: str = "Email already exists",
) -> User:
    email = normalize_email(email)
    if not email:
        raise ValidationFailed("Email krävs")
    if get_user_by_email(session, email):
        raise ValidationFailed(duplicate_message)
    if not password_is_strong(password or ""):
        raise ValidationFailed(WEAK_PASSWORD_MESSAGE)

    user = User(
        email=email,
        first_name=first_name or "",
        last_name=last_name or "",
        company=company,
        phone=phone,
        password_hash=hash_password(password),
    )
    session.add(user)
    session.flush()
    add_role(session, user, ROLE_USER)
    if is_admin:
        add_role(session, user, ROLE_ADMIN)
    session.commit()
    session.refresh(user)
    logger.info("Created user %s (admin=%s)", user.email, is_admin)
    return user

def authenticate(session: Session, email: str, password: str) -> User:
    user = get_user_by_email(session, email)
    if not user:
        raise Unauthorized("Ogiltig email.")
    if not verify_password(password, user.password_hash):
        raise Unauthorized("Ogiltigt lösenord.")
    if not user.is_active:
        raise Forbidden("Kontot är inaktiverat")
    return user

def update_profile(session: Session, user: User, **fields) -> User:
    # only profile fields; email, roles and password have their own paths
    for name in ("first_name", "last_name", "company", "phone"):
        if name in fields:
            setattr(user, name, fields[name])
    session.add(user)
    session.commit()
    session.refresh(user)
    return user

def delete_user(session: Session, user: User) -> None:
    """Delete a user together with its bookings and role rows, children first."""
    email = user.email
    session.exec(delete(Booking).where(Booking.user_id == user.id))
    session.exec(delete(UserRole).where(UserRole.user_id == user.id))
    session.delete(user)
    session.commit()
    logger.info("Deleted user %s", email)


# ---- passwords ----
def issue_reset_token(session: Session, email: str) -> Optional[Tuple[User, str]]:
    user = get_user_by_email(session, email)
    if not user:
        return None
    return user, create_reset_token(user.id, user.password_hash)

def _set_password(session: Session, user: User, new_password: str) -> None:
    if not password_is_strong(new_password or ""):
        raise ValidationFailed(WEAK_PASSWORD_MESSAGE)
    user.password_hash = hash_password(new_password)
    session.add(user)
    session.commit()

def reset_password(session: Session, email: str, token: str, new_password: str) -> User:
    user = get_user_by_email(session, email)
    if not user or not reset_token_is_valid(token, user.id, user.password_hash):
        raise ValidationFailed("Ogiltig återställningslänk")
    _set_password(session, user, new_password)
    logger.info("Password reset for %s", user.email)
    return user

def change_password(session: Session, user: User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.password_hash):
        raise ValidationFailed("Fel nuvarande lösenord")
    _set_password(session, user, new_password)


def seed_admin(session: Session, email: str, password: str) -> None:
    """Make sure the default admin account exists."""
    if get_user_by_email(session, email):
        return
    create_user(session, email=email, password=password, first_name="Admin", last_name="User", is_admin=True)
