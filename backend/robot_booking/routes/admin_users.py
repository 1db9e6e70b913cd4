from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlmodel import Session

from ..auth import Caller, require
from ..db import get_session
from ..errors import ValidationFailed
from ..schemas import RegisterIn, UpdateUserIn, UserOut
from .. import users
from .account import user_out

router = APIRouter(prefix="/api/admin/users", tags=["admin"])

DUPLICATE_EMAIL = "E-postadressen finns redan registrerad"


@router.get("", response_model=List[UserOut])
def list_users(caller: Caller = Depends(require("users:manage")), session: Session = Depends(get_session)):
    return [user_out(session, u) for u in users.list_users(session)]


@router.post("", response_model=UserOut)
def create_user(body: RegisterIn, caller: Caller = Depends(require("users:manage")), session: Session = Depends(get_session)):
    user = users.create_user(
        session,
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        company=body.company,
        phone=body.phone,
        duplicate_message=DUPLICATE_EMAIL,
    )
    return user_out(session, user)


@router.post("/admin", response_model=UserOut)
def create_admin(body: RegisterIn, caller: Caller = Depends(require("users:manage")), session: Session = Depends(get_session)):
    user = users.create_user(
        session,
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        company=body.company,
        phone=body.phone,
        is_admin=True,
        duplicate_message=DUPLICATE_EMAIL,
    )
    return user_out(session, user)


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: str, caller: Caller = Depends(require("users:manage")), session: Session = Depends(get_session)):
    return user_out(session, users.require_user(session, user_id))


@router.put("/{user_id}", response_model=UserOut)
def update_user(
    user_id: str,
    body: UpdateUserIn,
    caller: Caller = Depends(require("users:manage")),
    session: Session = Depends(get_session),
):
    user = users.require_user(session, user_id)
    user = users.update_profile(
        session, user, first_name=body.first_name, last_name=body.last_name, company=body.company
    )
    return user_out(session, user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(user_id: str, caller: Caller = Depends(require("users:manage")), session: Session = Depends(get_session)):
    user = users.require_user(session, user_id)
    if user.id == caller.id:
        raise ValidationFailed("Du kan inte ta bort ditt eget konto via admin-gränssnittet")
    users.delete_user(session, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
