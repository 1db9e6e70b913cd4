from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Response, status
from sqlmodel import Session

from ..auth import Caller, caller_from_token, issue_token, optional_oauth2_scheme, require
from ..db import get_session
from ..errors import Forbidden
from ..mailer import send_password_reset
from ..models import User
from ..schemas import (
    ChangePasswordIn,
    ForgotPasswordIn,
    LoginIn,
    RegisterIn,
    ResetPasswordIn,
    UpdateUserIn,
    UserOut,
)
from .. import users

router = APIRouter(prefix="/api/account", tags=["account"])


def user_out(session: Session, user: User, token: Optional[str] = None) -> UserOut:
    out = UserOut.model_validate(user)
    out.is_admin = users.is_admin(session, user.id)
    out.token = token
    return out


@router.post("/register", response_model=UserOut)
def register(
    body: RegisterIn,
    session: Session = Depends(get_session),
    token: Optional[str] = Depends(optional_oauth2_scheme),
):
    # a bearer token is only read when the admin role is requested
    if body.is_admin:
        caller = caller_from_token(token, session) if token else None
        if caller is None or not caller.is_admin:
            raise Forbidden("Endast administratörer kan skapa administratörskonton")
    user = users.create_user(
        session,
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        company=body.company,
        phone=body.phone,
        is_admin=body.is_admin,
    )
    return user_out(session, user, issue_token(session, user))


@router.post("/login", response_model=UserOut)
def login(body: LoginIn, session: Session = Depends(get_session)):
    user = users.authenticate(session, body.email, body.password)
    return user_out(session, user, issue_token(session, user))


@router.get("/current", response_model=UserOut)
def current(caller: Caller = Depends(require("account:self")), session: Session = Depends(get_session)):
    return user_out(session, caller.user, issue_token(session, caller.user))


@router.put("/update", response_model=UserOut)
def update(
    body: UpdateUserIn,
    caller: Caller = Depends(require("account:self")),
    session: Session = Depends(get_session),
):
    user = users.update_profile(
        session,
        caller.user,
        first_name=body.first_name,
        last_name=body.last_name,
        company=body.company,
        phone=body.phone,
    )
    return user_out(session, user, issue_token(session, user))


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def delete_account(caller: Caller = Depends(require("account:self")), session: Session = Depends(get_session)):
    users.delete_user(session, caller.user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/forgot-password")
def forgot_password(body: ForgotPasswordIn, background: BackgroundTasks, session: Session = Depends(get_session)):
    # same answer whether or not the email exists
    issued = users.issue_reset_token(session, body.email)
    if issued:
        user, token = issued
        background.add_task(send_password_reset, user.email, token)
    return {"ok": True}


@router.post("/reset-password")
def reset_password(body: ResetPasswordIn, session: Session = Depends(get_session)):
    users.reset_password(session, body.email, body.token, body.new_password)
    return {"ok": True}


@router.post("/change-password")
def change_password(
    body: ChangePasswordIn,
    caller: Caller = Depends(require("account:self")),
    session: Session = Depends(get_session),
):
    users.change_password(session, caller.user, body.current_password, body.new_password)
    return {"message": "Lösenordet har ändrats!"}
