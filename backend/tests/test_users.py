"""
Unit tests for the user directory: registration rules, authentication, roles,
password reset and cascading deletes.
"""

from datetime import datetime

import pytest
from sqlmodel import select

from robot_booking import bookings, users
from robot_booking.errors import Forbidden, NotFound, Unauthorized, ValidationFailed
from robot_booking.models import Booking, UserRole, ROLE_ADMIN, ROLE_USER

from conftest import USER_PASSWORD


class TestCreateUser:
    def test_regular_user_gets_user_role(self, session, make_user):
        user = make_user("Anna@Example.com", first_name="Anna", company="ACME")

        assert user.email == "anna@example.com"
        assert user.is_active is True
        assert user.company == "ACME"
        assert users.roles_for(session, user.id) == [ROLE_USER]
        assert users.is_admin(session, user.id) is False

    def test_admin_grant(self, session, make_user):
        user = make_user("root@example.com", is_admin=True)
        assert set(users.roles_for(session, user.id)) == {ROLE_USER, ROLE_ADMIN}
        assert users.is_admin(session, user.id)

    def test_duplicate_email_rejected(self, session, make_user):
        make_user("dup@example.com")
        with pytest.raises(ValidationFailed) as exc:
            users.create_user(session, email="DUP@example.com", password=USER_PASSWORD)
        assert exc.value.message == "Email already exists"

    @pytest.mark.parametrize("password", ["Ab1!", "abcdef1!", "ABCDEF1!", "Abcdefg!", "Abcdef12"])
    def test_weak_password_rejected(self, session, password):
        with pytest.raises(ValidationFailed) as exc:
            users.create_user(session, email="weak@example.com", password=password)
        assert exc.value.message == users.WEAK_PASSWORD_MESSAGE
        assert users.get_user_by_email(session, "weak@example.com") is None

    def test_weak_password_message_lists_special_character(self, session):
        with pytest.raises(ValidationFailed) as exc:
            users.create_user(session, email="weak@example.com", password="Abc123")
        assert "specialtecken" in exc.value.message


class TestAuthenticate:
    def test_valid_credentials(self, session, make_user):
        user = make_user("login@example.com")
        assert users.authenticate(session, "login@example.com", USER_PASSWORD).id == user.id

    def test_unknown_email(self, session):
        with pytest.raises(Unauthorized) as exc:
            users.authenticate(session, "nobody@example.com", USER_PASSWORD)
        assert exc.value.message == "Ogiltig email."

    def test_wrong_password(self, session, make_user):
        make_user("login@example.com")
        with pytest.raises(Unauthorized) as exc:
            users.authenticate(session, "login@example.com", "Wrong!123")
        assert exc.value.message == "Ogiltigt lösenord."

    def test_inactive_account_refused(self, session, make_user):
        user = make_user("sleepy@example.com")
        user.is_active = False
        session.add(user)
        session.commit()
        with pytest.raises(Forbidden):
            users.authenticate(session, "sleepy@example.com", USER_PASSWORD)


class TestProfile:
    def test_update_only_touches_given_fields(self, session, make_user):
        user = make_user("p@example.com", first_name="A", last_name="B", phone="123")
        users.update_profile(session, user, first_name="Anna", company="Robotics AB")

        fresh = users.get_user(session, user.id)
        assert fresh.first_name == "Anna"
        assert fresh.last_name == "B"
        assert fresh.company == "Robotics AB"
        assert fresh.phone == "123"

    def test_require_user_missing(self, session):
        with pytest.raises(NotFound):
            users.require_user(session, "no-such-id")

    def test_delete_cascades_bookings_and_roles(self, session, make_user, make_robot):
        user = make_user("gone@example.com")
        keeper = make_user("keeper@example.com")
        robot = make_robot()
        bookings.create_booking(session, robot.id, datetime(2024, 1, 3), user.id)
        kept = bookings.create_booking(session, robot.id, datetime(2024, 1, 10), keeper.id)
        user_id = user.id

        users.delete_user(session, user)

        assert users.get_user(session, user_id) is None
        assert session.exec(select(UserRole).where(UserRole.user_id == user_id)).all() == []
        assert [b.id for b in session.exec(select(Booking)).all()] == [kept.id]


class TestPasswords:
    def test_reset_flow_is_single_use(self, session, make_user):
        make_user("reset@example.com")
        user, token = users.issue_reset_token(session, "reset@example.com")

        users.reset_password(session, "reset@example.com", token, "Brand!New1")
        assert users.authenticate(session, "reset@example.com", "Brand!New1").id == user.id

        with pytest.raises(ValidationFailed) as exc:
            users.reset_password(session, "reset@example.com", token, "Other!New2")
        assert exc.value.message == "Ogiltig återställningslänk"

    def test_reset_token_for_unknown_email(self, session):
        assert users.issue_reset_token(session, "ghost@example.com") is None

    def test_reset_token_bound_to_user(self, session, make_user):
        make_user("a@example.com")
        make_user("b@example.com")
        _, token = users.issue_reset_token(session, "a@example.com")
        with pytest.raises(ValidationFailed):
            users.reset_password(session, "b@example.com", token, "Brand!New1")

    def test_change_password_checks_current(self, session, make_user):
        user = make_user("change@example.com")
        with pytest.raises(ValidationFailed) as exc:
            users.change_password(session, user, "Wrong!123", "Brand!New1")
        assert exc.value.message == "Fel nuvarande lösenord"

        users.change_password(session, user, USER_PASSWORD, "Brand!New1")
        assert users.authenticate(session, "change@example.com", "Brand!New1")

    def test_change_password_enforces_policy(self, session, make_user):
        user = make_user("change@example.com")
        with pytest.raises(ValidationFailed) as exc:
            users.change_password(session, user, USER_PASSWORD, "short")
        assert exc.value.message == users.WEAK_PASSWORD_MESSAGE


def test_seed_admin_is_idempotent(session):
    users.seed_admin(session, "seed@example.com", "Password!1")
    users.seed_admin(session, "seed@example.com", "Password!1")

    admin = users.get_user_by_email(session, "seed@example.com")
    assert users.is_admin(session, admin.id)
    assert len(users.list_users(session)) == 1
