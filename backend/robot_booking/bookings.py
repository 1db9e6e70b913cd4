# backend/robot_booking/bookings.py
# Weekly booking ledger. Slots run Wednesday 00:00 to the following Tuesday 00:00;
# status is derived on read and cancelled rows are ignored.

import logging
import threading
from datetime import datetime, time, timedelta
from typing import Dict, List, Optional, Tuple

from sqlmodel import Session, select

from .errors import BookingRejected, Rejection
from .events import booking_event, publish_booking_event
from .models import Booking, BookingStatus, Robot

logger = logging.getLogger(__name__)

WEDNESDAY = 2  # datetime.weekday()
SLOT_LENGTH = timedelta(days=6)

INVALID_DAY_MESSAGE = "Bokningar kan endast starta på onsdagar"
ROBOT_NOT_FOUND_MESSAGE = "Ogiltig robot-ID"
ROBOT_UNAVAILABLE_MESSAGE = "Roboten är inte tillgänglig för bokning"
SLOT_TAKEN_MESSAGE = "Vald vecka är inte tillgänglig"
BOOKING_NOT_FOUND_MESSAGE = "Bokningen hittades inte"

# one mutex per robot serializes check-then-insert inside this process
_locks_guard = threading.Lock()
_robot_locks: Dict[int, threading.Lock] = {}


def _robot_lock(robot_id: int) -> threading.Lock:
    with _locks_guard:
        lock = _robot_locks.get(robot_id)
        if lock is None:
            lock = _robot_locks[robot_id] = threading.Lock()
        return lock

def forget_robot_lock(robot_id: int) -> None:
    with _locks_guard:
        _robot_locks.pop(robot_id, None)


def _now(now: Optional[datetime]) -> datetime:
    return to_local_naive(now) if now is not None else datetime.now()


def to_local_naive(value: datetime) -> datetime:
    """Aware datetimes are moved to server-local time; stored values are naive."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def slot_for(start_time: datetime) -> Tuple[datetime, datetime]:
    """Return the (start, end) of the weekly slot beginning on ``start_time``'s date."""
    start = datetime.combine(to_local_naive(start_time).date(), time.min)
    if start.weekday() != WEDNESDAY:
        raise BookingRejected(Rejection.INVALID_DAY, INVALID_DAY_MESSAGE)
    return start, start + SLOT_LENGTH


def derive_status(booking: Booking, now: Optional[datetime] = None) -> BookingStatus:
    if booking.status == BookingStatus.CANCELLED:
        return BookingStatus.CANCELLED
    now = _now(now)
    if booking.start_time <= now <= booking.end_time:
        return BookingStatus.IN_PROGRESS
    return BookingStatus.SCHEDULED


def _live():
    return select(Booking).where(Booking.status != BookingStatus.CANCELLED)


# ---- availability ----
def overlapping_bookings(session: Session, robot_id: int, start: datetime, end: datetime) -> List[Booking]:
    stmt = _live().where(
        Booking.robot_id == robot_id,
        Booking.start_time <= end,
        Booking.end_time >= start,
    )
    return list(session.exec(stmt).all())

def is_time_slot_available(session: Session, robot_id: int, start: datetime, end: datetime) -> bool:
    return not overlapping_bookings(session, robot_id, to_local_naive(start), to_local_naive(end))

def has_active_bookings(session: Session, robot_id: int, now: Optional[datetime] = None) -> bool:
    # Scheduled or InProgress: live and not yet over
    stmt = _live().where(Booking.robot_id == robot_id, Booking.end_time >= _now(now))
    return session.exec(stmt).first() is not None

def next_available_time(session: Session, robot_id: int, now: Optional[datetime] = None) -> Optional[datetime]:
    stmt = (
        _live()
        .where(Booking.robot_id == robot_id, Booking.end_time > _now(now))
        .order_by(Booking.end_time)
    )
    booking = session.exec(stmt).first()
    return booking.end_time if booking else None


# ---- create / cancel ----
def create_booking(
    session: Session,
    robot_id: int,
    start_time: datetime,
    user_id: str,
    description: Optional[str] = None,
) -> Booking:
    start, end = slot_for(start_time)
    # only existing robots get a lock entry
    if session.get(Robot, robot_id) is None:
        logger.info("Booking rejected for unknown robot %s", robot_id)
        raise BookingRejected(Rejection.ROBOT_NOT_FOUND, ROBOT_NOT_FOUND_MESSAGE)

    with _robot_lock(robot_id):
        try:
            # row lock on databases that support it; no-op on sqlite
            robot = session.exec(
                select(Robot).where(Robot.id == robot_id).with_for_update().execution_options(populate_existing=True)
            ).first()
            if not robot:
                # deleted since the lookup above
                forget_robot_lock(robot_id)
                raise BookingRejected(Rejection.ROBOT_NOT_FOUND, ROBOT_NOT_FOUND_MESSAGE)
            if not robot.is_available:
                raise BookingRejected(Rejection.ROBOT_UNAVAILABLE, ROBOT_UNAVAILABLE_MESSAGE)
            if overlapping_bookings(session, robot_id, start, end):
                raise BookingRejected(Rejection.SLOT_TAKEN, SLOT_TAKEN_MESSAGE)

            booking = Booking(
                user_id=user_id,
                robot_id=robot_id,
                start_time=start,
                end_time=end,
                status=BookingStatus.SCHEDULED,
                description=description,
            )
            session.add(booking)
            session.commit()
        except BookingRejected as exc:
            session.rollback()
            logger.info("Booking rejected for robot %s starting %s: %s", robot_id, start.date(), exc.reason)
            raise

    session.refresh(booking)
    logger.info("User %s booked robot %s for week starting %s", user_id, robot_id, start.date())
    publish_booking_event(booking_event("booking.created", booking, user_id))
    return booking

def get_booking_for(session: Session, booking_id: int, user_id: str, is_admin: bool) -> Booking:
    booking = session.get(Booking, booking_id)
    if not booking:
        raise BookingRejected(Rejection.NOT_FOUND, BOOKING_NOT_FOUND_MESSAGE)
    if booking.user_id != user_id and not is_admin:
        raise BookingRejected(Rejection.FORBIDDEN, "Not allowed")
    return booking

def cancel_booking(session: Session, booking_id: int, user_id: str, is_admin: bool) -> None:
    """Owner or admin removes a booking; the row is deleted, freeing the week."""
    booking = get_booking_for(session, booking_id, user_id, is_admin)
    event = booking_event("booking.cancelled", booking, booking.user_id)
    session.delete(booking)
    session.commit()
    logger.info("Booking %s cancelled by %s", booking_id, user_id)
    publish_booking_event(event)


# ---- queries ----
def list_user_bookings(session: Session, user_id: str) -> List[Booking]:
    stmt = select(Booking).where(Booking.user_id == user_id).order_by(Booking.start_time.desc())
    return list(session.exec(stmt).all())

def list_all_bookings(session: Session) -> List[Booking]:
    return list(session.exec(_live().order_by(Booking.start_time.desc())).all())

def bookings_for_period(session: Session, robot_id: int, start: datetime, end: datetime) -> List[Booking]:
    stmt = _live().where(
        Booking.robot_id == robot_id,
        Booking.start_time >= to_local_naive(start),
        Booking.end_time <= to_local_naive(end),
    ).order_by(Booking.start_time)
    return list(session.exec(stmt).all())

def get_current_holder(session: Session, robot_id: int, now: Optional[datetime] = None) -> Optional[Booking]:
    """The booking covering ``now``, else the most recently ended one, else None."""
    now = _now(now)
    active = session.exec(
        _live().where(Booking.robot_id == robot_id, Booking.start_time <= now, Booking.end_time >= now)
    ).first()
    if active:
        return active
    return session.exec(
        _live().where(Booking.robot_id == robot_id, Booking.end_time < now).order_by(Booking.end_time.desc())
    ).first()

def get_next_booking(session: Session, robot_id: int, as_of: Optional[datetime] = None) -> Optional[Booking]:
    stmt = (
        _live()
        .where(Booking.robot_id == robot_id, Booking.start_time > _now(as_of))
        .order_by(Booking.start_time)
    )
    return session.exec(stmt).first()
