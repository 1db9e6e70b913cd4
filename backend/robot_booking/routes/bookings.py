from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlmodel import Session

from ..auth import Caller, require
from ..db import get_session
from ..errors import NotFound
from ..models import Booking
from ..schemas import BookingCreateIn, BookingOut, BookingUserOut, CurrentHolderOut, NextBookingOut
from .. import bookings, users

router = APIRouter(prefix="/api/bookings", tags=["bookings"])


def booking_out(session: Session, booking: Booking) -> BookingOut:
    owner = users.get_user(session, booking.user_id)
    return BookingOut(
        id=booking.id,
        robot_id=booking.robot_id,
        user_id=booking.user_id,
        start_time=booking.start_time,
        end_time=booking.end_time,
        status=bookings.derive_status(booking),
        description=booking.description,
        user=BookingUserOut.model_validate(owner) if owner else None,
    )


@router.post("", response_model=BookingOut, status_code=status.HTTP_201_CREATED)
def create_booking(
    body: BookingCreateIn,
    caller: Caller = Depends(require("bookings:create")),
    session: Session = Depends(get_session),
):
    booking = bookings.create_booking(
        session, body.robot_id, body.start_time, caller.id, description=body.description
    )
    return booking_out(session, booking)


@router.get("/my-bookings", response_model=List[BookingOut])
def my_bookings(caller: Caller = Depends(require("bookings:read")), session: Session = Depends(get_session)):
    return [booking_out(session, b) for b in bookings.list_user_bookings(session, caller.id)]


@router.get("/all-bookings", response_model=List[BookingOut])
def all_bookings(caller: Caller = Depends(require("bookings:read")), session: Session = Depends(get_session)):
    return [booking_out(session, b) for b in bookings.list_all_bookings(session)]


@router.get("/current-holder/{robot_id}", response_model=Optional[CurrentHolderOut])
def current_holder(robot_id: int, caller: Caller = Depends(require("bookings:read")), session: Session = Depends(get_session)):
    booking = bookings.get_current_holder(session, robot_id)
    if booking is None:
        return None
    holder = users.get_user(session, booking.user_id)
    if holder is None:
        raise NotFound("Ingen användare är associerad med bokningen.")
    return CurrentHolderOut(
        id=holder.id,
        email=holder.email,
        first_name=holder.first_name,
        last_name=holder.last_name,
        company=holder.company,
        phone=holder.phone,
        is_admin=users.is_admin(session, holder.id),
        start_time=booking.start_time,
        end_time=booking.end_time,
    )


@router.get("/next-booking/{robot_id}", response_model=Optional[NextBookingOut])
def next_booking(
    robot_id: int,
    as_of: Optional[datetime] = Query(default=None, alias="asOf"),
    caller: Caller = Depends(require("bookings:read")),
    session: Session = Depends(get_session),
):
    booking = bookings.get_next_booking(session, robot_id, as_of)
    if booking is None:
        return None
    holder = users.require_user(session, booking.user_id)
    return NextBookingOut(
        first_name=holder.first_name,
        last_name=holder.last_name,
        company=holder.company,
        phone=holder.phone,
        email=holder.email,
        start_time=booking.start_time,
        end_time=booking.end_time,
        description=booking.description,
        status=bookings.derive_status(booking),
    )


@router.get("/{booking_id}", response_model=BookingOut)
def get_booking(booking_id: int, caller: Caller = Depends(require("bookings:read")), session: Session = Depends(get_session)):
    booking = bookings.get_booking_for(session, booking_id, caller.id, caller.is_admin)
    return booking_out(session, booking)


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
def cancel_booking(booking_id: int, caller: Caller = Depends(require("bookings:cancel")), session: Session = Depends(get_session)):
    bookings.cancel_booking(session, booking_id, caller.id, caller.is_admin)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
