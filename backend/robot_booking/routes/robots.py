from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, Query, Response, status
from sqlmodel import Session

from ..auth import Caller, require
from ..db import get_session
from ..errors import NotFound
from ..models import Robot
from ..schemas import (
    BusinessHoursOut,
    CalendarEventOut,
    CalendarOut,
    DocumentOut,
    RobotCreateIn,
    RobotOut,
    RobotUpdateIn,
)
from .. import bookings, robots, users

router = APIRouter(prefix="/api/robot", tags=["robots"])

BUSINESS_HOURS = BusinessHoursOut(days_of_week=[1, 2, 3, 4, 5], start_time="08:00", end_time="17:00")


def robot_out(session: Session, robot: Robot, with_documents: bool = True) -> RobotOut:
    documents = robots.documents_for(session, robot.id) if with_documents else []
    return RobotOut(
        id=robot.id,
        name=robot.name,
        description=robot.description,
        is_available=robot.is_available,
        next_available_time=bookings.next_available_time(session, robot.id),
        documents=[DocumentOut.model_validate(d) for d in documents],
    )


@router.get("", response_model=List[RobotOut])
def list_robots(caller: Caller = Depends(require("robots:read")), session: Session = Depends(get_session)):
    found = robots.list_robots(session)
    if not found:
        raise NotFound("No robots found in system")
    return [robot_out(session, r, with_documents=False) for r in found]


@router.get("/calendar", response_model=CalendarOut)
def calendar(
    start: datetime,
    end: datetime,
    robot_id: int = Query(default=1, alias="robotId"),
    caller: Caller = Depends(require("robots:read")),
    session: Session = Depends(get_session),
):
    robot = robots.require_robot(session, robot_id)
    events = []
    for booking in bookings.bookings_for_period(session, robot_id, start, end):
        owner = users.get_user(session, booking.user_id)
        events.append(CalendarEventOut(
            id=booking.id,
            title=f"Booked by {owner.email if owner else 'okänd'}",
            start=booking.start_time,
            end=booking.end_time,
            is_current_user_booking=booking.user_id == caller.id,
            status=bookings.derive_status(booking),
        ))
    return CalendarOut(events=events, robot_available=robot.is_available, business_hours=BUSINESS_HOURS)


@router.post("", response_model=RobotOut, status_code=status.HTTP_201_CREATED)
def create_robot(body: RobotCreateIn, caller: Caller = Depends(require("robots:write")), session: Session = Depends(get_session)):
    robot = robots.create_robot(session, body.name, body.description)
    return robot_out(session, robot)


@router.get("/{robot_id}", response_model=RobotOut)
def get_robot(robot_id: int, caller: Caller = Depends(require("robots:read")), session: Session = Depends(get_session)):
    return robot_out(session, robots.require_robot(session, robot_id))


@router.put("/{robot_id}", response_model=RobotOut)
def update_robot(
    robot_id: int,
    body: RobotUpdateIn,
    caller: Caller = Depends(require("robots:write")),
    session: Session = Depends(get_session),
):
    robot = robots.require_robot(session, robot_id)
    robot = robots.update_robot(session, robot, body.name, body.description, body.is_available)
    return robot_out(session, robot)


@router.delete("/{robot_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_robot(robot_id: int, caller: Caller = Depends(require("robots:write")), session: Session = Depends(get_session)):
    robots.delete_robot(session, robot_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
