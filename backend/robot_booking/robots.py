import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete
from sqlmodel import Session, select

from .bookings import forget_robot_lock, has_active_bookings
from .documents import remove_file
from .errors import BookingRejected, NotFound, Rejection
from .models import Booking, Document, Robot

logger = logging.getLogger(__name__)

ROBOT_NOT_FOUND_MESSAGE = "Robot not found"


def list_robots(session: Session) -> List[Robot]:
    return list(session.exec(select(Robot).order_by(Robot.id)).all())

def get_robot(session: Session, robot_id: int) -> Optional[Robot]:
    return session.get(Robot, robot_id)

def require_robot(session: Session, robot_id: int) -> Robot:
    robot = session.get(Robot, robot_id)
    if not robot:
        raise NotFound(ROBOT_NOT_FOUND_MESSAGE)
    return robot

def documents_for(session: Session, robot_id: int) -> List[Document]:
    stmt = select(Document).where(Document.robot_id == robot_id).order_by(Document.upload_date.desc())
    return list(session.exec(stmt).all())

def create_robot(session: Session, name: str, description: Optional[str] = None) -> Robot:
    robot = Robot(name=name, description=description, is_available=True)
    session.add(robot)
    session.commit()
    session.refresh(robot)
    logger.info("Admin created new robot: %s", robot.name)
    return robot

def update_robot(session: Session, robot: Robot, name: str, description: Optional[str], is_available: bool) -> Robot:
    robot.name = name
    robot.description = description
    robot.is_available = is_available
    session.add(robot)
    session.commit()
    session.refresh(robot)
    logger.info("Admin updated robot: %s", robot.name)
    return robot

def delete_robot(session: Session, robot_id: int, now: Optional[datetime] = None) -> None:
    """Delete a robot with no active bookings; bookings and documents go first."""
    robot = require_robot(session, robot_id)
    if has_active_bookings(session, robot_id, now=now):
        raise BookingRejected(Rejection.HAS_ACTIVE_BOOKINGS, "Cannot delete robot with active bookings")

    name = robot.name
    paths = [d.file_path for d in documents_for(session, robot_id)]
    session.exec(delete(Booking).where(Booking.robot_id == robot_id))
    session.exec(delete(Document).where(Document.robot_id == robot_id))
    session.delete(robot)
    session.commit()
    forget_robot_lock(robot_id)

    for path in paths:
        remove_file(path)
    logger.info("Admin deleted robot: %s", name)
