from typing import Optional
from datetime import datetime
from enum import Enum
from sqlmodel import SQLModel, Field
from sqlalchemy import DateTime, UniqueConstraint
from uuid import uuid4

def gen_uuid():
    return str(uuid4())

ROLE_USER = "User"
ROLE_ADMIN = "Admin"
ROLES = (ROLE_USER, ROLE_ADMIN)

class BookingStatus(str, Enum):
    SCHEDULED = "Scheduled"
    IN_PROGRESS = "InProgress"
    CANCELLED = "Cancelled"

class DocumentType(str, Enum):
    IMAGE = "image"
    PDF = "pdf"
    TEXT = "text"

class User(SQLModel, table=True):
    id: str = Field(default_factory=gen_uuid, primary_key=True)
    email: str = Field(index=True, unique=True)
    first_name: str = ""
    last_name: str = ""
    company: Optional[str] = None
    phone: Optional[str] = None
    password_hash: str
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime(timezone=False))

class UserRole(SQLModel, table=True):
    __tablename__ = "user_role"
    __table_args__ = (UniqueConstraint("user_id", "role", name="unique_user_role"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(foreign_key="user.id", index=True)
    role: str  # User|Admin

class Robot(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    is_available: bool = True

# start/end are naive server-local time
class Booking(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(foreign_key="user.id", index=True)
    robot_id: int = Field(foreign_key="robot.id", index=True)
    start_time: datetime = Field(index=True, sa_type=DateTime(timezone=False))
    end_time: datetime = Field(sa_type=DateTime(timezone=False))
    # only Scheduled/Cancelled are written; InProgress is derived on read
    status: BookingStatus = Field(default=BookingStatus.SCHEDULED)
    description: Optional[str] = None

class Document(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: Optional[str] = None
    file_path: str
    upload_date: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime(timezone=False))
    type: str  # pdf|image|text
    robot_id: int = Field(foreign_key="robot.id", index=True)
