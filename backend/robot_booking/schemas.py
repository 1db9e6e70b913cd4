from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .models import BookingStatus


class ApiModel(BaseModel):
    # camelCase on the wire, snake_case in Python
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# ---- account ----
class RegisterIn(ApiModel):
    email: str
    password: str
    first_name: str = ""
    last_name: str = ""
    company: Optional[str] = None
    phone: Optional[str] = None
    is_admin: bool = False

class LoginIn(ApiModel):
    email: str
    password: str

class UpdateUserIn(ApiModel):
    first_name: str
    last_name: str
    company: Optional[str] = None
    phone: Optional[str] = None

class ForgotPasswordIn(ApiModel):
    email: str

class ResetPasswordIn(ApiModel):
    email: str
    token: str
    new_password: str

class ChangePasswordIn(ApiModel):
    current_password: str
    new_password: str

class UserOut(ApiModel):
    id: str
    email: str
    first_name: str
    last_name: str
    company: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    is_admin: bool = False
    token: Optional[str] = None


# ---- robots & documents ----
class DocumentOut(ApiModel):
    id: int
    title: str
    description: Optional[str] = None
    file_path: str
    upload_date: datetime
    type: str
    robot_id: int

class RobotCreateIn(ApiModel):
    name: str = Field(max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)

class RobotUpdateIn(ApiModel):
    name: str = Field(max_length=100)
    description: str = Field(max_length=500)
    is_available: bool = True

class RobotOut(ApiModel):
    id: int
    name: str
    description: Optional[str] = None
    is_available: bool
    next_available_time: Optional[datetime] = None
    documents: List[DocumentOut] = []


# ---- bookings ----
class BookingCreateIn(ApiModel):
    robot_id: int
    start_time: datetime
    end_time: Optional[datetime] = None  # always recomputed from start_time
    description: Optional[str] = None

class BookingUserOut(ApiModel):
    id: str
    email: str
    first_name: str
    last_name: str
    company: Optional[str] = None
    phone: Optional[str] = None

class BookingOut(ApiModel):
    id: int
    robot_id: int
    user_id: str
    start_time: datetime
    end_time: datetime
    status: BookingStatus
    description: Optional[str] = None
    user: Optional[BookingUserOut] = None

class CurrentHolderOut(ApiModel):
    id: str
    email: str
    first_name: str
    last_name: str
    company: Optional[str] = None
    phone: Optional[str] = None
    is_admin: bool = False
    start_time: datetime
    end_time: datetime

class NextBookingOut(ApiModel):
    first_name: str
    last_name: str
    company: Optional[str] = None
    phone: Optional[str] = None
    email: str
    start_time: datetime
    end_time: datetime
    description: Optional[str] = None
    status: BookingStatus


# ---- calendar ----
class CalendarEventOut(ApiModel):
    id: int
    title: str
    start: datetime
    end: datetime
    is_current_user_booking: bool
    status: BookingStatus

class BusinessHoursOut(ApiModel):
    days_of_week: List[int]
    start_time: str
    end_time: str

class CalendarOut(ApiModel):
    events: List[CalendarEventOut]
    robot_available: bool
    business_hours: BusinessHoursOut
