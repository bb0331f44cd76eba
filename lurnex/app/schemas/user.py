"""Account schemas for registration, admin management and profiles."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class LoginRequest(BaseModel):
    email: EmailStr
    password: str
    role: Optional[Literal["student", "trainer", "admin"]] = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    id: int
    name: str
    email: EmailStr
    role: str
    status: str
    is_temporary_password: bool


class StudentRegister(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    mobile: str = Field(min_length=1)
    course: str = Field(min_length=1)
    grade: str = Field(min_length=1)
    school: str = Field(min_length=1)


class StudentCreate(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    mobile: Optional[str] = None
    course: Optional[str] = None
    grade: Optional[str] = None
    school: Optional[str] = None
    hours_balance: Optional[float] = Field(default=None, ge=0)


class StudentUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    mobile: Optional[str] = None
    course: Optional[str] = None
    grade: Optional[str] = None
    school: Optional[str] = None
    hours_balance: Optional[float] = None


class StudentRead(BaseModel):
    id: int
    name: str
    email: EmailStr
    mobile: Optional[str] = None
    course: Optional[str] = None
    grade: Optional[str] = None
    school: Optional[str] = None
    status: str
    hours_balance: float
    batch_id: Optional[int] = None
    is_one_on_one: bool

    model_config = ConfigDict(from_attributes=True)


class StudentStatusUpdate(BaseModel):
    status: Literal["pending", "paid"]


class StudentTransfer(BaseModel):
    batch_id: Optional[int] = None
    is_one_on_one: Optional[bool] = None


class AddHoursRequest(BaseModel):
    hours: float = Field(gt=0)
    date: datetime
    notes: Optional[str] = None


class PasswordChange(BaseModel):
    new_password: str = Field(min_length=1)
    is_temporary: bool = False


class PasswordChangeResponse(BaseModel):
    message: str
    student_id: int
    new_password: str


class CredentialHistoryRead(BaseModel):
    changed_at: datetime
    is_temporary: bool
    changed_by_id: Optional[int] = None
    password_hash_preview: Optional[str] = None


class CredentialHistoryResponse(BaseModel):
    student: StudentRead
    history: List[CredentialHistoryRead]


class HoursLedgerEntryRead(BaseModel):
    id: int
    delta: float
    effective_date: datetime
    note: Optional[str] = None
    session_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class TeachingLedgerEntryRead(HoursLedgerEntryRead):
    pass


class TrainerCreate(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: Optional[str] = None
    mobile: Optional[str] = None
    subject: Optional[str] = None


class TrainerUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    mobile: Optional[str] = None
    subject: Optional[str] = None


class TrainerRead(BaseModel):
    id: int
    name: str
    email: EmailStr
    mobile: Optional[str] = None
    subject: Optional[str] = None
    role: str
    hours_taught: float

    model_config = ConfigDict(from_attributes=True)


class ProfileRead(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: str
    status: str
    mobile: Optional[str] = None
    course: Optional[str] = None
    grade: Optional[str] = None
    school: Optional[str] = None
    hours_balance: float
    batch_id: Optional[int] = None
    batch_name: Optional[str] = None
    is_one_on_one: bool
    is_temporary_password: bool
    hours_history: List[HoursLedgerEntryRead] = []


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    mobile: Optional[str] = None
    course: Optional[str] = None
    grade: Optional[str] = None
    school: Optional[str] = None


class PurchaseRequestCreate(BaseModel):
    hours: float = Field(gt=0)
    price: float = Field(gt=0)


class PurchaseRequestRead(BaseModel):
    id: int
    hours: float
    price: float
    status: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
