"""Class session schemas: scheduling requests, settlement and read models."""

from datetime import date, datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class RecurrencePayload(BaseModel):
    enabled: bool = False
    frequency: Literal["daily", "weekly", "monthly"] = "weekly"
    interval: int = Field(default=1, ge=1)
    # 0 = Sunday ... 6 = Saturday
    weekdays: Optional[List[int]] = None
    end_type: Literal["count", "date", "never"] = "never"
    count: Optional[int] = Field(default=None, ge=1)
    until: Optional[Union[datetime, date]] = None


class ClassScheduleCreate(BaseModel):
    title: str
    trainer_id: int
    start_time: datetime
    end_time: datetime
    batch_id: Optional[int] = None
    student_ids: Optional[List[int]] = None


class ClassBulkCreate(ClassScheduleCreate):
    recurrence: Optional[RecurrencePayload] = None


class ClassSessionRead(BaseModel):
    id: int
    title: str
    trainer_id: int
    start_time: datetime
    end_time: datetime
    join_url: str
    recording_url: Optional[str] = None
    batch_id: Optional[int] = None
    student_ids: List[int] = []
    status: str
    remark: Optional[str] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ClassBulkResponse(BaseModel):
    count: int
    classes: List[ClassSessionRead]


class RecordingUpdate(BaseModel):
    recording_url: str


class CompleteRequest(BaseModel):
    remark: Optional[str] = None


class CancelRequest(BaseModel):
    cancelled_by: Optional[Literal["student", "trainer", "admin"]] = None
    reason: Optional[str] = None


class SettlementResponse(BaseModel):
    message: str
    hours: Optional[float] = None
    student_ids: List[int] = []
    session: ClassSessionRead


class StudentClassRead(BaseModel):
    id: int
    title: str
    trainer: str
    start_time: datetime
    end_time: datetime
    join_url: Optional[str] = None
    recording_url: Optional[str] = None
    status: str


class TrainerClassRead(BaseModel):
    id: int
    title: str
    start_time: datetime
    end_time: datetime
    join_url: str
    status: str
    students_enrolled: int
