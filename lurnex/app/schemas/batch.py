"""Batch schemas."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class BatchAssignmentBase(BaseModel):
    subject: str = Field(min_length=1)
    trainer_id: int
    timing: str = Field(min_length=1)


class BatchAssignmentRead(BatchAssignmentBase):
    id: int

    model_config = ConfigDict(from_attributes=True)


class BatchCreate(BaseModel):
    name: str = Field(min_length=1)
    course: str = "General"
    assignments: List[BatchAssignmentBase] = Field(min_length=1)
    is_active: bool = True


class BatchUpdate(BaseModel):
    name: Optional[str] = None
    course: Optional[str] = None
    assignments: Optional[List[BatchAssignmentBase]] = Field(default=None, min_length=1)
    is_active: Optional[bool] = None


class BatchRead(BaseModel):
    id: int
    name: str
    course: str
    is_active: bool
    assignments: List[BatchAssignmentRead]

    model_config = ConfigDict(from_attributes=True)


class BatchDetail(BatchRead):
    student_ids: List[int] = []
    session_ids: List[int] = []
