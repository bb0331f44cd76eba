"""Admin dashboard and MIS reporting schemas."""

from datetime import date
from typing import List

from pydantic import BaseModel


class AdminStats(BaseModel):
    total_students: int
    active_trainers: int
    live_classes: int


class MisStats(BaseModel):
    total_active_students: int
    total_hours_remaining: float
    total_trainers: int
    total_hours_taught: float
    classes_completed: int
    classes_scheduled: int
    classes_cancelled: int


class HistoryStudent(BaseModel):
    id: int
    name: str
    email: str
    hours_remaining: float


class TrainerHistoryItem(BaseModel):
    id: int
    title: str
    date: date
    trainer_name: str
    duration: float
    students: List[HistoryStudent]
