import datetime as dt

from pydantic import BaseModel


class AvailableAssessmentRead(BaseModel):
    id: int
    title: str
    questions: int
    duration: int


class CompletedAssessmentRead(BaseModel):
    id: int
    title: str
    score: str
    date: dt.date
