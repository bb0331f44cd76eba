"""Student assessment listings: what is still open and what has been scored."""

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from lurnex.app.core.time import ensure_utc
from lurnex.app.db.session import get_db
from lurnex.app.dependencies.auth import get_current_student
from lurnex.app.models.assessment import Assessment, Submission
from lurnex.app.models.user import User
from lurnex.app.schemas.assessment import AvailableAssessmentRead, CompletedAssessmentRead

router = APIRouter(prefix="/assessments", tags=["assessments"])


@router.get("/available", response_model=list[AvailableAssessmentRead])
async def available_assessments(
    db: Session = Depends(get_db),
    current_student: User = Depends(get_current_student),
):
    submitted = select(Submission.assessment_id).where(Submission.student_id == current_student.id)
    assessments = (
        db.query(Assessment)
        .filter(~Assessment.id.in_(submitted))
        .order_by(Assessment.id.asc())
        .all()
    )
    return [
        AvailableAssessmentRead(
            id=assessment.id,
            title=assessment.title,
            questions=len(assessment.questions or []),
            duration=assessment.duration_minutes,
        )
        for assessment in assessments
    ]


@router.get("/completed", response_model=list[CompletedAssessmentRead])
async def completed_assessments(
    db: Session = Depends(get_db),
    current_student: User = Depends(get_current_student),
):
    submissions = (
        db.query(Submission)
        .options(joinedload(Submission.assessment))
        .filter(Submission.student_id == current_student.id)
        .order_by(Submission.submitted_at.desc(), Submission.id.desc())
        .all()
    )
    return [
        CompletedAssessmentRead(
            id=submission.id,
            title=submission.assessment.title,
            score=submission.score,
            date=ensure_utc(submission.submitted_at).date(),
        )
        for submission in submissions
    ]
