"""Registration and login endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from lurnex.app.core.security import create_access_token, get_current_user
from lurnex.app.db.session import get_db
from lurnex.app.models.user import User
from lurnex.app.schemas.user import LoginRequest, StudentRead, StudentRegister, TokenResponse
from lurnex.app.services import accounts

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register-student", status_code=status.HTTP_201_CREATED)
def register_student(student_in: StudentRegister, db: Session = Depends(get_db)):
    # The placeholder password is never sent; approval issues the real credentials
    student, _ = accounts.create_account(
        db,
        role="student",
        name=student_in.name,
        email=student_in.email,
        mobile=student_in.mobile,
        course=student_in.course,
        grade=student_in.grade,
        school=student_in.school,
    )
    return {
        "id": student.id,
        "name": student.name,
        "email": student.email,
        "status": student.status,
        "message": "Registration successful! Awaiting admin approval.",
    }


@router.post("/login", response_model=TokenResponse)
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    user = accounts.authenticate(db, credentials.email, credentials.password, credentials.role)
    return TokenResponse(
        access_token=create_access_token(user_id=user.id),
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        status=user.status,
        is_temporary_password=user.is_temporary_password,
    )


@router.get("/me", response_model=StudentRead)
async def read_me(current_user: User = Depends(get_current_user)):
    return current_user
