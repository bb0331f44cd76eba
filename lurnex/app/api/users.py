"""Self-service endpoints for the logged-in student."""

from decimal import Decimal

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from lurnex.app.core.security import get_current_user
from lurnex.app.db.session import get_db
from lurnex.app.dependencies.auth import get_current_student
from lurnex.app.models.purchase_request import PurchaseRequest
from lurnex.app.models.user import User
from lurnex.app.schemas.user import (
    HoursLedgerEntryRead,
    ProfileRead,
    ProfileUpdate,
    PurchaseRequestCreate,
    PurchaseRequestRead,
)

router = APIRouter(prefix="/users", tags=["users"])


def _profile(user: User) -> ProfileRead:
    return ProfileRead(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        status=user.status,
        mobile=user.mobile,
        course=user.course,
        grade=user.grade,
        school=user.school,
        hours_balance=float(user.hours_balance or 0),
        batch_id=user.batch_id,
        batch_name=user.batch.name if user.batch else None,
        is_one_on_one=user.is_one_on_one,
        is_temporary_password=user.is_temporary_password,
        hours_history=[HoursLedgerEntryRead.model_validate(entry) for entry in user.hours_ledger],
    )


@router.get("/me", response_model=ProfileRead)
async def get_me(current_user: User = Depends(get_current_user)):
    return _profile(current_user)


@router.patch("/me", response_model=ProfileRead)
async def update_me(
    profile_in: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    for field, value in profile_in.model_dump(exclude_unset=True).items():
        if value:
            setattr(current_user, field, value)
    db.commit()
    db.refresh(current_user)
    return _profile(current_user)


@router.post("/purchase-request", response_model=PurchaseRequestRead, status_code=201)
async def create_purchase_request(
    request_in: PurchaseRequestCreate,
    db: Session = Depends(get_db),
    current_student: User = Depends(get_current_student),
):
    purchase = PurchaseRequest(
        user_id=current_student.id,
        hours=Decimal(str(request_in.hours)),
        price=Decimal(str(request_in.price)),
        status="pending",
    )
    db.add(purchase)
    db.commit()
    db.refresh(purchase)
    return purchase
