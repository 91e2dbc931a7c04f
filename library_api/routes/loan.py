from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from library_api.database import get_db
from library_api.config import settings
from library_api.models.loan import LoanStatus
from library_api.services.auth import get_current_librarian
from library_api.services.loan_service import LoanService
from library_api.schemas.loan import LoanCreate, LoanResponse

router = APIRouter(
    prefix="/api/loans",
    tags=["Loans"],
    dependencies=[Depends(get_current_librarian)]
)

@router.post("", response_model=LoanResponse, status_code=status.HTTP_201_CREATED)
async def create_loan(loan_data: LoanCreate, db: Session = Depends(get_db)):
    """Check a book out to a member.
    Fails with 404 for unknown book or member, 400 when a lending rule blocks it."""
    loan = LoanService(db).create_loan(loan_data.book_id, loan_data.member_id, loan_data.notes)
    return LoanResponse(**loan.to_dict())

@router.get("", response_model=List[LoanResponse])
async def list_loans(
    status_filter: Optional[LoanStatus] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db)
):
    loans = LoanService(db).list_loans(status_filter, skip, limit)
    return [LoanResponse(**loan.to_dict()) for loan in loans]

@router.get("/overdue", response_model=List[LoanResponse])
async def list_overdue_loans(db: Session = Depends(get_db)):
    """Loans past their due date and not yet returned, oldest due date first."""
    return [LoanResponse(**loan.to_dict()) for loan in LoanService(db).list_overdue()]

@router.get("/member/{member_id}", response_model=List[LoanResponse])
async def list_member_loans(
    member_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db)
):
    loans = LoanService(db).list_member_loans(member_id, skip, limit)
    return [LoanResponse(**loan.to_dict()) for loan in loans]

@router.get("/{loan_id}", response_model=LoanResponse)
async def get_loan(loan_id: int, db: Session = Depends(get_db)):
    return LoanResponse(**LoanService(db).get_loan(loan_id).to_dict())

@router.patch("/{loan_id}/return", response_model=LoanResponse)
async def return_loan(loan_id: int, db: Session = Depends(get_db)):
    """Record the return of a loan, charging a fine when it comes back late."""
    return LoanResponse(**LoanService(db).return_loan(loan_id).to_dict())

@router.patch("/{loan_id}/renew", response_model=LoanResponse)
async def renew_loan(
    loan_id: int,
    days: int = Query(settings.default_renewal_days, description="Days to add to the due date"),
    db: Session = Depends(get_db)
):
    """Push the due date back. Overdue and returned loans cannot be renewed."""
    return LoanResponse(**LoanService(db).renew_loan(loan_id, days).to_dict())
