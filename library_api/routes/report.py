from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List
from datetime import date
from library_api.database import get_db
from library_api.services.auth import get_current_librarian
from library_api.services.report_service import ReportService
from library_api.schemas.loan import LoanResponse
from library_api.schemas.report import (
    SummaryReport, PeriodReport, CategoryReport,
    TopBooksReport, TopMembersReport
)

router = APIRouter(
    prefix="/api/reports",
    tags=["Reports"],
    dependencies=[Depends(get_current_librarian)]
)

@router.get("/summary", response_model=SummaryReport)
async def get_summary(db: Session = Depends(get_db)):
    return SummaryReport(**ReportService(db).summary())

@router.get("/top-books", response_model=TopBooksReport)
async def get_top_books(limit: int = Query(10, ge=1, le=100), db: Session = Depends(get_db)):
    return TopBooksReport(books=ReportService(db).top_books(limit))

@router.get("/top-members", response_model=TopMembersReport)
async def get_top_members(limit: int = Query(10, ge=1, le=100), db: Session = Depends(get_db)):
    return TopMembersReport(members=ReportService(db).top_members(limit))

@router.get("/period", response_model=PeriodReport)
async def get_period_report(
    start: date = Query(..., description="First due date included"),
    end: date = Query(..., description="Last due date included"),
    db: Session = Depends(get_db)
):
    return PeriodReport(**ReportService(db).loans_due_between(start, end))

@router.get("/due-soon", response_model=List[LoanResponse])
async def get_due_soon(days: int = Query(3, ge=0, le=60), db: Session = Depends(get_db)):
    """Loans still out that fall due within the next ``days`` days."""
    return [LoanResponse(**loan.to_dict()) for loan in ReportService(db).due_soon(days)]

@router.get("/categories", response_model=CategoryReport)
async def get_books_by_category(db: Session = Depends(get_db)):
    return CategoryReport(categories=ReportService(db).books_by_category())
