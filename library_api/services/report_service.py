import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from library_api.models.book import Book
from library_api.models.loan import Loan, LoanStatus
from library_api.models.member import Member
from library_api.services.errors import RuleViolation
from library_api.utils.timezone import today_local

logger = logging.getLogger(__name__)


class ReportService:
    """Read-only aggregations over books, members and loans."""

    def __init__(self, db: Session, clock: Callable[[], date] = today_local):
        self.db = db
        self.clock = clock

    def summary(self) -> Dict:
        logger.info("Generating library summary report")
        today = self.clock()
        outstanding = self.db.query(Loan).filter(Loan.return_date.is_(None))
        fines = self.db.query(func.coalesce(func.sum(Loan.fine_amount), 0)).scalar()
        return {
            "totalBooks": self.db.query(Book).count(),
            "totalMembers": self.db.query(Member).count(),
            "totalLoans": self.db.query(Loan).count(),
            "activeLoans": outstanding.count(),
            "renewedLoans": self.db.query(Loan).filter(Loan.status == LoanStatus.RENEWED.value).count(),
            "overdueLoans": outstanding.filter(Loan.due_date < today).count(),
            "finesCharged": float(Decimal(fines)),
            "unavailableBooks": self.db.query(Book).filter(Book.available_copies == 0).count(),
            "generatedOn": today.isoformat(),
        }

    def top_books(self, limit: int = 10) -> List[Dict]:
        logger.info(f"Generating most borrowed books report - limit {limit}")
        rows = (
            self.db.query(Book, func.count(Loan.loan_id).label("loan_count"))
            .join(Loan, Loan.book_id == Book.book_id)
            .group_by(Book.book_id)
            .order_by(func.count(Loan.loan_id).desc(), Book.title)
            .limit(limit)
            .all()
        )
        return [{"book": book.to_dict(), "loanCount": count} for book, count in rows]

    def top_members(self, limit: int = 10) -> List[Dict]:
        logger.info(f"Generating most active members report - limit {limit}")
        rows = (
            self.db.query(Member, func.count(Loan.loan_id).label("loan_count"))
            .join(Loan, Loan.member_id == Member.member_id)
            .group_by(Member.member_id)
            .order_by(func.count(Loan.loan_id).desc(), Member.name)
            .limit(limit)
            .all()
        )
        return [{"member": member.to_dict(), "loanCount": count} for member, count in rows]

    def loans_due_between(self, start: date, end: date) -> Dict:
        """Outcome of the loans whose due date falls inside [start, end]."""
        if end < start:
            raise RuleViolation("Report period end must not be before its start")
        logger.info(f"Generating loan period report: {start} to {end}")
        loans = self.db.query(Loan).filter(Loan.due_date.between(start, end)).all()

        returned_on_time = sum(1 for l in loans if l.return_date is not None and l.return_date <= l.due_date)
        returned_late = sum(1 for l in loans if l.return_date is not None and l.return_date > l.due_date)
        still_out = sum(1 for l in loans if l.return_date is None)
        fines = sum((l.fine_amount for l in loans if l.fine_amount is not None), Decimal("0"))

        return {
            "period": {"start": start.isoformat(), "end": end.isoformat()},
            "totalLoans": len(loans),
            "returnedOnTime": returned_on_time,
            "returnedLate": returned_late,
            "stillOut": still_out,
            "finesCharged": float(fines),
            "generatedOn": self.clock().isoformat(),
        }

    def due_soon(self, days: int = 3) -> List[Loan]:
        today = self.clock()
        return self.db.query(Loan).filter(
            Loan.return_date.is_(None),
            Loan.due_date.between(today, today + timedelta(days=days))
        ).order_by(Loan.due_date.asc()).all()

    def books_by_category(self) -> Dict[str, int]:
        rows = (
            self.db.query(Book.category, func.count(Book.book_id))
            .filter(Book.category.isnot(None))
            .group_by(Book.category)
            .all()
        )
        return {category: count for category, count in rows}
