import logging
from datetime import date
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from library_api.config import settings
from library_api.models.book import Book
from library_api.models.loan import Loan, LoanStatus
from library_api.models.member import Member
from library_api.services import loan_rules
from library_api.services.errors import NotFoundError
from library_api.utils.timezone import today_local

logger = logging.getLogger(__name__)


class LoanService:
    """Checkout, return and renewal against the database.

    Each public mutation is one transaction: rows are locked, rules from
    ``loan_rules`` are applied, and the session is committed. Any exception
    rolls the whole unit back.
    """

    def __init__(self, db: Session, clock: Callable[[], date] = today_local):
        self.db = db
        self.clock = clock

    # Lookups

    def _get_book(self, book_id: int, lock: bool = False) -> Book:
        query = self.db.query(Book).filter(Book.book_id == book_id)
        if lock:
            query = query.with_for_update()
        book = query.first()
        if not book:
            raise NotFoundError(f"Book not found with ID: {book_id}")
        return book

    def _get_member(self, member_id: int, lock: bool = False) -> Member:
        query = self.db.query(Member).filter(Member.member_id == member_id)
        if lock:
            query = query.with_for_update()
        member = query.first()
        if not member:
            raise NotFoundError(f"Member not found with ID: {member_id}")
        return member

    def _get_loan(self, loan_id: int, lock: bool = False) -> Loan:
        query = self.db.query(Loan).filter(Loan.loan_id == loan_id)
        if lock:
            query = query.with_for_update()
        loan = query.first()
        if not loan:
            raise NotFoundError(f"Loan not found with ID: {loan_id}")
        return loan

    def _outstanding(self, member_id: int):
        return self.db.query(Loan).filter(
            Loan.member_id == member_id,
            Loan.return_date.is_(None)
        )

    def active_loan_count(self, member_id: int) -> int:
        return self._outstanding(member_id).count()

    def member_standing(self, member: Member, book_id: Optional[int] = None) -> loan_rules.MemberStanding:
        outstanding = self._outstanding(member.member_id)
        holds_same_book = False
        if book_id is not None:
            holds_same_book = outstanding.filter(Loan.book_id == book_id).first() is not None
        return loan_rules.MemberStanding(
            active=member.active,
            borrow_limit=member.borrow_limit,
            active_loan_count=outstanding.count(),
            holds_same_book=holds_same_book,
            overdue_loan_count=outstanding.filter(Loan.due_date < self.clock()).count(),
        )

    # Transitions

    def create_loan(self, book_id: int, member_id: int, notes: Optional[str] = None) -> Loan:
        logger.info(f"Creating loan - Book ID: {book_id}, Member ID: {member_id}")
        try:
            book = self._get_book(book_id, lock=True)
            loan_rules.check_book_lendable(book.active, book.available_copies)

            member = self._get_member(member_id, lock=True)
            loan_rules.check_member_eligible(self.member_standing(member, book_id=book.book_id))

            transition = loan_rules.open_loan(
                self.clock(),
                member.lending_terms.loan_period_days,
                book.daily_fine_rate,
            )
            book.available_copies = loan_rules.shift_copies(
                book.available_copies, book.total_copies, transition.copies_delta
            )

            state = transition.loan
            loan = Loan(
                book_id=book.book_id,
                member_id=member.member_id,
                loan_date=state.loan_date,
                due_date=state.due_date,
                status=state.status.value,
                daily_fine_rate=state.daily_fine_rate,
                notes=notes,
            )
            self.db.add(loan)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(loan)
        logger.info(f"Loan {loan.loan_id} created, due {loan.due_date.isoformat()}")
        return loan

    def return_loan(self, loan_id: int) -> Loan:
        logger.info(f"Returning loan ID: {loan_id}")
        try:
            loan = self._get_loan(loan_id, lock=True)
            transition = loan_rules.close_loan(loan.snapshot(), self.clock())

            book = self._get_book(loan.book_id, lock=True)
            book.available_copies = loan_rules.shift_copies(
                book.available_copies, book.total_copies, transition.copies_delta
            )
            loan.apply(transition.loan)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(loan)
        logger.info(f"Loan {loan_id} returned")
        if loan.fine_amount is not None and loan.fine_amount > 0:
            logger.info(f"Fine charged on loan {loan_id}: {loan.fine_amount}")
        return loan

    def renew_loan(self, loan_id: int, days: int) -> Loan:
        logger.info(f"Renewing loan ID: {loan_id} for {days} days")
        loan_rules.check_renewal_days(days, settings.max_renewal_days)
        try:
            loan = self._get_loan(loan_id, lock=True)
            transition = loan_rules.extend_loan(
                loan.snapshot(), days, self.clock(), settings.max_renewal_days
            )
            loan.apply(transition.loan)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(loan)
        logger.info(f"Loan {loan_id} renewed. New due date: {loan.due_date.isoformat()}")
        return loan

    # Queries

    def get_loan(self, loan_id: int) -> Loan:
        return self._get_loan(loan_id)

    def list_loans(self, status: Optional[LoanStatus] = None, skip: int = 0, limit: int = 20) -> List[Loan]:
        query = self.db.query(Loan)
        if status:
            query = query.filter(Loan.status == LoanStatus(status).value)
        return query.order_by(Loan.loan_date.desc(), Loan.loan_id.desc()).offset(skip).limit(limit).all()

    def list_member_loans(self, member_id: int, skip: int = 0, limit: int = 20) -> List[Loan]:
        self._get_member(member_id)
        return self.db.query(Loan).filter(
            Loan.member_id == member_id
        ).order_by(Loan.loan_date.desc(), Loan.loan_id.desc()).offset(skip).limit(limit).all()

    def list_overdue(self) -> List[Loan]:
        return self.db.query(Loan).filter(
            Loan.return_date.is_(None),
            Loan.due_date < self.clock()
        ).order_by(Loan.due_date.asc()).all()
