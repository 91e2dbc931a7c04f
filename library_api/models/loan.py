from sqlalchemy import Column, String, Date, DateTime, Integer, Numeric, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from library_api.database import Base
from library_api.services import loan_rules
from library_api.services.loan_rules import LoanStatus
from library_api.utils.timezone import today_local


class Loan(Base):
    __tablename__ = "loan"

    loan_id = Column(Integer, primary_key=True, autoincrement=True)
    book_id = Column(Integer, ForeignKey("book.book_id", ondelete="RESTRICT"), nullable=False, index=True)
    member_id = Column(Integer, ForeignKey("member.member_id", ondelete="RESTRICT"), nullable=False, index=True)
    loan_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False, index=True)
    return_date = Column(Date, nullable=True)
    status = Column(String(20), default=LoanStatus.ACTIVE.value, nullable=False, index=True)
    daily_fine_rate = Column(Numeric(10, 2), nullable=True)  # Book's rate when the loan was opened
    fine_amount = Column(Numeric(10, 2), nullable=True)
    notes = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Many-to-one lookups only; books and members keep no loan collections
    book = relationship("Book")
    member = relationship("Member")

    __table_args__ = (
        CheckConstraint("status IN ('ACTIVE', 'RENEWED', 'RETURNED')", name="chk_loan_status"),
        CheckConstraint("due_date >= loan_date", name="chk_loan_due_after_loan"),
        CheckConstraint(
            "(return_date IS NULL AND status != 'RETURNED') OR "
            "(return_date IS NOT NULL AND status = 'RETURNED')",
            name="chk_loan_return_date_status",
        ),
    )

    def snapshot(self) -> loan_rules.LoanState:
        return loan_rules.LoanState(
            loan_date=self.loan_date,
            due_date=self.due_date,
            return_date=self.return_date,
            status=LoanStatus(self.status),
            daily_fine_rate=self.daily_fine_rate,
            fine_amount=self.fine_amount,
        )

    def apply(self, state: loan_rules.LoanState) -> None:
        """Copy a computed state back onto the row."""
        self.due_date = state.due_date
        self.return_date = state.return_date
        self.status = LoanStatus(state.status).value
        self.fine_amount = state.fine_amount

    def to_dict(self, today=None):
        today = today or today_local()
        overdue = loan_rules.is_overdue(self.due_date, self.return_date, today)
        return {
            "id": str(self.loan_id),
            "bookId": str(self.book_id),
            "bookTitle": self.book.title if self.book else None,
            "bookIsbn": self.book.isbn if self.book else None,
            "memberId": str(self.member_id),
            "memberName": self.member.name if self.member else None,
            "memberEmail": self.member.email if self.member else None,
            "loanDate": self.loan_date.isoformat() if self.loan_date else None,
            "dueDate": self.due_date.isoformat() if self.due_date else None,
            "returnDate": self.return_date.isoformat() if self.return_date else None,
            "status": self.status,
            "fineAmount": float(self.fine_amount) if self.fine_amount is not None else None,
            "notes": self.notes,
            "isOverdue": overdue,
            "daysLate": loan_rules.days_late(self.due_date, self.return_date, today),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
