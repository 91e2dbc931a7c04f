import enum
from typing import NamedTuple

from sqlalchemy import Column, String, DateTime, Integer, Boolean, CheckConstraint
from sqlalchemy.sql import func
from library_api.database import Base


class MemberType(str, enum.Enum):
    STUDENT = "STUDENT"
    PROFESSOR = "PROFESSOR"
    STAFF = "STAFF"
    EXTERNAL = "EXTERNAL"


class LendingTerms(NamedTuple):
    borrow_limit: int
    loan_period_days: int


LENDING_TERMS = {
    MemberType.STUDENT: LendingTerms(borrow_limit=3, loan_period_days=14),
    MemberType.PROFESSOR: LendingTerms(borrow_limit=5, loan_period_days=21),
    MemberType.STAFF: LendingTerms(borrow_limit=3, loan_period_days=14),
    MemberType.EXTERNAL: LendingTerms(borrow_limit=2, loan_period_days=7),
}


def lending_terms_for(member_type) -> LendingTerms:
    """Look up the borrowing limit and loan period for a member type tag."""
    return LENDING_TERMS[MemberType(member_type)]


class Member(Base):
    __tablename__ = "member"

    member_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    national_id = Column(String(11), unique=True, nullable=False, index=True)
    phone = Column(String(15), nullable=True)
    member_type = Column(String(20), nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    borrow_limit = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint(
            "member_type IN ('STUDENT', 'PROFESSOR', 'STAFF', 'EXTERNAL')",
            name="chk_member_type",
        ),
    )

    @property
    def lending_terms(self) -> LendingTerms:
        return lending_terms_for(self.member_type)

    def to_dict(self):
        return {
            "id": str(self.member_id),
            "name": self.name,
            "email": self.email,
            "nationalId": self.national_id,
            "phone": self.phone,
            "memberType": self.member_type,
            "active": self.active,
            "borrowLimit": self.borrow_limit,
            "loanPeriodDays": self.lending_terms.loan_period_days,
        }
