import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from library_api.models.loan import Loan
from library_api.models.member import Member, lending_terms_for
from library_api.schemas.member import MemberCreate, MemberUpdate
from library_api.services import loan_rules
from library_api.services.errors import NotFoundError, RuleViolation

logger = logging.getLogger(__name__)


class MemberService:
    def __init__(self, db: Session):
        self.db = db

    def get_member(self, member_id: int) -> Member:
        member = self.db.query(Member).filter(Member.member_id == member_id).first()
        if not member:
            raise NotFoundError(f"Member not found with ID: {member_id}")
        return member

    def _check_unique(self, email: str, national_id: str, member_id: Optional[int] = None):
        """Email and national ID belong to one member only, ignoring ``member_id`` itself."""
        others = self.db.query(Member)
        if member_id is not None:
            others = others.filter(Member.member_id != member_id)
        if others.filter(Member.email == email).first():
            raise RuleViolation(f"A member is already registered with email {email}")
        if others.filter(Member.national_id == national_id).first():
            raise RuleViolation(f"A member is already registered with national ID {national_id}")

    def create_member(self, data: MemberCreate) -> Member:
        logger.info(f"Registering member with email: {data.email}")
        self._check_unique(data.email, data.national_id)

        terms = lending_terms_for(data.member_type)
        member = Member(
            name=data.name,
            email=data.email,
            national_id=data.national_id,
            phone=data.phone,
            member_type=data.member_type.value,
            active=True,
            borrow_limit=terms.borrow_limit,
        )
        self.db.add(member)
        self.db.commit()
        self.db.refresh(member)
        logger.info(f"Member registered. ID: {member.member_id}")
        return member

    def update_member(self, member_id: int, data: MemberUpdate) -> Member:
        """Replace a member's registration data.

        The borrowing limit fixed at registration is kept, even when the
        member type changes.
        """
        logger.info(f"Updating member ID: {member_id}")
        member = self.get_member(member_id)
        self._check_unique(data.email, data.national_id, member_id=member_id)

        member.name = data.name
        member.email = data.email
        member.national_id = data.national_id
        member.phone = data.phone
        member.member_type = data.member_type.value
        self.db.commit()
        self.db.refresh(member)
        logger.info(f"Member {member_id} updated")
        return member

    def active_loan_count(self, member_id: int) -> int:
        return self.db.query(Loan).filter(
            Loan.member_id == member_id,
            Loan.return_date.is_(None)
        ).count()

    def can_borrow(self, member_id: int) -> bool:
        member = self.get_member(member_id)
        return loan_rules.can_borrow(
            member.active, self.active_loan_count(member_id), member.borrow_limit
        )

    def deactivate_member(self, member_id: int) -> Member:
        logger.info(f"Deactivating member ID: {member_id}")
        member = self.get_member(member_id)
        outstanding = self.active_loan_count(member_id)
        if outstanding > 0:
            raise RuleViolation(
                f"Cannot deactivate a member with loans still out. Outstanding loans: {outstanding}"
            )
        member.active = False
        self.db.commit()
        self.db.refresh(member)
        return member

    def list_members(
        self,
        search: Optional[str] = None,
        member_type: Optional[str] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> List[Member]:
        query = self.db.query(Member).filter(Member.active.is_(True))
        if search:
            search_term = f"%{search}%"
            query = query.filter(
                or_(
                    Member.name.ilike(search_term),
                    Member.email.ilike(search_term)
                )
            )
        if member_type:
            query = query.filter(Member.member_type == member_type)
        return query.order_by(Member.name).offset(skip).limit(limit).all()
