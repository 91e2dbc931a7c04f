"""Loan state machine and eligibility rules.

Everything here is a plain function of the current state, today's date and
the lending terms. Nothing touches the database, so the transitions can be
exercised directly in tests. ``LoanService`` loads rows, calls these and
writes the result back.

    ACTIVE --renew--> RENEWED --renew--> RENEWED
    ACTIVE | RENEWED --return--> RETURNED (terminal)
"""
import enum
from dataclasses import dataclass, replace
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from library_api.services.errors import LoanInvariantError, RuleViolation

MIN_RENEWAL_DAYS = 1
MAX_RENEWAL_DAYS = 30

CENTS = Decimal("0.01")


class LoanStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    RENEWED = "RENEWED"
    RETURNED = "RETURNED"


@dataclass(frozen=True)
class LoanState:
    loan_date: date
    due_date: date
    return_date: Optional[date]
    status: LoanStatus
    daily_fine_rate: Optional[Decimal] = None
    fine_amount: Optional[Decimal] = None


@dataclass(frozen=True)
class Transition:
    """New loan state plus the change to apply to the book's shelf count."""
    loan: LoanState
    copies_delta: int = 0


@dataclass(frozen=True)
class MemberStanding:
    active: bool
    borrow_limit: int
    active_loan_count: int
    holds_same_book: bool
    overdue_loan_count: int


def is_overdue(due_date: date, return_date: Optional[date], today: date) -> bool:
    return return_date is None and today > due_date


def days_late(due_date: date, return_date: Optional[date], today: date) -> int:
    if not is_overdue(due_date, return_date, today):
        return 0
    return (today - due_date).days


def can_borrow(active: bool, active_loan_count: int, borrow_limit: int) -> bool:
    return active and active_loan_count < borrow_limit


def calculate_fine(daily_fine_rate: Optional[Decimal], due_date: date, return_date: date) -> Optional[Decimal]:
    """Fine owed for a return on ``return_date``.

    Returns None when the book carries no fine rate or the loan came back
    on time, so "no fine" stays distinguishable from a zero charge.
    """
    if daily_fine_rate is None:
        return None
    late = (return_date - due_date).days
    if late <= 0:
        return None
    return (Decimal(daily_fine_rate) * late).quantize(CENTS, rounding=ROUND_HALF_UP)


def check_book_lendable(active: bool, available_copies: int) -> None:
    if not active:
        raise RuleViolation("Book is not available for loan")
    if available_copies <= 0:
        raise RuleViolation("No copies of this book are available")


def check_member_eligible(standing: MemberStanding) -> None:
    if not standing.active:
        raise RuleViolation("Member is not active")
    if not can_borrow(standing.active, standing.active_loan_count, standing.borrow_limit):
        raise RuleViolation(
            f"Member has reached the limit of simultaneous loans ({standing.borrow_limit})"
        )
    if standing.holds_same_book:
        raise RuleViolation("Member already has this book on loan")
    if standing.overdue_loan_count > 0:
        raise RuleViolation(
            "Member has overdue loans. Return them before borrowing again"
        )


def open_loan(today: date, loan_period_days: int, daily_fine_rate: Optional[Decimal] = None) -> Transition:
    state = LoanState(
        loan_date=today,
        due_date=today + timedelta(days=loan_period_days),
        return_date=None,
        status=LoanStatus.ACTIVE,
        daily_fine_rate=daily_fine_rate,
    )
    return Transition(loan=state, copies_delta=-1)


def close_loan(state: LoanState, today: date) -> Transition:
    if state.status == LoanStatus.RETURNED or state.return_date is not None:
        raise RuleViolation("This loan has already been returned")
    returned = replace(
        state,
        return_date=today,
        status=LoanStatus.RETURNED,
        fine_amount=calculate_fine(state.daily_fine_rate, state.due_date, today),
    )
    return Transition(loan=returned, copies_delta=1)


def check_renewal_days(days: int, max_days: int = MAX_RENEWAL_DAYS) -> None:
    if days < MIN_RENEWAL_DAYS or days > max_days:
        raise RuleViolation(
            f"Renewal must be between {MIN_RENEWAL_DAYS} and {max_days} days"
        )


def extend_loan(state: LoanState, days: int, today: date, max_days: int = MAX_RENEWAL_DAYS) -> Transition:
    """Push the due date out by ``days``.

    RENEWED loans may be renewed again as long as they are not overdue; only
    returned and overdue loans are refused.
    """
    check_renewal_days(days, max_days)
    if state.status == LoanStatus.RETURNED:
        raise RuleViolation("Only loans that are still out can be renewed")
    if is_overdue(state.due_date, state.return_date, today):
        raise RuleViolation("Overdue loans cannot be renewed; return the book first")
    renewed = replace(
        state,
        due_date=state.due_date + timedelta(days=days),
        status=LoanStatus.RENEWED,
    )
    return Transition(loan=renewed)


def shift_copies(available_copies: int, total_copies: int, delta: int) -> int:
    """Apply a shelf-count change, refusing to leave 0..total_copies."""
    result = available_copies + delta
    if result < 0:
        raise RuleViolation("No copies of this book are available")
    if result > total_copies:
        raise LoanInvariantError(
            f"Available copies ({result}) would exceed total copies ({total_copies})"
        )
    return result
