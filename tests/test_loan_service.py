from datetime import date, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import event

from library_api.models.loan import Loan, LoanStatus
from library_api.models.member import MemberType
from library_api.services.errors import LoanInvariantError, NotFoundError, RuleViolation
from library_api.services.loan_service import LoanService

TODAY = date(2024, 3, 10)


@pytest.fixture
def service(db):
    return LoanService(db, clock=lambda: TODAY)


class TestCreateLoan:
    def test_checkout_takes_a_copy(self, service, db, make_book, make_member):
        book = make_book(total_copies=2)
        member = make_member(MemberType.PROFESSOR)

        loan = service.create_loan(book.book_id, member.member_id, notes="Desk checkout")

        db.refresh(book)
        assert book.available_copies == 1
        assert loan.status == LoanStatus.ACTIVE.value
        assert loan.loan_date == TODAY
        assert loan.due_date == TODAY + timedelta(days=21)
        assert loan.return_date is None
        assert loan.fine_amount is None
        assert loan.notes == "Desk checkout"

    def test_unknown_book(self, service, make_member):
        member = make_member()
        with pytest.raises(NotFoundError, match="Book"):
            service.create_loan(999, member.member_id)

    def test_unknown_member(self, service, make_book):
        book = make_book()
        with pytest.raises(NotFoundError, match="Member"):
            service.create_loan(book.book_id, 999)

    def test_book_rules_checked_before_member_lookup(self, service, make_book):
        book = make_book(total_copies=1, available_copies=0)
        with pytest.raises(RuleViolation, match="No copies"):
            service.create_loan(book.book_id, 999)

    def test_inactive_book(self, service, make_book, make_member):
        book = make_book(active=False)
        with pytest.raises(RuleViolation, match="not available"):
            service.create_loan(book.book_id, make_member().member_id)

    def test_inactive_member(self, service, make_book, make_member):
        member = make_member(active=False)
        with pytest.raises(RuleViolation, match="not active"):
            service.create_loan(make_book().book_id, member.member_id)

    def test_last_copy_goes_to_one_member_only(self, service, db, make_book, make_member):
        book = make_book(total_copies=1)
        service.create_loan(book.book_id, make_member().member_id)

        with pytest.raises(RuleViolation, match="No copies"):
            service.create_loan(book.book_id, make_member().member_id)

        db.refresh(book)
        assert book.available_copies == 0

    def test_borrow_limit(self, service, db, make_book, make_member):
        member = make_member(MemberType.EXTERNAL)
        service.create_loan(make_book().book_id, member.member_id)
        service.create_loan(make_book().book_id, member.member_id)
        third = make_book()

        with pytest.raises(RuleViolation, match=r"limit of simultaneous loans \(2\)"):
            service.create_loan(third.book_id, member.member_id)

        db.refresh(third)
        assert third.available_copies == third.total_copies

    def test_same_book_twice(self, service, make_book, make_member):
        book = make_book(total_copies=3)
        member = make_member()
        service.create_loan(book.book_id, member.member_id)

        with pytest.raises(RuleViolation, match="already has this book"):
            service.create_loan(book.book_id, member.member_id)

    def test_same_book_again_after_return(self, service, make_book, make_member):
        book = make_book()
        member = make_member()
        first = service.create_loan(book.book_id, member.member_id)
        service.return_loan(first.loan_id)

        again = service.create_loan(book.book_id, member.member_id)
        assert again.loan_id != first.loan_id

    def test_overdue_loan_blocks_checkout(self, service, make_book, make_member, make_loan):
        member = make_member()
        make_loan(make_book(), member, TODAY - timedelta(days=20), TODAY - timedelta(days=6))

        with pytest.raises(RuleViolation, match="overdue"):
            service.create_loan(make_book().book_id, member.member_id)

    def test_loan_due_today_does_not_block(self, service, make_book, make_member, make_loan):
        member = make_member()
        make_loan(make_book(), member, TODAY - timedelta(days=14), TODAY)

        loan = service.create_loan(make_book().book_id, member.member_id)
        assert loan.status == LoanStatus.ACTIVE.value

    def test_fine_rate_is_taken_at_checkout(self, service, db, make_book, make_member):
        book = make_book(daily_fine_rate=Decimal("1.50"))
        loan = service.create_loan(book.book_id, make_member().member_id)

        book.daily_fine_rate = Decimal("9.00")
        db.commit()

        late = LoanService(db, clock=lambda: loan.due_date + timedelta(days=2))
        returned = late.return_loan(loan.loan_id)
        assert returned.fine_amount == Decimal("3.00")

    def test_failed_insert_keeps_the_copy(self, service, db, make_book, make_member):
        book = make_book(total_copies=1)
        member = make_member()

        def reject_loan_insert(session, flush_context, instances):
            if any(isinstance(obj, Loan) for obj in session.new):
                raise RuntimeError("loan insert failed")

        event.listen(db, "before_flush", reject_loan_insert)
        try:
            with pytest.raises(RuntimeError):
                service.create_loan(book.book_id, member.member_id)
        finally:
            event.remove(db, "before_flush", reject_loan_insert)

        db.refresh(book)
        assert book.available_copies == 1
        assert service.active_loan_count(member.member_id) == 0
        assert service.create_loan(book.book_id, member.member_id).status == LoanStatus.ACTIVE.value


class TestReturnLoan:
    def test_return_puts_copy_back(self, service, db, make_book, make_member):
        book = make_book(total_copies=1)
        loan = service.create_loan(book.book_id, make_member().member_id)

        returned = service.return_loan(loan.loan_id)

        db.refresh(book)
        assert book.available_copies == 1
        assert returned.status == LoanStatus.RETURNED.value
        assert returned.return_date == TODAY
        assert returned.fine_amount is None

    def test_late_return_fine(self, service, make_book, make_member, make_loan):
        book = make_book(daily_fine_rate=Decimal("2.00"))
        loan = make_loan(book, make_member(), TODAY - timedelta(days=17), TODAY - timedelta(days=3))

        returned = service.return_loan(loan.loan_id)

        assert returned.fine_amount == Decimal("6.00")

    def test_late_return_without_rate(self, service, make_book, make_member, make_loan):
        book = make_book(daily_fine_rate=None)
        loan = make_loan(book, make_member(), TODAY - timedelta(days=17), TODAY - timedelta(days=3))

        assert service.return_loan(loan.loan_id).fine_amount is None

    def test_second_return_rejected(self, service, db, make_book, make_member):
        book = make_book()
        loan = service.create_loan(book.book_id, make_member().member_id)
        service.return_loan(loan.loan_id)

        with pytest.raises(RuleViolation, match="already been returned"):
            service.return_loan(loan.loan_id)

        db.refresh(book)
        assert book.available_copies == book.total_copies

    def test_unknown_loan(self, service):
        with pytest.raises(NotFoundError):
            service.return_loan(12345)

    def test_shelf_overflow_rolls_back(self, service, db, make_book, make_member, make_loan):
        book = make_book(total_copies=1)
        loan = make_loan(book, make_member(), TODAY - timedelta(days=2), TODAY + timedelta(days=5))
        # Corrupt the shelf count behind the engine's back
        book.available_copies = 1
        db.commit()

        with pytest.raises(LoanInvariantError):
            service.return_loan(loan.loan_id)

        db.refresh(loan)
        assert loan.status == LoanStatus.ACTIVE.value
        assert loan.return_date is None


class TestRenewLoan:
    def test_renew_active_loan(self, service, make_book, make_member, make_loan):
        loan = make_loan(make_book(), make_member(), TODAY - timedelta(days=9), TODAY + timedelta(days=5))

        renewed = service.renew_loan(loan.loan_id, 7)

        assert renewed.due_date == TODAY + timedelta(days=12)
        assert renewed.status == LoanStatus.RENEWED.value

    def test_renew_twice(self, service, make_book, make_member, make_loan):
        loan = make_loan(make_book(), make_member(), TODAY - timedelta(days=9), TODAY + timedelta(days=5))
        service.renew_loan(loan.loan_id, 7)

        renewed = service.renew_loan(loan.loan_id, 3)

        assert renewed.due_date == TODAY + timedelta(days=15)
        assert renewed.status == LoanStatus.RENEWED.value

    @pytest.mark.parametrize("days", [1, 30])
    def test_overdue_loan_not_renewed(self, service, make_book, make_member, make_loan, days):
        loan = make_loan(make_book(), make_member(), TODAY - timedelta(days=20), TODAY - timedelta(days=1))

        with pytest.raises(RuleViolation, match="Overdue"):
            service.renew_loan(loan.loan_id, days)

    def test_returned_loan_not_renewed(self, service, make_book, make_member):
        loan = service.create_loan(make_book().book_id, make_member().member_id)
        service.return_loan(loan.loan_id)

        with pytest.raises(RuleViolation):
            service.renew_loan(loan.loan_id, 5)

    @pytest.mark.parametrize("days", [0, 31])
    def test_days_out_of_range(self, service, make_book, make_member, make_loan, days):
        loan = make_loan(make_book(), make_member(), TODAY, TODAY + timedelta(days=14))
        with pytest.raises(RuleViolation, match="between"):
            service.renew_loan(loan.loan_id, days)

    def test_unknown_loan(self, service):
        with pytest.raises(NotFoundError):
            service.renew_loan(777, 5)


class TestQueries:
    def test_list_overdue(self, service, make_book, make_member, make_loan):
        member = make_member(MemberType.PROFESSOR)
        late = make_loan(make_book(), member, TODAY - timedelta(days=20), TODAY - timedelta(days=2))
        make_loan(make_book(), member, TODAY, TODAY + timedelta(days=21))

        assert [l.loan_id for l in service.list_overdue()] == [late.loan_id]

    def test_member_loans_unknown_member(self, service):
        with pytest.raises(NotFoundError):
            service.list_member_loans(404)

    def test_active_loan_count_excludes_returned(self, service, make_book, make_member):
        member = make_member()
        first = service.create_loan(make_book().book_id, member.member_id)
        service.create_loan(make_book().book_id, member.member_id)
        service.return_loan(first.loan_id)

        assert service.active_loan_count(member.member_id) == 1
