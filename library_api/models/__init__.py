from .librarian import Librarian
from .book import Book
from .member import Member, MemberType, LendingTerms, LENDING_TERMS, lending_terms_for
from .loan import Loan, LoanStatus

__all__ = [
    "Librarian",
    "Book",
    "Member",
    "MemberType",
    "LendingTerms",
    "LENDING_TERMS",
    "lending_terms_for",
    "Loan",
    "LoanStatus",
]
