from .auth import LibrarianCreate, LibrarianLogin, LibrarianResponse, Token
from .book import BookBase, BookCreate, BookUpdate, BookResponse, BookAvailability
from .member import MemberBase, MemberCreate, MemberUpdate, MemberResponse, MemberEligibility
from .loan import LoanCreate, LoanResponse
from .report import (
    SummaryReport,
    BookLoanCount, MemberLoanCount,
    PeriodReport, CategoryReport,
    TopBooksReport, TopMembersReport
)

__all__ = [
    "LibrarianCreate", "LibrarianLogin", "LibrarianResponse", "Token",
    "BookBase", "BookCreate", "BookUpdate", "BookResponse", "BookAvailability",
    "MemberBase", "MemberCreate", "MemberUpdate", "MemberResponse", "MemberEligibility",
    "LoanCreate", "LoanResponse",
    "SummaryReport", "BookLoanCount", "MemberLoanCount",
    "PeriodReport", "CategoryReport", "TopBooksReport", "TopMembersReport",
]
