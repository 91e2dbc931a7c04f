from pydantic import BaseModel
from typing import Dict, List
from datetime import date
from library_api.schemas.book import BookResponse
from library_api.schemas.member import MemberResponse

class SummaryReport(BaseModel):
    totalBooks: int
    totalMembers: int
    totalLoans: int
    activeLoans: int
    renewedLoans: int
    overdueLoans: int
    finesCharged: float
    unavailableBooks: int
    generatedOn: date

class BookLoanCount(BaseModel):
    book: BookResponse
    loanCount: int

class MemberLoanCount(BaseModel):
    member: MemberResponse
    loanCount: int

class PeriodReport(BaseModel):
    period: Dict[str, date]
    totalLoans: int
    returnedOnTime: int
    returnedLate: int
    stillOut: int
    finesCharged: float
    generatedOn: date

class CategoryReport(BaseModel):
    categories: Dict[str, int]

class TopBooksReport(BaseModel):
    books: List[BookLoanCount]

class TopMembersReport(BaseModel):
    members: List[MemberLoanCount]
