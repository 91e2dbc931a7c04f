from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime

class LoanCreate(BaseModel):
    book_id: int
    member_id: int
    notes: Optional[str] = Field(None, max_length=500)

class LoanResponse(BaseModel):
    id: str
    bookId: str
    bookTitle: Optional[str] = None
    bookIsbn: Optional[str] = None
    memberId: str
    memberName: Optional[str] = None
    memberEmail: Optional[str] = None
    loanDate: date
    dueDate: date
    returnDate: Optional[date] = None
    status: str
    fineAmount: Optional[float] = None
    notes: Optional[str] = None
    isOverdue: bool
    daysLate: int
    createdAt: Optional[datetime] = None

    class Config:
        from_attributes = True
