from decimal import Decimal
from pydantic import BaseModel, Field
from typing import Optional

class BookBase(BaseModel):
    isbn: str = Field(..., pattern=r"^\d{13}$", description="ISBN-13, digits only")
    title: str = Field(..., min_length=1, max_length=200)
    author: str = Field(..., min_length=1, max_length=255)
    publisher: Optional[str] = Field(None, max_length=100)
    publication_year: Optional[int] = Field(None, ge=1000, le=2100)
    total_copies: int = Field(..., ge=1)
    daily_fine_rate: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    category: Optional[str] = Field(None, max_length=50)

class BookCreate(BookBase):
    pass

class BookUpdate(BookBase):
    pass

class BookResponse(BaseModel):
    id: str
    isbn: str
    title: str
    author: str
    publisher: Optional[str] = None
    publicationYear: Optional[int] = None
    totalCopies: int
    availableCopies: int
    dailyFineRate: Optional[float] = None
    category: Optional[str] = None
    active: bool

    class Config:
        from_attributes = True

class BookAvailability(BaseModel):
    bookId: str
    available: bool
    availableCopies: int
