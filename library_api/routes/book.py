from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from library_api.database import get_db
from library_api.models.librarian import Librarian
from library_api.services.auth import get_current_librarian, require_admin
from library_api.services.book_service import BookService
from library_api.schemas.book import BookCreate, BookUpdate, BookResponse, BookAvailability

router = APIRouter(prefix="/api/books", tags=["Books"])

@router.get("", response_model=List[BookResponse])
async def list_books(
    search: Optional[str] = Query(None, description="Search by title, author, or ISBN"),
    category: Optional[str] = Query(None, description="Filter by category"),
    available: bool = Query(False, description="Only books with copies on the shelf"),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db)
):
    """List active books with optional search and filters."""
    books = BookService(db).list_books(search, category, available, skip, limit)
    return [BookResponse(**book.to_dict()) for book in books]

@router.get("/{book_id}", response_model=BookResponse)
async def get_book(book_id: int, db: Session = Depends(get_db)):
    """Get book details by ID."""
    return BookResponse(**BookService(db).get_book(book_id).to_dict())

@router.get("/{book_id}/availability", response_model=BookAvailability)
async def get_book_availability(book_id: int, db: Session = Depends(get_db)):
    """Whether a copy can be checked out right now."""
    service = BookService(db)
    book = service.get_book(book_id)
    return BookAvailability(
        bookId=str(book.book_id),
        available=service.is_available(book_id),
        availableCopies=book.available_copies
    )

@router.post("", response_model=BookResponse, status_code=status.HTTP_201_CREATED)
async def create_book(
    data: BookCreate,
    current: Librarian = Depends(get_current_librarian),
    db: Session = Depends(get_db)
):
    """Add a title to the catalog. All copies start on the shelf."""
    return BookResponse(**BookService(db).create_book(data).to_dict())

@router.put("/{book_id}", response_model=BookResponse)
async def update_book(
    book_id: int,
    data: BookUpdate,
    current: Librarian = Depends(get_current_librarian),
    db: Session = Depends(get_db)
):
    return BookResponse(**BookService(db).update_book(book_id, data).to_dict())

@router.delete("/{book_id}", response_model=BookResponse)
async def deactivate_book(
    book_id: int,
    current: Librarian = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Withdraw a book from circulation. Loan history is kept."""
    return BookResponse(**BookService(db).deactivate_book(book_id).to_dict())
