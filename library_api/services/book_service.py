import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from library_api.models.book import Book
from library_api.schemas.book import BookCreate, BookUpdate
from library_api.services.errors import NotFoundError, RuleViolation

logger = logging.getLogger(__name__)


class BookService:
    def __init__(self, db: Session):
        self.db = db

    def get_book(self, book_id: int) -> Book:
        book = self.db.query(Book).filter(Book.book_id == book_id).first()
        if not book:
            raise NotFoundError(f"Book not found with ID: {book_id}")
        return book

    def create_book(self, data: BookCreate) -> Book:
        logger.info(f"Creating book with ISBN: {data.isbn}")
        if self.db.query(Book).filter(Book.isbn == data.isbn).first():
            raise RuleViolation(f"A book with ISBN {data.isbn} already exists")

        book = Book(
            isbn=data.isbn,
            title=data.title,
            author=data.author,
            publisher=data.publisher,
            publication_year=data.publication_year,
            total_copies=data.total_copies,
            available_copies=data.total_copies,
            daily_fine_rate=data.daily_fine_rate,
            category=data.category,
            active=True,
        )
        self.db.add(book)
        self.db.commit()
        self.db.refresh(book)
        logger.info(f"Book created. ID: {book.book_id}")
        return book

    def update_book(self, book_id: int, data: BookUpdate) -> Book:
        """Replace a book's catalog data.

        Changing ``total_copies`` moves ``available_copies`` by the same amount,
        so copies already on loan stay accounted for.
        """
        logger.info(f"Updating book ID: {book_id}")
        try:
            book = self.db.query(Book).filter(Book.book_id == book_id).with_for_update().first()
            if not book:
                raise NotFoundError(f"Book not found with ID: {book_id}")

            if data.isbn != book.isbn and self.db.query(Book).filter(Book.isbn == data.isbn).first():
                raise RuleViolation(f"Another book already uses ISBN {data.isbn}")

            delta = data.total_copies - book.total_copies
            if book.available_copies + delta < 0:
                raise RuleViolation(
                    "Total copies cannot drop below the number of copies currently on loan"
                )

            book.isbn = data.isbn
            book.title = data.title
            book.author = data.author
            book.publisher = data.publisher
            book.publication_year = data.publication_year
            book.daily_fine_rate = data.daily_fine_rate
            book.category = data.category
            book.total_copies = data.total_copies
            book.available_copies = book.available_copies + delta
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(book)
        return book

    def deactivate_book(self, book_id: int) -> Book:
        logger.info(f"Deactivating book ID: {book_id}")
        book = self.get_book(book_id)
        book.active = False
        self.db.commit()
        self.db.refresh(book)
        return book

    def list_books(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
        available_only: bool = False,
        skip: int = 0,
        limit: int = 20,
    ) -> List[Book]:
        query = self.db.query(Book).filter(Book.active.is_(True))

        if search:
            search_term = f"%{search}%"
            query = query.filter(
                or_(
                    Book.title.ilike(search_term),
                    Book.author.ilike(search_term),
                    Book.isbn.ilike(search_term)
                )
            )

        if category:
            query = query.filter(Book.category == category)

        if available_only:
            query = query.filter(Book.available_copies > 0)

        return query.order_by(Book.title).offset(skip).limit(limit).all()

    def is_available(self, book_id: int) -> bool:
        book = self.get_book(book_id)
        return book.active and book.available_copies > 0
