from sqlalchemy import Column, String, DateTime, Integer, Numeric, Boolean, CheckConstraint
from sqlalchemy.sql import func
from library_api.database import Base

class Book(Base):
    __tablename__ = "book"

    book_id = Column(Integer, primary_key=True, autoincrement=True)
    isbn = Column(String(13), unique=True, nullable=False, index=True)
    title = Column(String(200), nullable=False)
    author = Column(String(255), nullable=False)
    publisher = Column(String(100), nullable=True)
    publication_year = Column(Integer, nullable=True)
    total_copies = Column(Integer, nullable=False)
    available_copies = Column(Integer, nullable=False)
    daily_fine_rate = Column(Numeric(10, 2), nullable=True)
    category = Column(String(50), nullable=True, index=True)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint(
            "available_copies >= 0 AND available_copies <= total_copies",
            name="chk_book_available_copies",
        ),
    )

    def to_dict(self):
        return {
            "id": str(self.book_id),
            "isbn": self.isbn,
            "title": self.title,
            "author": self.author,
            "publisher": self.publisher,
            "publicationYear": self.publication_year,
            "totalCopies": self.total_copies,
            "availableCopies": self.available_copies,
            "dailyFineRate": float(self.daily_fine_rate) if self.daily_fine_rate is not None else None,
            "category": self.category,
            "active": self.active,
        }
