from sqlalchemy import Column, String, DateTime, Integer, CheckConstraint
from sqlalchemy.sql import func
from library_api.database import Base

ROLE_LIBRARIAN = "librarian"
ROLE_ADMIN = "admin"


class Librarian(Base):
    """Staff account allowed to operate the circulation desk.

    Admins additionally register staff and withdraw books or members.
    """
    __tablename__ = "librarian"

    librarian_id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(50), default=ROLE_LIBRARIAN, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("role IN ('librarian', 'admin')", name="chk_librarian_role"),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def to_dict(self):
        return {
            "id": str(self.librarian_id),
            "name": f"{self.first_name} {self.last_name}",
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "role": self.role,
        }
