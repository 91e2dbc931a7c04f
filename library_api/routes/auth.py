import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from library_api.database import get_db
from library_api.models.librarian import Librarian, ROLE_ADMIN
from library_api.schemas.auth import LibrarianCreate, LibrarianLogin, LibrarianResponse, Token
from library_api.services.auth import (
    verify_password,
    get_password_hash,
    create_access_token,
    get_current_librarian,
    signup_registrar
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

def _issue_token(librarian: Librarian) -> Token:
    return Token(
        access_token=create_access_token(librarian),
        token_type="bearer",
        librarian=LibrarianResponse(**librarian.to_dict())
    )

@router.post("/signup", response_model=Token, status_code=status.HTTP_201_CREATED)
async def signup(
    data: LibrarianCreate,
    registrar: Optional[Librarian] = Depends(signup_registrar),
    db: Session = Depends(get_db)
):
    """Register a staff account.

    Open only for the very first account, which becomes an admin. Later
    accounts must be registered by an admin.
    """
    if db.query(Librarian).filter(Librarian.email == data.email).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    librarian = Librarian(
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
        password_hash=get_password_hash(data.password),
        role=data.role if registrar else ROLE_ADMIN
    )
    db.add(librarian)
    db.commit()
    db.refresh(librarian)

    if registrar:
        logger.info(f"Librarian {librarian.librarian_id} ({librarian.role}) registered by {registrar.librarian_id}")
    else:
        logger.info(f"Bootstrap admin account created: {librarian.librarian_id}")
    return _issue_token(librarian)

@router.post("/login", response_model=Token)
async def login(data: LibrarianLogin, db: Session = Depends(get_db)):
    librarian = db.query(Librarian).filter(Librarian.email == data.email).first()
    if not librarian or not verify_password(data.password, librarian.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )

    return _issue_token(librarian)

@router.get("/me", response_model=LibrarianResponse)
async def get_current_librarian_info(current: Librarian = Depends(get_current_librarian)):
    return LibrarianResponse(**current.to_dict())
