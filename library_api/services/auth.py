import logging
from datetime import timedelta
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from library_api.config import settings
from library_api.models.librarian import Librarian
from library_api.database import get_db
from library_api.utils.timezone import now_local

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError as e:
        logger.error(f"Stored password hash is unreadable: {e}")
        return False


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(librarian: Librarian) -> str:
    """Sign a bearer token naming the librarian and their role."""
    expire = now_local() + timedelta(minutes=settings.jwt_access_token_expire_minutes)
    claims = {"sub": str(librarian.librarian_id), "role": librarian.role, "exp": expire}
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials. Please provide a valid Authorization header with Bearer token.",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _librarian_id_from_token(token: str) -> int:
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        return int(payload["sub"])
    except JWTError as e:
        logger.warning(f"Rejected bearer token: {e}")
    except (KeyError, ValueError, TypeError) as e:
        logger.warning(f"Bearer token has no usable subject: {e}")
    raise _unauthorized()


def get_current_librarian(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Librarian:
    """Resolve the staff account behind the request's bearer token."""
    if credentials is None or not credentials.credentials:
        if request.headers.get("Authorization"):
            logger.warning(f"Malformed Authorization header on {request.url.path}")
        else:
            logger.warning(f"Missing Authorization header on {request.url.path}")
        raise _unauthorized()

    librarian_id = _librarian_id_from_token(credentials.credentials)
    librarian = db.query(Librarian).filter(Librarian.librarian_id == librarian_id).first()
    if librarian is None:
        raise _unauthorized()
    return librarian


def require_admin(current: Librarian = Depends(get_current_librarian)) -> Librarian:
    if not current.is_admin:
        logger.warning(f"Librarian {current.librarian_id} attempted an admin-only action")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only administrators can perform this action"
        )
    return current


def signup_registrar(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Optional[Librarian]:
    """Who is registering a new staff account.

    Returns None while the staff table is empty: the first account bootstraps
    the desk and becomes an admin. After that only an admin may register staff.
    """
    if db.query(Librarian.librarian_id).first() is None:
        return None
    return require_admin(get_current_librarian(request, credentials, db))
