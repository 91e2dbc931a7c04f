import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from starlette.middleware.base import BaseHTTPMiddleware
from library_api.config import settings
from library_api.database import engine, Base
from library_api.routes import auth, book, member, loan, report
from library_api.services.errors import NotFoundError, RuleViolation, LoanInvariantError

logging.basicConfig(
    level=settings.log_level.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log incoming requests."""
    async def dispatch(self, request: Request, call_next):
        auth_header = request.headers.get("Authorization")
        client_ip = request.client.host if request.client else "unknown"
        logger.info(f"{request.method} {request.url.path} - IP: {client_ip} - Auth: {'Present' if auth_header else 'Missing'}")

        response = await call_next(request)
        logger.debug(f"{request.method} {request.url.path} -> {response.status_code}")
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create missing tables on startup."""
    logger.info("Ensuring database schema...")
    Base.metadata.create_all(bind=engine)

    yield

    logger.info("Shutting down, disposing connection pool...")
    engine.dispose()


app = FastAPI(
    title="Library Loans API",
    description="Backend API for library books, members, loans and fines",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(LoggingMiddleware)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": exc.detail})


@app.exception_handler(RuleViolation)
async def rule_violation_handler(request: Request, exc: RuleViolation):
    logger.info(f"Rule violation on {request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": exc.detail})


@app.exception_handler(LoanInvariantError)
async def invariant_handler(request: Request, exc: LoanInvariantError):
    logger.error(f"Circulation data inconsistent on {request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal bookkeeping error"}
    )


# Include routers
app.include_router(auth.router)
app.include_router(book.router)
app.include_router(member.router)
app.include_router(loan.router)
app.include_router(report.router)

@app.get("/")
async def root():
    return {"message": "Library Loans API", "version": "1.0.0"}

@app.get("/api/health")
async def health_check():
    return {"status": "healthy"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "library_api.main:app",
        host=settings.host,
        port=settings.port,
        reload=True
    )
