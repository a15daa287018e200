"""
Main FastAPI application entry point.
"""
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from quizbank.core.config import settings
from quizbank.core.database import init_db
from quizbank.core.errors import QuizError
from quizbank.api.quizzes import router as quizzes_router
from quizbank.api.admin import router as admin_router
from quizbank.api.auth import router as auth_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s...", settings.APP_NAME)
    # Migrations are out of scope; create tables on boot
    init_db()
    logger.info("Database initialized")
    yield
    logger.info("Shutting down %s", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    docs_url=None if settings.is_production() else "/docs",
    redoc_url=None if settings.is_production() else "/redoc",
    lifespan=lifespan,
)
app.add_middleware(CORSMiddleware, allow_origins=settings.cors_origins(), allow_credentials=True, allow_methods=["*"], allow_headers=["*"])
app.include_router(auth_router, prefix="/v1/auth", tags=["auth"])
app.include_router(quizzes_router, prefix="/v1/quiz", tags=["quiz"])
app.include_router(admin_router, prefix="/v1/admin", tags=["admin"])


@app.exception_handler(QuizError)
async def quiz_error_handler(request: Request, exc: QuizError):
    """Domain errors carry their own status and offending ids."""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"message": exc.detail, "type": "http_error", "status_code": exc.status_code}},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": {"message": "Validation error", "type": "validation_error",
                           "status_code": status.HTTP_422_UNPROCESSABLE_ENTITY, "details": jsonable_errors(exc)}},
    )


def jsonable_errors(exc: RequestValidationError):
    # ctx may hold the raw exception object, which is not JSON serializable
    return [{k: v for k, v in e.items() if k != "ctx"} for e in exc.errors()]


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": {"message": "An internal error occurred", "type": "internal_error",
                           "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR}},
    )


@app.get("/health")
def health(): return {"status": "ok", "version": settings.APP_VERSION}
