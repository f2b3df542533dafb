import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

# Import all models to ensure they're registered with SQLAlchemy Base
from . import (
    models,  # noqa: F401
    models_appointment,  # noqa: F401
)
from .catalog import load_catalog
from .config import (
    ALLOWED_ORIGINS,
    DEFAULT_ADMIN_EMAIL,
    DEFAULT_ADMIN_NAME,
    DEFAULT_ADMIN_PASSWORD,
    DEFAULT_ADMIN_STUDENT_ID,
    STORAGE_BACKEND,
    UPLOAD_DIR,
)
from .database import Base, SessionLocal, engine
from .domain.announcements.router import router as announcements_router
from .domain.appointments.router import router as appointments_router
from .domain.pickup.router import router as pickup_router
from .domain.requests.router import admin_router as admin_requests_router
from .domain.requests.router import router as requests_router
from .exceptions import WorkflowError
from .models import User, UserRole
from .routes.auth import router as auth_router
from .security_headers import SecurityHeadersMiddleware
from .security_utils import hash_password_bcrypt

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("botocore").setLevel(logging.WARNING)
logging.getLogger("multipart").setLevel(logging.WARNING)

SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"


def seed_default_admin() -> None:
    """Create the registrar account on first startup"""
    db = SessionLocal()
    try:
        if db.query(User).filter(User.role == UserRole.ADMIN.value).first():
            return

        if not DEFAULT_ADMIN_PASSWORD:
            logger.warning(
                "⚠️ No admin account exists and DEFAULT_ADMIN_PASSWORD is not set - skipping admin seed"
            )
            return

        admin = User(
            role=UserRole.ADMIN.value,
            student_id=DEFAULT_ADMIN_STUDENT_ID,
            name=DEFAULT_ADMIN_NAME,
            email=DEFAULT_ADMIN_EMAIL.lower(),
            hashed_password=hash_password_bcrypt(DEFAULT_ADMIN_PASSWORD),
        )
        db.add(admin)
        db.commit()
        logger.info(f"✅ Default admin created: {admin.email}")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except SQLAlchemyError as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")
            raise

    app.state.catalog = load_catalog()
    logger.info(
        f"Catalog loaded: {len(app.state.catalog.request_types)} request types, "
        f"{len(app.state.catalog.time_slots)} time slots"
    )

    seed_default_admin()

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="SELYO API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(WorkflowError)
async def workflow_exception_handler(request: Request, exc: WorkflowError):
    """Business errors raised by the services"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} - {exc.error}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.error},
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"❌ Database error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Database error", "error": "storage_failure"},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Convert 422 validation errors from HTTPBearer to 401 authentication errors
    when the issue is with the Authorization header
    """
    for error in exc.errors():
        if error.get("loc") and "authorization" in str(error.get("loc")).lower():
            logger.warning(
                f"Authentication failed for {request.url.path}: Missing or invalid Authorization header"
            )
            return JSONResponse(
                status_code=401,
                content={
                    "detail": "Not authenticated. Please provide a valid Bearer token in the Authorization header."
                },
            )

    # For other validation errors, return 422 as normal
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": jsonable_errors(exc)})


def jsonable_errors(exc: RequestValidationError) -> list:
    """Drop the raw ctx objects pydantic attaches so the payload serializes"""
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        errors.append(error)
    return errors


@app.middleware("http")
async def log_requests(request: Request, call_next):
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(
        SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"]
    )
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Routes
# Announcements first: /requests/announcements must win over /requests/{request_id}
app.include_router(auth_router)
app.include_router(announcements_router)
app.include_router(pickup_router)
app.include_router(requests_router)
app.include_router(admin_requests_router)
app.include_router(appointments_router)

if STORAGE_BACKEND == "local":
    app.mount("/uploads", StaticFiles(directory=UPLOAD_DIR, check_dir=False), name="uploads")


@app.get("/")
def root():
    return {"message": "SELYO API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
