"""User service – FastAPI application."""
# Load .env before any app code that might read config
from dotenv import load_dotenv
from pathlib import Path
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

import logging

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.config import get_settings
from app.database import Base, engine
# Import models so Base.metadata has all tables before create_all (schema source of truth)
from app.models import User, MerchantProfile  # noqa: F401
from app.dependencies import get_account_store
from app.routers import auth, users
from app.services.account_store import AccountStore
from app.services.errors import AccountError
from app.services.registry import ServiceRegistry
from app.utils import utc_now

settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, debug=settings.debug)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(users.router)

registry = ServiceRegistry(settings)


@app.exception_handler(AccountError)
def account_error_handler(request: Request, exc: AccountError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.on_event("startup")
def startup():
    if settings.mailgun_configured:
        logger.info("Mailgun domain=%s; verification emails are delivered", settings.mailgun_domain)
    else:
        logger.warning("Mailgun not configured; verification links will only be logged")
    if not settings.admin_registration_key:
        logger.warning("ADMIN_REGISTRATION_KEY not set; admin registration is disabled")
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        logger.warning("Database startup failed (tables skipped). Check DATABASE_URL. Error: %s", e)
    registry.register()


@app.on_event("shutdown")
def shutdown():
    registry.deregister()


@app.get("/")
def root():
    return {"app": settings.app_name, "status": "ok"}


@app.get("/health")
def health(store: AccountStore = Depends(get_account_store)):
    try:
        store.ping()
    except SQLAlchemyError as e:
        logger.error("Health check: database down: %s", e)
        return JSONResponse(
            status_code=503,
            content={
                "status": "error",
                "timestamp": utc_now().isoformat(),
                "services": {"database": "down"},
                "error": str(e),
            },
        )
    return {
        "status": "ok",
        "timestamp": utc_now().isoformat(),
        "services": {"database": "up"},
    }
