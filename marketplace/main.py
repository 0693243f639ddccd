import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import APP_NAME, CORS_ORIGINS
from .domain.admin.router import router as admin_router
from .domain.bookings.router import router as bookings_router
from .domain.providers.router import router as providers_router
from .domain.users.router import router as auth_router
from .domain.users.router import users_router
from .domain.waitlist.router import router as waitlist_router
from .routes.geocoding import router as geocoding_router
from .routes.payments import router as payments_router
from .store import StoreError, get_document_store

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        get_document_store()
        logger.info("Document store ready")
    except Exception as e:
        logger.error(f"Failed to initialize document store: {e}")

    try:
        from .rate_limiter import get_redis_client

        get_redis_client()  # Connection test
        logger.info("Redis connection established")
    except Exception as e:
        logger.warning(f"Redis connection failed - rate-limited and wizard routes will return 503: {e}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title=APP_NAME, version="1.0.0", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Convert 422 validation errors on the Authorization header to 401
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

    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": jsonable_errors(exc)})


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    # ctx may hold the raised ValueError, which is not JSON serializable
    return [{k: (str(v) if k == "ctx" else v) for k, v in error.items()} for error in exc.errors()]


@app.exception_handler(StoreError)
async def store_exception_handler(request: Request, exc: StoreError):
    logger.error(f"❌ Document store error on {request.url.path}: {exc}")
    return JSONResponse(status_code=502, content={"detail": "Something went wrong. Please try again."})


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(users_router)
app.include_router(waitlist_router)
app.include_router(bookings_router)
app.include_router(providers_router)
app.include_router(admin_router)
app.include_router(geocoding_router)
app.include_router(payments_router)


@app.get("/")
def root():
    return {"message": f"{APP_NAME} is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
