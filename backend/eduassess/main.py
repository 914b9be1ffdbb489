from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import os
import logging
from contextlib import asynccontextmanager

from .database import DATABASE_CONFIGURED, check_database_connection, create_tables
from .errors import AccessDenied, AiProviderError, EduAssessError, InvalidStatusTransition, ValidationFailed
from .routers import api_router
from .storage import get_storage

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

ERROR_STATUS = {
    ValidationFailed: status.HTTP_400_BAD_REQUEST,
    AccessDenied: status.HTTP_403_FORBIDDEN,
    InvalidStatusTransition: status.HTTP_409_CONFLICT,
    AiProviderError: status.HTTP_502_BAD_GATEWAY,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler replacing deprecated startup/shutdown events."""
    logger.info("Starting up EduAssess API...")
    # Strict DB connectivity check when a database is configured; skip during pytest
    if os.getenv("PYTEST_CURRENT_TEST") is not None:
        logger.info("Skipping DB connectivity check during tests")
    elif DATABASE_CONFIGURED:
        if not check_database_connection():
            raise Exception("Cannot connect to database")
        create_tables()
    # Startup complete
    yield
    # Shutdown
    logger.info("Shutting down EduAssess API...")


app = FastAPI(
    title="EduAssess API",
    description="Quizzes, assignments, gradebooks and AI-assisted grading",
    version=API_VERSION,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "http://localhost:5173").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(EduAssessError)
async def eduassess_error_handler(request: Request, exc: EduAssessError):
    """Translate service-layer errors into HTTP responses."""
    status_code = next(
        (code for error_cls, code in ERROR_STATUS.items() if isinstance(exc, error_cls)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    logger.warning(f"{request.method} {request.url.path} -> {status_code}: {exc}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


# Routers
app.include_router(api_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "EduAssess API", "version": API_VERSION}


@app.get("/health")
async def health_check():
    """Health check endpoint reporting the storage backend in use."""
    storage = get_storage()
    if storage.backend_name == "sql" and not check_database_connection():
        return {
            "status": "unhealthy",
            "storage": storage.backend_name,
            "database": "disconnected",
            "version": API_VERSION,
        }
    return {
        "status": "healthy",
        "storage": storage.backend_name,
        "version": API_VERSION,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
