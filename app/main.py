from datetime import datetime, timezone

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

load_dotenv()

from app.config import settings
from app.core.exceptions import (
    CalculationError,
    ConfigurationError,
    InvalidDataError,
    MissingRequiredFieldError,
    ScoringError,
)
from app.core.logging import configure_logging

# IMPORT ROUTERS
from app.routers.health import router as health_router
from app.routers.scoring import router as scoring_router

configure_logging()


# SWAGGER UI — tag display order
_OPENAPI_TAGS = [
    {"name": "Root"},
    {"name": "Health"},
    {"name": "BD Scoring"},
]

# FASTAPI APPLICATION CONFIGURATION
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    openapi_tags=_OPENAPI_TAGS,
)

app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])


# ERROR RESPONSES
_STATUS_BY_ERROR = {
    InvalidDataError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    MissingRequiredFieldError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ConfigurationError: status.HTTP_400_BAD_REQUEST,
    CalculationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _error_body(error_code: str, message: str, details) -> dict:
    return {
        "error_code": error_code,
        "message": message,
        "details": details,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def _error_details(exc: ScoringError):
    if isinstance(exc, MissingRequiredFieldError):
        return {"field": exc.field}
    if isinstance(exc, InvalidDataError):
        return {"errors": [e.model_dump(mode="json", by_alias=True) for e in exc.errors]}
    if isinstance(exc, ConfigurationError):
        return exc.details or None
    return None


async def scoring_exception_handler(request: Request, exc: ScoringError):
    status_code = _STATUS_BY_ERROR.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse(
        status_code=status_code,
        content=_error_body(exc.error_code, exc.message, _error_details(exc)),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors and "json_invalid" in errors[0].get("type", ""):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body("INVALID_REQUEST", "Malformed JSON request body", None),
        )
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", []) if part != "body"),
            "message": err.get("msg", ""),
        }
        for err in errors
    ]
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body("VALIDATION_ERROR", "Request validation failed", {"errors": details}),
    )


# REGISTER EXCEPTION HANDLERS
app.add_exception_handler(ScoringError, scoring_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

# REGISTER ROUTERS (order matches _OPENAPI_TAGS / Swagger UI display order)
app.include_router(health_router)    # Health
app.include_router(scoring_router)   # BD Scoring


# ROOT ENDPOINT
@app.get("/", tags=["Root"], summary="Root endpoint")
async def root():
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc"
        },
        "status": "running"
    }


# RUN WITH UVICORN
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
