from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.requests import Request
from app.api.form_routes import router as form_router
from contextlib import asynccontextmanager
from app.core.config import settings, configure_logging, log_configuration_warnings
from app.core.exceptions import SubmissionError, GENERIC_ERROR_MESSAGE
from app.core.supabase_client import get_supabase_client
from app.services.storage_service import StorageService
from app.services.record_store import RecordStore
from app.services.email_service import EmailService
from app.services.submission_service import SubmissionService
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi import HTTPException
from fastapi.responses import JSONResponse
import logging
import traceback


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Adds basic security headers to every API response.

    OPTIONS requests are left untouched so that CORSMiddleware can answer
    browser preflights on its own.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        if request.method != "OPTIONS":
            response.headers["X-Content-Type-Options"] = "nosniff"
            response.headers["X-Frame-Options"] = "DENY"
            response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response


# Builds the long-lived clients once; tests may pre-populate app.state instead
def build_submission_service() -> SubmissionService:
    client = get_supabase_client(settings)
    return SubmissionService(
        storage=StorageService(client),
        records=RecordStore(client),
        email_service=EmailService.from_settings(settings),
        storage_prefix=settings.STORAGE_PATH_PREFIX,
        cleanup_orphaned_uploads=settings.CLEANUP_ORPHANED_UPLOADS,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    log_configuration_warnings(settings)
    if getattr(app.state, "submission_service", None) is None:
        try:
            app.state.submission_service = build_submission_service()
        except Exception as e:
            logging.getLogger(__name__).error(f"Submission service unavailable: {e}")
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Recepción de formularios KYB, KYC y solicitudes de token",
    version="1.0.0",
    lifespan=lifespan
)


logger = logging.getLogger("server_exception_handler")


def _error_body(code: str, message, status_code: int, **extra) -> dict:
    error = {"code": code, "message": message, "status_code": status_code}
    error.update(extra)
    return {"error": error}


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger.warning(f"HTTPException handled: {exc.detail}")
    body = _error_body("http_error", str(exc.detail) if exc.detail else exc.status_code, exc.status_code)
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error: {exc.errors()}")
    body = _error_body("validation_error", "Request validation failed", 422, details=jsonable_encoder(exc.errors()))
    return JSONResponse(status_code=422, content=body)


@app.exception_handler(SubmissionError)
async def submission_exception_handler(request: Request, exc: SubmissionError):
    # Only the public message leaves the server; the cause is already logged
    logger.error(f"Submission failed on {request.url.path}: {exc.code}")
    return JSONResponse(status_code=500, content=_error_body(exc.code, exc.message, 500))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exc()
    logger.error(f"Unhandled exception: {str(exc)}\n{tb}")
    return JSONResponse(status_code=500, content=_error_body("internal_server_error", GENERIC_ERROR_MESSAGE, 500))


app.add_middleware(SecurityHeadersMiddleware)

# Forms are posted from a separate marketing site, so every origin is allowed
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(form_router)


@app.get("/")
async def root():
    return {"message": "Formularios API is running!"}


@app.get("/health")
async def health_check():
    return {"status": "healthy", "message": "API is running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
