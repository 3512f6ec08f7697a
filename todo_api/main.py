import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from todo_api.auth.firebase import FirebaseCredentials, FirebaseIdentityVerifier
from todo_api.core.config import require_jwt_secret, settings
from todo_api.core.errors import AppError
from todo_api.core.logging import setup_logging
from todo_api.middleware.request_id import RequestIdMiddleware
from todo_api.routes.auth import router as auth_router
from todo_api.routes.tasks import router as tasks_router
from todo_api.routes.users import router as users_router

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

require_jwt_secret()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Tests may install their own verifier before startup.
    if getattr(app.state, "identity_verifier", None) is None:
        credentials = FirebaseCredentials.from_settings(settings)
        app.state.identity_verifier = FirebaseIdentityVerifier(
            credentials,
            jwks_cache_seconds=settings.FIREBASE_JWKS_CACHE_SECONDS,
        )
    logger.info(
        "Startup config: ENV=%s project_id=%s session_ttl=%ss auth_debug=%s",
        settings.ENV,
        settings.FIREBASE_PROJECT_ID,
        settings.JWT_EXPIRATION_SECONDS,
        settings.debug_endpoints_enabled,
    )
    yield


app = FastAPI(title="Todo API", lifespan=lifespan)

_ERROR_CODE_BY_STATUS: dict[int, str] = {
    400: "VALIDATION_ERROR",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    422: "VALIDATION_ERROR",
    500: "INTERNAL_ERROR",
}

_BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}


def _error_code(status_code: int) -> str:
    return _ERROR_CODE_BY_STATUS.get(int(status_code), "HTTP_ERROR")


def _error_response(status_code: int, code: str, message: str, details: dict | None = None, headers=None):
    payload: dict = {"error": code, "message": message}
    if details:
        payload["details"] = details
    if status_code == 401:
        headers = {**(headers or {}), **_BEARER_CHALLENGE}
    return JSONResponse(status_code=status_code, content=payload, headers=headers)


@app.exception_handler(AppError)
def app_error_handler(request: Request, exc: AppError):  # noqa: ARG001
    return _error_response(exc.status_code, exc.code, exc.message, exc.details)


@app.exception_handler(StarletteHTTPException)
def http_exception_handler(request: Request, exc: StarletteHTTPException):  # noqa: ARG001
    detail = exc.detail
    message: str
    details: dict | None = None

    if isinstance(detail, str):
        message = detail
    elif isinstance(detail, dict):
        msg = detail.get("message")
        message = msg if isinstance(msg, str) and msg else "Request failed"
        det = detail.get("details")
        details = det if isinstance(det, dict) else None
    else:
        message = str(detail) if detail is not None else "Request failed"

    return _error_response(exc.status_code, _error_code(exc.status_code), message, details, exc.headers)


def _jsonable_errors(exc: RequestValidationError) -> list[dict]:
    # pydantic may put exception objects in "ctx"; keep the body JSON-safe.
    errors = []
    for err in exc.errors():
        item = {k: v for k, v in err.items() if k not in ("ctx", "input", "url")}
        errors.append(item)
    return errors


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Request, exc: RequestValidationError):  # noqa: ARG001
    return _error_response(
        422,
        "VALIDATION_ERROR",
        "Invalid request payload",
        {"errors": _jsonable_errors(exc)},
    )


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response(500, "INTERNAL_ERROR", "Internal server error")


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIdMiddleware)

app.include_router(auth_router)
app.include_router(tasks_router)
app.include_router(users_router)


@app.get("/health")
def health_check():
    return {"status": "ok"}
