from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.errors import BackofficeError
from app.core.logging import configure_logging

from app.routers.auth import router as auth_router
from app.routers.sites import router as sites_router
from app.routers.position_templates import router as position_templates_router
from app.routers.schedule import router as schedule_router
from app.routers.rendiciones import router as finance_router

logger = configure_logging()

app = FastAPI(title="Back-office API")

# Comma-separated list, e.g.:
# CORS_ORIGINS="http://localhost:3000,https://ops.example.com"
allow_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]

# Safe fallback for local dev if env var not set
if not allow_origins:
    allow_origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BackofficeError)
async def handle_backoffice_error(request: Request, exc: BackofficeError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception("%s %s failed", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError):
    # Malformed bodies and query strings are client errors: 400, not FastAPI's default 422
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    detail = f"{location}: {message}" if location else message
    return JSONResponse(
        status_code=400,
        content={"detail": detail, "errors": jsonable_errors(errors)},
    )


def jsonable_errors(errors):
    return [
        {"loc": [str(p) for p in e.get("loc", ())], "msg": e.get("msg"), "type": e.get("type")}
        for e in errors
    ]


app.include_router(auth_router, prefix="/auth", tags=["auth"])
app.include_router(sites_router, prefix="/ops/sites", tags=["ops-sites"])
app.include_router(position_templates_router, prefix="/ops/position-templates", tags=["ops-position-templates"])
app.include_router(schedule_router, prefix="/ops/schedule", tags=["ops-schedule"])
app.include_router(finance_router, prefix="/finance", tags=["finance"])


@app.get("/health")
def health():
    return {"status": "ok"}
