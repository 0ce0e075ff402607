import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.responses import JSONResponse

from family_sharing.core.config import settings
from family_sharing.core.errors import FamilySharingError
from family_sharing.core.logging import configure_logging
from family_sharing.routers import auth, families, health

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Family Sharing API",
    version="1.0.0",
    description="Invitation-based family sharing: invites, acceptance, members and revocation.",
    # Served behind a path prefix at the edge; /docs below points Swagger at the prefixed schema.
    docs_url=None,
    root_path=settings.root_path,
)


@app.get("/docs", include_in_schema=False)
def swagger_ui():
    prefix = (settings.root_path or "").rstrip("/")
    openapi_url = f"{prefix}{app.openapi_url}"
    return get_swagger_ui_html(openapi_url=openapi_url, title=f"{app.title} - Docs")


@app.exception_handler(FamilySharingError)
async def family_sharing_error_handler(request: Request, exc: FamilySharingError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.error_code)
    body = {"error": exc.message, "code": exc.error_code}
    field = exc.context.get("field")
    if field:
        body["field"] = field
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    loc = [str(part) for part in first.get("loc", ()) if part != "body"]
    field = ".".join(loc) or None
    if first.get("type") == "missing" and field:
        message = f"{field} is required"
    else:
        message = f"{field}: {first.get('msg', 'invalid value')}" if field else "Invalid request body"
    return JSONResponse(
        status_code=400,
        content={"error": message, "code": "VALIDATION_ERROR", "field": field},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("%s %s failed", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
    max_age=86400,
)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(families.router)
