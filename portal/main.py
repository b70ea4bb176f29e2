import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from portal.core.config import LOG_LEVEL, PUBLIC_FILES_URL, UPLOAD_DIR
from portal.core.errors import PortalError, Unauthenticated
from portal.core.logging_middleware import LoggingMiddleware
from portal.db.init_db import init_db

from portal.routers.admin import router as admin_router
from portal.routers.assignments import router as assignments_router
from portal.routers.auth import router as auth_router
from portal.routers.dashboard import router as dashboard_router
from portal.routers.submissions import router as submissions_router
from portal.routers.units import router as units_router

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="Unit Portal")

# Middleware
app.add_middleware(LoggingMiddleware)


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    if exc.status_code >= 409:
        logger.info("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.kind},
        headers=headers,
    )


# Health check
@app.get("/health")
def health():
    return {"status": "ok"}


# Startup event
@app.on_event("startup")
def on_startup():
    init_db()


# Include routers
app.include_router(auth_router, prefix="/auth", tags=["auth"])
app.include_router(admin_router, prefix="/admin", tags=["admin"])
app.include_router(units_router, prefix="/units", tags=["units"])
app.include_router(assignments_router, tags=["assignments"])
app.include_router(submissions_router, tags=["submissions"])
app.include_router(dashboard_router, prefix="/dashboard", tags=["dashboard"])

# Uploaded files are served from the same origin unless an external URL is configured
if PUBLIC_FILES_URL.startswith("/"):
    app.mount(PUBLIC_FILES_URL, StaticFiles(directory=UPLOAD_DIR, check_dir=False), name="files")
