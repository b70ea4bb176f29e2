import os
from datetime import timedelta
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent

# DEV defaults; override every one of these through the environment in production.
SECRET_KEY = os.getenv("PORTAL_SECRET_KEY", "change-me-in-production")
ALGORITHM = os.getenv("PORTAL_JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE = timedelta(minutes=int(os.getenv("PORTAL_ACCESS_TOKEN_MINUTES", "60")))

DATABASE_URL = os.getenv("PORTAL_DATABASE_URL", f"sqlite:///{BASE_DIR}/portal.db")

LOG_LEVEL = os.getenv("PORTAL_LOG_LEVEL", "INFO").upper()

# Accounts listed here get the admin role when they register.
ADMIN_EMAILS = frozenset(
    e.strip().lower()
    for e in os.getenv("PORTAL_ADMIN_EMAILS", "").split(",")
    if e.strip()
)

# Uploads
UPLOAD_DIR = Path(os.getenv("PORTAL_UPLOAD_DIR", str(BASE_DIR / "uploads")))
PUBLIC_FILES_URL = os.getenv("PORTAL_PUBLIC_FILES_URL", "/files").rstrip("/")
MAX_UPLOAD_BYTES = int(os.getenv("PORTAL_MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
ALLOWED_EXTENSIONS = frozenset({"pdf", "doc", "docx", "png", "jpg", "jpeg", "txt"})
