from portal.core.config import PUBLIC_FILES_URL, UPLOAD_DIR
from portal.db.session import SessionLocal
from portal.services.storage import FileStorage, LocalFileStorage

# every request that needs DB will get a fresh session, and it will always close.
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_storage() -> FileStorage:
    return LocalFileStorage(UPLOAD_DIR, PUBLIC_FILES_URL)
