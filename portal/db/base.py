from portal.db.base_class import Base  # noqa: F401

# import models so Base.metadata sees every table (used by init_db, alembic, tests)
from portal.models import assignment, registration, role, submission, unit, user  # noqa: F401
