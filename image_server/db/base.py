# image_server/db/base.py
from sqlalchemy.orm import declarative_base

# single source of truth for Alembic autogenerate
Base = declarative_base()

# Import models to register them with Base.metadata.
from image_server.db.models import image  # noqa: E402,F401
