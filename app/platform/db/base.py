from datetime import datetime, timezone

import sqlalchemy
from sqlalchemy import Column, String
from sqlalchemy.orm import declarative_base
from uuid_extension import uuid7

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseModel(Base):
    __abstract__ = True
    id = Column(String, primary_key=True, default=lambda: str(uuid7()), index=True)
    # Python-side default keeps sub-second ordering on databases whose now() is per second
    created_at = Column(
        sqlalchemy.DateTime(timezone=True),
        default=utcnow,
        server_default=sqlalchemy.func.now(),
        nullable=False,
    )
    updated_at = Column(
        sqlalchemy.DateTime(timezone=True),
        default=utcnow,
        server_default=sqlalchemy.func.now(),
        onupdate=utcnow,
        nullable=False,
    )

# Note: Models will import this Base. Do not import models here to avoid circular imports.
# Import models in alembic/env.py instead for migrations.
