from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.sql import func
from goaltracker.db import Base


class LocalEntry(Base):
    __tablename__ = "local_store"

    # <prefix>_<entity>_<ownerId>, e.g. goalTracker_goals_1718035200000
    key = Column(String(255), primary_key=True, index=True)

    # JSON document exactly as written; parsed on read
    value = Column(Text, nullable=False)

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
