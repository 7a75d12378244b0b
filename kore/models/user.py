import uuid

from sqlalchemy import Column, String, DateTime, Text

from kore.database import Base
from kore.utils.clock import utc_now


class User(Base):
    __tablename__ = "users"

    # Opaque string ids; the identity layer that issues tokens owns them
    id = Column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        index=True,
    )

    name = Column(String, nullable=False)
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)

    image = Column(String, nullable=True)
    bio = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utc_now, nullable=False)
