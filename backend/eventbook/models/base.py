from sqlalchemy import Column, DateTime
from ..database import Base  # This is the same Base created by declarative_base()
from ..utils.time import utcnow


class BaseModel(Base):
    __abstract__ = True

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
