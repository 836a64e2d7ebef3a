"""
Declarative base and shared columns for ORM models
"""
from sqlalchemy import Column, DateTime, Integer
from sqlalchemy.orm import declarative_base

from ..core.constants import utc_now

Base = declarative_base()


class BaseModel:
    """
    Mixin con id autoincremental y timestamps de auditoría.

    Usage:
        class EvaluationDB(Base, BaseModel):
            __tablename__ = "evaluations"
    """

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} id={self.id}>"
