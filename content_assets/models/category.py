from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from .base_class import Base
from .types import PkId, TimestampCreated


class Category(Base):
    """
    A subject area assets are filed under (the "industry" of an asset).
    """

    __tablename__ = "categories"

    id: Mapped[PkId]
    name: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    created_at: Mapped[TimestampCreated]

    def __repr__(self):
        return f"Category(id={self.id}, name='{self.name}')"
