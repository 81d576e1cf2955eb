from typing import TYPE_CHECKING, List

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base_class import Base
from .types import PkId, TimestampCreated

if TYPE_CHECKING:
    from .user import User


class Company(Base):
    __tablename__ = "companies"

    id: Mapped[PkId]
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[TimestampCreated]

    users: Mapped[List["User"]] = relationship(back_populates="company")

    def __repr__(self):
        return f"Company(id={self.id}, name='{self.name}')"
