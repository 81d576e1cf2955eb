from typing import TYPE_CHECKING, Optional

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base_class import Base
from .types import PkId, TimestampCreated

if TYPE_CHECKING:
    from .company import Company


class User(Base):
    """
    An account that authors content and comments.
    Admins may edit and delete any asset; other users may edit the assets of their company.
    """

    __tablename__ = "users"

    id: Mapped[PkId]
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    company_id: Mapped[Optional[int]] = mapped_column(ForeignKey("companies.id"), index=True, nullable=True)
    is_admin: Mapped[bool] = mapped_column(default=False, nullable=False)
    created_at: Mapped[TimestampCreated]

    company: Mapped[Optional["Company"]] = relationship(back_populates="users")

    def __repr__(self):
        return f"User(id={self.id}, name='{self.name}', company_id={self.company_id}, is_admin={self.is_admin})"
