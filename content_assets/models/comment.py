from typing import TYPE_CHECKING, Optional

from sqlalchemy import ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base_class import Base
from .types import PkId, TimestampCreated

if TYPE_CHECKING:
    from .asset import Asset
    from .user import User


class Comment(Base):
    """
    A comment on an asset. Comments belong to the shared asset, not to the
    concrete content record, so every content type gets them for free.
    """

    __tablename__ = "comments"

    id: Mapped[PkId]
    asset_id: Mapped[int] = mapped_column(ForeignKey("assets.id"), index=True, nullable=False)
    user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), index=True, nullable=True)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[TimestampCreated]

    asset: Mapped["Asset"] = relationship(back_populates="comments")
    user: Mapped[Optional["User"]] = relationship()

    def __repr__(self):
        return f"Comment(id={self.id}, asset_id={self.asset_id}, user_id={self.user_id})"
