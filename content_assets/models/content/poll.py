from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, mapped_column

from ..base_class import Base
from .content_mixin import ContentMixin


class Poll(ContentMixin, Base):
    __tablename__ = "polls"

    multiple_choice: Mapped[bool] = mapped_column(default=False, nullable=False)
    closes_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    def is_open(self, now: Optional[datetime] = None) -> bool:
        if self.closes_at is None:
            return True
        return (now or datetime.now()) < self.closes_at

    def __repr__(self):
        return f"Poll(id={self.id}, multiple_choice={self.multiple_choice}, closes_at={self.closes_at})"
