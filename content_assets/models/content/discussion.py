from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column

from ..base_class import Base
from .content_mixin import ContentMixin


class Discussion(ContentMixin, Base):
    """
    An open-ended thread. Title, description, image and comments live on the
    paired asset; the discussion itself only owns its opening body and pin flag.
    """

    __tablename__ = "discussions"

    body: Mapped[str] = mapped_column(Text, default="", nullable=False)
    pinned: Mapped[bool] = mapped_column(default=False, nullable=False)

    def __repr__(self):
        return f"Discussion(id={self.id}, pinned={self.pinned})"
