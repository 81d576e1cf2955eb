import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, List, Optional

from sqlalchemy import ForeignKey, String, Text, UniqueConstraint, event, inspect
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.orm.attributes import flag_modified

from ..core.registry import content_registry
from ..services.file_storage import ImageStorage
from ..utils.inflection import slugify
from .base_class import Base
from .comment import Comment
from .types import PkId, TimestampCreated, TimestampUpdated

if TYPE_CHECKING:
    from .category import Category
    from .company import Company
    from .user import User

logger = logging.getLogger(__name__)


def content_backref_name(key: str) -> str:
    """Name of the per-type many-to-one attribute on Asset, e.g. ``poll_content``."""
    return f"{key}_content"


class Asset(Base):
    """
    The shared record paired one-to-one with every content record.

    Holds the metadata common to all content types (title, description,
    category, company, image, comment counter, archival flag) and points back
    at its content through the ``content_type``/``content_id`` pair. The ORM
    exposes that pair as ``asset.content``; the per-type relationships behind
    it are created by ContentMixin when each content mapper is configured.
    """

    __tablename__ = "assets"

    id: Mapped[PkId]

    # Polymorphic back-reference: content class name + content primary key.
    content_type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    content_id: Mapped[Optional[int]] = mapped_column(nullable=True)

    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category_id: Mapped[Optional[int]] = mapped_column(ForeignKey("categories.id"), index=True, nullable=True)
    company_id: Mapped[Optional[int]] = mapped_column(ForeignKey("companies.id"), index=True, nullable=True)

    # Identifier of the stored image file (see services.file_storage).
    image: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)

    comments_count: Mapped[int] = mapped_column(default=0, nullable=False)
    archived: Mapped[bool] = mapped_column(default=False, nullable=False)

    created_at: Mapped[TimestampCreated]
    updated_at: Mapped[TimestampUpdated]

    category: Mapped[Optional["Category"]] = relationship()
    company: Mapped[Optional["Company"]] = relationship()
    comments: Mapped[List["Comment"]] = relationship(
        back_populates="asset",
        cascade="all, delete-orphan",
        order_by=Comment.created_at,
    )

    # Transient upload state; consumed at flush time by process_pending_image().
    _pending_image_binary = None
    _pending_image_cache = None

    __table_args__ = (UniqueConstraint("content_type", "content_id"),)

    def __init__(self, **kwargs: Any):
        # Column defaults only apply on INSERT.
        kwargs.setdefault("comments_count", 0)
        kwargs.setdefault("archived", False)
        super().__init__(**kwargs)

    def __repr__(self):
        return f"Asset(id={self.id}, content_type='{self.content_type}', content_id={self.content_id})"

    # --- polymorphic content reference ---

    @property
    def content(self) -> Optional[Any]:
        if not self.content_type:
            return None
        key = content_registry.key_for_type_name(self.content_type)
        return getattr(self, content_backref_name(key))

    @content.setter
    def content(self, content: Optional[Any]) -> None:
        if content is None:
            if self.content_type:
                key = content_registry.key_for_type_name(self.content_type)
                setattr(self, content_backref_name(key), None)
            self.content_type = None
            self.content_id = None
            return

        key = content_registry.key_for(type(content))
        setattr(self, content_backref_name(key), content)
        self.content_type = content_registry.get(key).__name__

    # --- archival ---

    @property
    def is_archived(self) -> bool:
        return bool(self.archived)

    def toggle_archived(self) -> bool:
        self.archived = not self.archived
        return self.archived

    # --- permalink ---

    @property
    def permalink(self) -> Optional[str]:
        if self.id is None:
            return None
        slug = slugify(self.title)
        return f"{self.id}-{slug}" if slug else str(self.id)

    def to_param(self) -> Optional[str]:
        return self.permalink

    # --- comments ---

    @property
    def last_comment_at(self) -> Optional[datetime]:
        timestamps = [comment.created_at for comment in self.comments if comment.created_at is not None]
        return max(timestamps, default=None)

    # --- authorization ---

    def can_be_edited_by(self, user: Optional["User"]) -> bool:
        if user is None:
            return False
        if user.is_admin:
            return True
        return self.company_id is not None and user.company_id == self.company_id

    def can_be_deleted_by(self, user: Optional["User"]) -> bool:
        return user is not None and bool(user.is_admin)

    # --- image ---

    @property
    def has_image(self) -> bool:
        return bool(self.image)

    @property
    def image_changed(self) -> bool:
        return inspect(self).attrs.image.history.has_changes()

    def image_will_change(self) -> None:
        if "image" not in inspect(self).dict:
            # flag_modified() needs the attribute present in the instance state.
            self.image = self.image
        flag_modified(self, "image")

    @property
    def image_binary(self) -> Optional[bytes]:
        return self._pending_image_binary

    @image_binary.setter
    def image_binary(self, data: Optional[bytes]) -> None:
        self._pending_image_binary = data
        if data is not None:
            self.image_will_change()

    @property
    def image_cache(self) -> Optional[str]:
        return self._pending_image_cache

    @image_cache.setter
    def image_cache(self, cache_name: Optional[str]) -> None:
        self._pending_image_cache = cache_name
        if cache_name:
            self.image_will_change()

    @property
    def image_url(self) -> Optional[str]:
        if not self.image:
            return None
        return ImageStorage.from_settings().url(self.image)

    def process_pending_image(self, storage: ImageStorage) -> None:
        """Stores a pending ``image_binary`` or promotes a pending ``image_cache`` into ``image``."""
        if self.image_binary is not None:
            self.image = storage.store(self.image_binary)
            self.image_binary = None
            self.image_cache = None
            logger.debug(f"Stored pending image binary for asset {self.id} as {self.image}")
        elif self.image_cache:
            self.image = storage.promote(self.image_cache)
            self.image_cache = None
            logger.debug(f"Promoted cached image for asset {self.id} as {self.image}")


@event.listens_for(Asset.comments, "append")
def _increment_comments_count(target: Asset, value: Comment, initiator) -> None:
    target.comments_count = (target.comments_count or 0) + 1


@event.listens_for(Asset.comments, "remove")
def _decrement_comments_count(target: Asset, value: Comment, initiator) -> None:
    target.comments_count = max((target.comments_count or 0) - 1, 0)


def release_deleted_comments(session) -> None:
    """
    Removes comments marked with ``session.delete()`` from their asset's
    collection, so ``comments_count`` drops as it does for ``asset.comments.remove()``.
    Runs before each flush of sessions handed out by DatabaseManager.
    """
    for obj in list(session.deleted):
        if not isinstance(obj, Comment):
            continue
        asset = obj.asset
        if asset is None or asset in session.deleted:
            continue
        if obj in asset.comments:
            asset.comments.remove(obj)
