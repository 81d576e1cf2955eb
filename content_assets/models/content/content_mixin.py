import logging
from datetime import date
from typing import Any, Iterable, Mapping, Optional

from sqlalchemy import and_, event, inspect
from sqlalchemy.orm import Mapped, backref, foreign, relationship, remote

from ...core.exceptions import MissingAssetError
from ...core.i18n import get_translator
from ...core.registry import content_registry
from ..asset import Asset, content_backref_name
from ..category import Category
from ..types import PkId, TimestampCreated
from .scopes import ContentQuery

logger = logging.getLogger(__name__)

# Attributes and behaviors a content record does not own but forwards to its asset.
CONTENT_DELEGATIONS = (
    "company",
    "company_id",
    "comments",
    "comments_count",
    "archived",
    "is_archived",
    "toggle_archived",
    "category",
    "category_id",
    "image",
    "has_image",
    "image_changed",
    "image_url",
    "image_will_change",
    "image_cache",
    "image_binary",
    "permalink",
    "to_param",
    "title",
    "description",
    "can_be_edited_by",
    "can_be_deleted_by",
    "last_comment_at",
)


class AssetDelegate:
    """Descriptor forwarding reads and writes of one attribute to ``instance.asset``."""

    def __init__(self, name: str):
        self.name = name

    def _asset_of(self, instance: Any) -> Asset:
        asset = instance.asset
        if asset is None:
            raise MissingAssetError(
                f"{type(instance).__name__}.{self.name} is delegated to asset, but asset is None."
            )
        return asset

    def __get__(self, instance: Any, owner: Optional[type] = None) -> Any:
        if instance is None:
            return self
        return getattr(self._asset_of(instance), self.name)

    def __set__(self, instance: Any, value: Any) -> None:
        setattr(self._asset_of(instance), self.name, value)

    def __repr__(self):
        return f"AssetDelegate({self.name!r})"


class ContentMixin:
    """
    Mixin that turns a mapped class into a content type.

    Subclasses are registered in the content registry (subclasses of a
    registered type share its registration), get an ``asset``
    relationship to their paired Asset, forward the asset attributes listed in
    CONTENT_DELEGATIONS, and share the query scopes of ContentQuery:

        class Poll(ContentMixin, Base):
            __tablename__ = "polls"
            question_count: Mapped[int] = mapped_column(default=0)

        poll = Poll(title="Favorite editor?")
        assert poll.asset.content is poll
    """

    id: Mapped[PkId]
    created_at: Mapped[TimestampCreated]

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        is_abstract = cls.__dict__.get("__abstract__", False)
        if not is_abstract:
            content_registry.register(cls)

    def __init__(self, **attributes: Any):
        asset = Asset()
        super().__init__()

        self.asset = asset
        asset.content = self

        self.assign_attributes(attributes)

    def assign_attributes(self, attributes: Mapping[str, Any]) -> None:
        """
        Applies ``attributes`` to this record. ``asset_attributes`` (a mapping)
        is applied to the paired asset; other names must exist on the class,
        delegated names included.
        """
        attributes = dict(attributes)
        asset_attributes = attributes.pop("asset_attributes", None)

        if asset_attributes:
            asset = self.asset
            if asset is None:
                raise MissingAssetError(f"Cannot assign asset_attributes on {type(self).__name__} without an asset.")
            for name, value in asset_attributes.items():
                if not hasattr(Asset, name):
                    raise TypeError(f"{name!r} is an invalid keyword argument for {Asset.__name__}")
                setattr(asset, name, value)

        cls_ = type(self)
        for name, value in attributes.items():
            if not hasattr(cls_, name):
                raise TypeError(f"{name!r} is an invalid keyword argument for {cls_.__name__}")
            setattr(self, name, value)

    def __repr__(self):
        return f"{type(self).__name__}(id={self.id})"

    # --- persistence state ---

    @property
    def is_persisted(self) -> bool:
        state = inspect(self)
        return state.has_identity and not state.was_deleted

    # --- derived attributes ---

    @property
    def title_with_prefix(self) -> str:
        translator = get_translator()
        prefix = translator.t("content.title.prefix")
        if self.is_persisted:
            return prefix + (self.title or "")
        association = content_registry.association_for(type(self))
        return prefix + translator.t(f"content.title.subtitles.{association}.new")

    # --- scopes ---

    @classmethod
    def query(cls) -> ContentQuery:
        return ContentQuery(cls)

    @classmethod
    def containing_keywords(cls, keywords: Iterable[str]) -> ContentQuery:
        return cls.query().containing_keywords(keywords)

    @classmethod
    def containing_phrase(cls, phrase: str) -> ContentQuery:
        return cls.query().containing_phrase(phrase)

    @classmethod
    def in_category(cls, category: Category | int) -> ContentQuery:
        return cls.query().in_category(category)

    @classmethod
    def order_by_comment(cls) -> ContentQuery:
        return cls.query().order_by_comment()

    @classmethod
    def order_by_date(cls) -> ContentQuery:
        return cls.query().order_by_date()

    @classmethod
    def order_by_hottest(cls) -> ContentQuery:
        return cls.query().order_by_hottest()

    @classmethod
    def for_last_week(cls, today: Optional[date] = None) -> ContentQuery:
        return cls.query().for_last_week(today)


for _name in CONTENT_DELEGATIONS:
    setattr(ContentMixin, _name, AssetDelegate(_name))
del _name


@event.listens_for(ContentMixin, "mapper_configured", propagate=True)
def _setup_asset_relationship(mapper, class_) -> None:
    """
    Creates ``class_.asset`` and the matching ``Asset.<key>_content`` backref.
    The join is on the asset's content_id and content_type columns, so no
    foreign key constraint ties the assets table to any content table.
    Mapped subclasses of a content type inherit its relationship.
    """
    if class_ not in content_registry:
        return

    type_name = class_.__name__
    key = content_registry.key_for(class_)

    # Every content type writes assets.content_id; the type tag keeps them apart.
    overlaps = ", ".join(["asset"] + [content_backref_name(k) for k in content_registry.content_types()])

    class_.asset = relationship(
        Asset,
        primaryjoin=and_(
            class_.id == foreign(remote(Asset.content_id)),
            Asset.content_type == type_name,
        ),
        uselist=False,
        cascade="all, delete-orphan",
        overlaps=overlaps,
        backref=backref(
            content_backref_name(key),
            primaryjoin=remote(class_.id) == foreign(Asset.content_id),
            overlaps=overlaps,
        ),
    )

    @event.listens_for(class_.asset, "set", propagate=True)
    def _tag_asset(target, value, oldvalue, initiator):
        if value is not None:
            value.content_type = type_name

    logger.debug(f"Configured asset relationship for content type {type_name} ('{key}')")

