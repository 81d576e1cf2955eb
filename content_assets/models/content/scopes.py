from datetime import date, datetime, time, timedelta, timezone
from typing import TYPE_CHECKING, Any, Iterable, List, Optional, Type

from sqlalchemy import Select, func, or_, select
from sqlalchemy.orm import Session, configure_mappers

from ..asset import Asset
from ..category import Category
from ..comment import Comment

if TYPE_CHECKING:
    from .content_mixin import ContentMixin

LAST_WEEK_DAYS = 7


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _text_contains(fragment: str):
    return or_(
        Asset.title.contains(fragment, autoescape=True),
        Asset.description.contains(fragment, autoescape=True),
    )


class ContentQuery:
    """
    Chainable, lazily evaluated query over one content type.

    Every scope returns a new ContentQuery; nothing touches the database until
    ``all()``, ``first()`` or ``count()`` is called with a session. Scopes that
    need asset columns join ``assets`` once, however many are chained.

        Poll.query().in_category(tech).containing_keywords(["python", "rust"]).all(session)
    """

    def __init__(
        self,
        content_cls: Type["ContentMixin"],
        statement: Optional[Select] = None,
        joined_asset: bool = False,
    ):
        # The per-type asset relationship is created when mappers configure.
        configure_mappers()
        self.content_cls = content_cls
        self._statement = statement if statement is not None else select(content_cls)
        self._joined_asset = joined_asset

    def _derive(self, statement: Select, joined_asset: Optional[bool] = None) -> "ContentQuery":
        return ContentQuery(
            self.content_cls,
            statement,
            self._joined_asset if joined_asset is None else joined_asset,
        )

    def _with_asset(self) -> Select:
        if self._joined_asset:
            return self._statement
        return self._statement.join(self.content_cls.asset)

    def _where_on_asset(self, *criteria: Any) -> "ContentQuery":
        return self._derive(self._with_asset().where(*criteria), joined_asset=True)

    def _order_on_asset(self, *clauses: Any) -> "ContentQuery":
        return self._derive(self._with_asset().order_by(*clauses), joined_asset=True)

    @property
    def statement(self) -> Select:
        return self._statement

    # --- scopes ---

    def containing_keywords(self, keywords: Iterable[str]) -> "ContentQuery":
        """
        Title or description contains any of ``keywords``. An empty list does
        not filter.
        """
        keywords = list(keywords)
        if not keywords:
            return self._derive(self._with_asset(), joined_asset=True)
        return self._where_on_asset(or_(*(_text_contains(keyword) for keyword in keywords)))

    def containing_phrase(self, phrase: str) -> "ContentQuery":
        """Title or description contains ``phrase`` as a whole."""
        return self._where_on_asset(_text_contains(phrase))

    def in_category(self, category: Category | int) -> "ContentQuery":
        category_id = category.id if isinstance(category, Category) else category
        return self._where_on_asset(Asset.category_id == category_id)

    def order_by_comment(self) -> "ContentQuery":
        """Most recently commented first; assets without comments last."""
        last_comment = (
            select(
                Comment.asset_id.label("asset_id"),
                func.max(Comment.created_at).label("created_at"),
            )
            .group_by(Comment.asset_id)
            .subquery("last_comment")
        )
        statement = self._with_asset().outerjoin(last_comment, last_comment.c.asset_id == Asset.id)
        return self._derive(
            statement.order_by(last_comment.c.created_at.desc().nulls_last()),
            joined_asset=True,
        )

    def order_by_date(self) -> "ContentQuery":
        return self._order_on_asset(Asset.created_at.desc())

    def order_by_hottest(self) -> "ContentQuery":
        return self._order_on_asset(Asset.comments_count.desc())

    def for_last_week(self, today: Optional[date] = None) -> "ContentQuery":
        """
        Content created from the start of the day a week ago up to the start of
        today, newest first. Uses the content's own created_at. ``today``
        defaults to the current UTC date, matching database timestamps.
        """
        today = today or utc_today()
        start = datetime.combine(today - timedelta(days=LAST_WEEK_DAYS), time.min)
        end = datetime.combine(today, time.min)
        created_at = self.content_cls.created_at
        statement = self._with_asset().where(created_at.between(start, end)).order_by(created_at.desc())
        return self._derive(statement, joined_asset=True)

    def archived(self, flag: bool = True) -> "ContentQuery":
        return self._where_on_asset(Asset.archived == flag)

    def where(self, *criteria: Any) -> "ContentQuery":
        return self._derive(self._statement.where(*criteria))

    # --- execution ---

    def all(self, session: Session) -> List["ContentMixin"]:
        return list(session.execute(self._statement).scalars().all())

    def first(self, session: Session) -> Optional["ContentMixin"]:
        return session.execute(self._statement.limit(1)).scalars().first()

    def count(self, session: Session) -> int:
        count_stmt = select(func.count()).select_from(self._statement.order_by(None).subquery())
        return session.execute(count_stmt).scalar_one()

    def __repr__(self):
        return f"ContentQuery({self.content_cls.__name__}, joined_asset={self._joined_asset})"
