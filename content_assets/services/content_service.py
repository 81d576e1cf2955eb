import logging
from datetime import datetime
from typing import Any, Iterable, List, Optional, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from content_assets.core.exceptions import ContentNotFoundError
from content_assets.core.registry import content_registry
from content_assets.models import Asset, Category, Comment, ContentMixin, ContentQuery, User

T = TypeVar("T", bound=ContentMixin)

# Note: All functions in this service require a `session: Session` argument.
# The caller (e.g., a CLI command handler or a request handler) owns the
# transaction and is responsible for committing or rolling back.

logger = logging.getLogger(__name__)

ORDERINGS = ("date", "comment", "hottest")


def create_content(session: Session, content_cls: Type[T], flush: bool = True, **attributes: Any) -> T:
    """
    Creates a content record (and its paired asset) and adds both to the session.

    Args:
        session: The SQLAlchemy session.
        content_cls: A registered content type, e.g. Poll.
        flush: Whether to flush so both records get their IDs. Defaults to True.
        **attributes: Attributes for the content; delegated names such as
            ``title`` land on the asset, ``asset_attributes`` is applied to it as a whole.
    """
    content = content_cls(**attributes)
    session.add(content)  # Cascades to the asset
    if flush:
        session.flush()
        logger.info(f"Created {content_cls.__name__} {content.id} with asset {content.asset.id}")
    return content


def get_content(session: Session, content_cls: Type[T], content_id: int) -> Optional[T]:
    return session.get(content_cls, content_id)


def get_content_or_raise(session: Session, content_cls: Type[T], content_id: int) -> T:
    content = get_content(session, content_cls, content_id)
    if content is None:
        raise ContentNotFoundError(f"{content_cls.__name__} with ID {content_id} not found.")
    return content


def get_content_by_key(session: Session, key: str, content_id: int) -> ContentMixin:
    """Looks a record up by registry key, e.g. ``get_content_by_key(session, "poll", 3)``."""
    return get_content_or_raise(session, content_registry.get(key), content_id)


def get_content_for_asset(session: Session, asset_id: int) -> Optional[ContentMixin]:
    asset = session.get(Asset, asset_id)
    if asset is None:
        return None
    return asset.content


def delete_content(session: Session, content: ContentMixin, flush: bool = True) -> None:
    """Deletes a content record; its asset and the asset's comments go with it."""
    logger.info(f"Deleting {type(content).__name__} {content.id}")
    session.delete(content)
    if flush:
        session.flush()


def add_comment(
    session: Session,
    content: ContentMixin,
    body: str,
    user: Optional[User] = None,
    created_at: Optional[datetime] = None,
    flush: bool = True,
) -> Comment:
    """Adds a comment to the content's asset, keeping the asset's comment counter in step."""
    if not body:
        raise ValueError("Comment body cannot be empty.")

    comment = Comment(body=body, user=user)
    if created_at is not None:
        comment.created_at = created_at
    content.comments.append(comment)
    session.add(comment)
    if flush:
        session.flush()
    return comment


def toggle_archived(session: Session, content: ContentMixin, flush: bool = True) -> bool:
    archived = content.toggle_archived()
    if flush:
        session.flush()
    logger.info(f"{type(content).__name__} {content.id} is now {'archived' if archived else 'unarchived'}")
    return archived


def build_content_query(
    content_cls: Type[ContentMixin],
    keywords: Optional[Iterable[str]] = None,
    phrase: Optional[str] = None,
    category: Optional[Category | int] = None,
    order: Optional[str] = None,
) -> ContentQuery:
    """Composes the shared scopes for one content type without executing anything."""
    query = content_cls.query()
    if keywords:
        query = query.containing_keywords(keywords)
    if phrase:
        query = query.containing_phrase(phrase)
    if category is not None:
        query = query.in_category(category)

    if order is None or order == "date":
        query = query.order_by_date()
    elif order == "comment":
        query = query.order_by_comment()
    elif order == "hottest":
        query = query.order_by_hottest()
    else:
        raise ValueError(f"Unknown ordering '{order}'. Expected one of: {', '.join(ORDERINGS)}")
    return query


def find_content(
    session: Session,
    content_types: Optional[Iterable[Type[ContentMixin]]] = None,
    keywords: Optional[Iterable[str]] = None,
    phrase: Optional[str] = None,
    category: Optional[Category | int] = None,
    order: Optional[str] = None,
) -> List[ContentMixin]:
    """
    Searches one or more content types (all registered types by default).
    Results are grouped by type in registry order, each group in the requested order.
    """
    keywords = list(keywords) if keywords else None
    results: List[ContentMixin] = []
    for content_cls in content_types or content_registry.content_models():
        query = build_content_query(content_cls, keywords=keywords, phrase=phrase, category=category, order=order)
        results.extend(query.all(session))
    return results


def get_assets_of_type(session: Session, content_cls: Type[ContentMixin]) -> List[Asset]:
    """Assets paired with ``content_cls`` records, via the scope installed on Asset."""
    scope = getattr(Asset, content_registry.association_for(content_cls))
    return list(session.execute(scope()).scalars().all())


def count_assets_by_type(session: Session) -> dict[str, int]:
    """{"discussions": 3, "polls": 0, ...}"""
    counts = {}
    for association in content_registry.content_associations():
        stmt = getattr(Asset, association)()
        counts[association] = session.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()
    return counts

