import hashlib

from sqlalchemy import select
from sqlalchemy.orm import Session

from content_assets.models import Asset, Comment, Discussion, Poll
from content_assets.services import content_service
from content_assets.services.file_storage import ImageStorage


def test_new_asset_defaults():
    asset = Asset()
    assert asset.comments_count == 0
    assert asset.archived is False
    assert asset.is_archived is False
    assert asset.permalink is None


def test_toggle_archived_returns_new_value():
    asset = Asset()
    assert asset.toggle_archived() is True
    assert asset.toggle_archived() is False


def test_per_type_scopes_select_only_their_assets(db_session: Session):
    poll = content_service.create_content(db_session, Poll, title="Poll one")
    content_service.create_content(db_session, Discussion, title="Discussion one")
    content_service.create_content(db_session, Discussion, title="Discussion two")
    db_session.commit()

    poll_assets = db_session.scalars(Asset.polls()).all()
    assert [asset.id for asset in poll_assets] == [poll.asset.id]

    discussion_assets = db_session.scalars(Asset.discussions()).all()
    assert sorted(asset.title for asset in discussion_assets) == ["Discussion one", "Discussion two"]
    assert all(isinstance(asset.content, Discussion) for asset in discussion_assets)


def test_image_binary_is_stored_on_flush(db_session: Session, image_storage: ImageStorage):
    data = b"\x89PNG fake image bytes"
    identifier = hashlib.sha256(data).hexdigest()

    poll = Poll(title="With picture")
    poll.image_binary = data
    assert poll.image_binary == data

    db_session.add(poll)
    db_session.flush()

    assert poll.image == identifier
    assert poll.image_binary is None
    assert image_storage.read(identifier) == data
    assert poll.image_url == f"https://cdn.example.test/uploads/{identifier[:2]}/{identifier[2:4]}/{identifier}"


def test_image_binary_on_persisted_asset_marks_it_dirty(db_session: Session, image_storage: ImageStorage):
    poll = content_service.create_content(db_session, Poll, title="Later picture")
    db_session.commit()
    assert poll.has_image is False

    poll.image_binary = b"replacement"
    assert poll.asset in db_session.dirty

    db_session.commit()
    assert poll.image == hashlib.sha256(b"replacement").hexdigest()
    assert image_storage.get_file_path(poll.image) is not None


def test_cached_image_is_promoted_on_flush(db_session: Session, image_storage: ImageStorage):
    cache_name = image_storage.cache(b"cached bytes", "photo.png")
    assert cache_name.endswith(".png")

    discussion = Discussion(title="Cached upload")
    discussion.image_cache = cache_name
    db_session.add(discussion)
    db_session.flush()

    assert discussion.image == hashlib.sha256(b"cached bytes").hexdigest()
    assert discussion.image_cache is None
    assert not (image_storage.cache_root / cache_name).exists()


def test_image_changed_tracks_history(db_session: Session):
    poll = content_service.create_content(db_session, Poll, title="History")
    db_session.commit()
    assert poll.image_changed is False

    poll.image = "0123456789abcdef"
    assert poll.image_changed is True

    db_session.commit()
    assert poll.image_changed is False

    poll.image_will_change()
    assert poll.asset in db_session.dirty


def test_comments_count_persists(db_session: Session):
    discussion = content_service.create_content(db_session, Discussion, title="Counted")
    content_service.add_comment(db_session, discussion, "one")
    content_service.add_comment(db_session, discussion, "two")
    db_session.commit()
    asset_id = discussion.asset.id
    db_session.expunge_all()

    asset = db_session.scalars(select(Asset).where(Asset.id == asset_id)).one()
    assert asset.comments_count == 2

    removed = asset.comments[0]
    asset.comments.remove(removed)
    assert asset.comments_count == 1
    db_session.commit()

    assert db_session.get(Asset, asset_id).comments_count == 1
    assert len(db_session.get(Asset, asset_id).comments) == 1


def test_deleting_a_comment_through_the_session_updates_counter(db_session: Session):
    discussion = content_service.create_content(db_session, Discussion, title="Moderated")
    spam = content_service.add_comment(db_session, discussion, "spam")
    content_service.add_comment(db_session, discussion, "on topic")
    db_session.commit()

    db_session.delete(spam)
    db_session.commit()

    assert discussion.comments_count == 1
    assert [comment.body for comment in discussion.comments] == ["on topic"]


def test_deleting_an_unloaded_comment_updates_counter(db_session: Session):
    poll = content_service.create_content(db_session, Poll, title="Moderated later")
    comment_id = content_service.add_comment(db_session, poll, "spam").id
    db_session.commit()
    asset_id = poll.asset.id
    db_session.expunge_all()

    db_session.delete(db_session.get(Comment, comment_id))
    db_session.commit()

    assert db_session.get(Asset, asset_id).comments_count == 0


def test_removed_then_deleted_comment_is_counted_once(db_session: Session):
    poll = content_service.create_content(db_session, Poll, title="Twice removed")
    content_service.add_comment(db_session, poll, "keep")
    dropped = content_service.add_comment(db_session, poll, "drop")
    db_session.commit()

    poll.comments.remove(dropped)
    db_session.delete(dropped)
    db_session.commit()

    assert poll.comments_count == 1
