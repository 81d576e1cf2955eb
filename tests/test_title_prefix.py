import json

from sqlalchemy.orm import Session

from content_assets.core.i18n import Translator, t
from content_assets.models import Discussion, Poll
from content_assets.services import content_service


def test_unpersisted_content_uses_the_type_placeholder(settings_override):
    assert Poll().title_with_prefix == "Community | New poll"
    assert Discussion(title="Ignored until saved").title_with_prefix == "Community | New discussion"


def test_persisted_content_uses_its_title(db_session: Session):
    poll = content_service.create_content(db_session, Poll, title="Q")
    assert poll.title_with_prefix == "Community | Q"

    poll.title = None
    assert poll.title_with_prefix == "Community | "


def test_deleted_content_falls_back_to_placeholder(db_session: Session):
    poll = content_service.create_content(db_session, Poll, title="Gone soon")
    content_service.delete_content(db_session, poll)
    assert poll.title_with_prefix == "Community | New poll"


def test_locale_comes_from_settings(settings_override, monkeypatch):
    monkeypatch.setattr(settings_override, "LOCALE", "de")
    assert Poll().title_with_prefix == "Community | Neue Umfrage"


def test_missing_translation_marker():
    translator = Translator(locale="xx")
    assert translator.t("content.title.prefix") == "translation missing: xx.content.title.prefix"
    assert translator.t("content.title.prefix", default="") == ""


def test_lookup_only_returns_leaf_strings():
    translator = Translator(locale="en")
    assert translator.lookup("content.title.prefix") == "Community | "
    assert translator.lookup("content.title") is None
    assert translator.lookup("content.title.prefix.deeper") is None


def test_extra_locales_path_overrides_bundled_catalog(tmp_path):
    (tmp_path / "en.json").write_text(
        json.dumps({"content": {"title": {"prefix": "Forum: {site} | ", "subtitles": {"videos": {"new": "New video"}}}}})
    )
    translator = Translator(locale="en", extra_path=str(tmp_path))

    assert translator.t("content.title.prefix", site="Acme") == "Forum: Acme | "
    assert translator.t("content.title.subtitles.videos.new") == "New video"
    # Keys the override does not mention survive the merge.
    assert translator.t("content.title.subtitles.polls.new") == "New poll"


def test_module_level_t_uses_configured_locale(settings_override, monkeypatch):
    assert t("content.title.subtitles.discussions.new") == "New discussion"
    monkeypatch.setattr(settings_override, "LOCALE", "de")
    assert t("content.title.subtitles.discussions.new") == "Neue Diskussion"
