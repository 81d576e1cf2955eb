import logging
from datetime import datetime
from pathlib import Path
from typing import Generator

import pytest
from sqlalchemy.orm import Session

import content_assets.core.config
from content_assets.core.config import Settings
from content_assets.core.database import DatabaseManager
from content_assets.models import Category, Company, User
from content_assets.services.file_storage import ImageStorage


@pytest.fixture(scope="session", autouse=True)
def configure_session_logging():
    """
    Set the log level to WARNING for all loggers for the entire test session.
    Tests that assert on log records raise the level locally with caplog.
    """
    original_levels = {}

    root_logger = logging.getLogger()
    original_levels["root"] = root_logger.level
    root_logger.setLevel(logging.WARNING)

    for logger_name in list(logging.Logger.manager.loggerDict.keys()):
        logger = logging.getLogger(logger_name)
        original_levels[logger_name] = logger.level
        logger.setLevel(logging.WARNING)

    yield

    root_logger.setLevel(original_levels.get("root", logging.INFO))
    for logger_name in list(logging.Logger.manager.loggerDict.keys()):
        logger = logging.getLogger(logger_name)
        logger.setLevel(original_levels.get(logger_name, logging.NOTSET))


@pytest.fixture(scope="function")
def settings_override(monkeypatch, tmp_path: Path) -> Generator[Settings, None, None]:
    """
    Overrides application settings for the duration of a test function:
    a fresh sqlite file and image store under tmp_path.
    """
    storage_dir = tmp_path / "asset_storage"
    storage_dir.mkdir(parents=True, exist_ok=True)

    new_settings = Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'test_content_assets.db'}",
        ASSET_STORAGE_PATH=str(storage_dir),
        IMAGE_BASE_URL="https://cdn.example.test/uploads",
        LOCALE="en",
        LOCALES_PATH=None,
        TESTING_MODE=True,
    )

    monkeypatch.setattr(content_assets.core.config, "settings", new_settings)
    yield new_settings


@pytest.fixture(scope="function")
def db_manager(settings_override: Settings) -> Generator[DatabaseManager, None, None]:
    manager = DatabaseManager(app_settings=settings_override)
    manager.create_db_and_tables()
    yield manager
    manager.drop_db_and_tables()
    manager.dispose()


@pytest.fixture(scope="function")
def db_session(db_manager: DatabaseManager) -> Generator[Session, None, None]:
    """Provides a session from the test DatabaseManager, closed after the test."""
    session = db_manager.get_db_session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def image_storage(settings_override: Settings) -> ImageStorage:
    return ImageStorage.from_settings(settings_override)


@pytest.fixture
def category(db_session: Session) -> Category:
    category = Category(name="Technology", created_at=datetime(2026, 1, 1))
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture
def company(db_session: Session) -> Company:
    company = Company(name="Acme", created_at=datetime(2026, 1, 1))
    db_session.add(company)
    db_session.commit()
    return company


@pytest.fixture
def admin_user(db_session: Session) -> User:
    user = User(name="Ada", is_admin=True)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def member_user(db_session: Session, company: Company) -> User:
    user = User(name="Grace", company=company, is_admin=False)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def outsider_user(db_session: Session) -> User:
    other_company = Company(name="Globex")
    user = User(name="Linus", company=other_company, is_admin=False)
    db_session.add(user)
    db_session.commit()
    return user
