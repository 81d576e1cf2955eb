import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from content_assets.models import Asset, Base, ContentMixin
from content_assets.models.asset import release_deleted_comments
from content_assets.services.file_storage import ImageStorage

from . import config as app_config
from .app_setup import setup_content_types
from .config import Settings
from .exceptions import AssetPresenceError

logger = logging.getLogger(__name__)


def validate_asset_presence(content: ContentMixin) -> None:
    """Raises AssetPresenceError unless ``content`` is paired with an asset pointing back at it."""
    asset = content.asset
    if asset is None:
        raise AssetPresenceError(f"Asset can't be blank for {type(content).__name__}", content=content)
    if asset.content is not content:
        raise AssetPresenceError(
            f"Asset of {type(content).__name__} does not reference it back "
            f"(content_type={asset.content_type!r}, content_id={asset.content_id!r})",
            content=content,
        )


class DatabaseManager:
    """
    Manages the engine and sessions of the content database.

    Sessions handed out by this manager validate content/asset pairing and
    store pending image uploads before every flush. Comments deleted directly
    through the session are released from their asset so its counter stays right.
    """

    def __init__(self, app_settings: Optional[Settings] = None, image_storage: Optional[ImageStorage] = None):
        """
        Args:
            app_settings: Settings to use; defaults to the global settings instance.
            image_storage: Upload store for pending asset images; built from settings if omitted.
        """
        self.settings = app_settings or app_config.settings
        self.image_storage = image_storage or ImageStorage.from_settings(self.settings)
        self._engine: Optional[Engine] = None
        self._session_local: Optional[sessionmaker[Session]] = None

        setup_content_types()
        self._initialize_engine()

    def _initialize_engine(self):
        """Initializes the engine and session maker."""
        if not self.settings.DATABASE_URL:
            raise ValueError("DATABASE_URL not set. Cannot initialize database.")

        connect_args = {}
        if self.settings.DATABASE_URL.startswith("sqlite"):
            connect_args["check_same_thread"] = False

        self._engine = create_engine(self.settings.DATABASE_URL, connect_args=connect_args)
        self._session_local = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)
        event.listen(self._session_local, "before_flush", self._before_flush)
        logger.info(f"Initialized database engine ({self._engine.url.render_as_string(hide_password=True)})")

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database engine has not been initialized.")
        return self._engine

    @property
    def session_local(self) -> sessionmaker[Session]:
        if self._session_local is None:
            raise RuntimeError("SessionLocal has not been initialized.")
        return self._session_local

    def get_db_session(self) -> Session:
        """
        Provides a new database session.
        The caller is responsible for closing the session.
        """
        return self.session_local()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Session that commits on success, rolls back on error and is always closed."""
        session = self.get_db_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def _before_flush(self, session: Session, flush_context, instances) -> None:
        release_deleted_comments(session)
        pending = [obj for obj in list(session.new) + list(session.dirty) if obj not in session.deleted]

        # Every check runs before any image is stored.
        for obj in pending:
            if isinstance(obj, ContentMixin):
                validate_asset_presence(obj)

        for obj in pending:
            if isinstance(obj, Asset):
                obj.process_pending_image(self.image_storage)

    def create_db_and_tables(self):
        """
        Creates all database tables.
        In TESTING_MODE, if the database URL suggests a test database,
        it will drop all tables before creating them.
        """
        logger.info("Attempting to create database tables...")

        # WARNING: Destructive operation in testing mode.
        if self.settings.TESTING_MODE and "test" in self.settings.DATABASE_URL:
            Base.metadata.drop_all(bind=self.engine)
            logger.info("Dropped all tables (testing mode)")

        try:
            Base.metadata.create_all(bind=self.engine)
            logger.info("Database tables created (or verified existing)")
        except Exception as e:
            logger.error(f"Error creating tables: {e}", exc_info=True)
            raise  # Re-raise after logging, as this is a critical failure.

    def drop_db_and_tables(self):
        Base.metadata.drop_all(bind=self.engine)
        logger.info("Dropped all tables")

    def dispose(self):
        if self._engine is not None:
            self._engine.dispose()
