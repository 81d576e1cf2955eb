import hashlib
import logging
import shutil
import uuid
from pathlib import Path
from typing import Optional

from ..core import config as app_config
from ..core.config import Settings
from ..core.exceptions import ImageStorageError

logger = logging.getLogger(__name__)

CACHE_DIR_NAME = "cache"


class ImageStorage:
    """
    Content-addressable image store behind the asset ``image`` attribute.

    Stored files live at ``<root>/ab/cd/<sha256>`` and are identified by their
    SHA256 hash. Uploads can also be parked in ``<root>/cache/<name>`` first
    (e.g. while a form is re-displayed) and promoted into the store later.
    """

    def __init__(self, storage_path: str | Path, base_url: str = "/uploads"):
        self.root = Path(storage_path)
        self.base_url = base_url.rstrip("/")

    @classmethod
    def from_settings(cls, app_settings: Optional[Settings] = None) -> "ImageStorage":
        effective_settings = app_settings or app_config.settings
        return cls(effective_settings.ASSET_STORAGE_PATH, effective_settings.IMAGE_BASE_URL)

    @staticmethod
    def relative_path(identifier: str) -> Path:
        """
        Nested path for a file hash relative to the storage root.
        Example: ab/cd/abcdef123456...
        """
        if not identifier or len(identifier) < 4:
            raise ValueError("Image identifier must be at least 4 characters long for storage path generation.")
        return Path(identifier[:2]) / identifier[2:4] / identifier

    def path_for(self, identifier: str) -> Path:
        return self.root / self.relative_path(identifier)

    def store(self, data: bytes, original_filename: Optional[str] = None) -> str:
        """
        Stores ``data`` and returns its identifier (SHA256 hex digest).
        Storing identical bytes twice keeps a single file.
        """
        identifier = hashlib.sha256(data).hexdigest()
        storage_path = self.path_for(identifier)
        try:
            storage_path.parent.mkdir(parents=True, exist_ok=True)
            if not storage_path.exists():
                with open(storage_path, "wb") as f:
                    f.write(data)
                logger.info(f"Stored image {original_filename or identifier} to {storage_path}")
            else:
                logger.debug(f"Image {original_filename or identifier} already exists at {storage_path}")
        except OSError as e:
            raise ImageStorageError(f"Could not store image {original_filename or identifier}: {e}") from e
        return identifier

    def get_file_path(self, identifier: Optional[str]) -> Optional[Path]:
        """Absolute path of a stored image, or None if it does not exist."""
        if not identifier:
            return None
        try:
            storage_path = self.path_for(identifier)
        except ValueError:
            logger.warning(f"Invalid image identifier format: {identifier}")
            return None
        if storage_path.is_file():
            return storage_path.resolve()
        return None

    def read(self, identifier: str) -> bytes:
        file_path = self.get_file_path(identifier)
        if file_path is None:
            raise ImageStorageError(f"Image {identifier} not found in {self.root}")
        return file_path.read_bytes()

    def delete(self, identifier: str) -> bool:
        """Deletes a stored image and any directories it leaves empty."""
        file_path = self.get_file_path(identifier)
        if file_path is None:
            logger.warning(f"Image {identifier} not found for deletion in {self.root}")
            return False
        file_path.unlink()
        logger.info(f"Deleted image {identifier} from {file_path}")
        for parent in (file_path.parent, file_path.parent.parent):
            try:
                parent.rmdir()
            except OSError:
                break
        return True

    def url(self, identifier: str) -> str:
        return f"{self.base_url}/{self.relative_path(identifier).as_posix()}"

    # --- two-phase uploads ---

    @property
    def cache_root(self) -> Path:
        return self.root / CACHE_DIR_NAME

    def cache(self, data: bytes, original_filename: Optional[str] = None) -> str:
        """Parks ``data`` in the cache directory and returns the cache name."""
        suffix = Path(original_filename).suffix if original_filename else ""
        cache_name = f"{uuid.uuid4().hex}{suffix}"
        try:
            self.cache_root.mkdir(parents=True, exist_ok=True)
            (self.cache_root / cache_name).write_bytes(data)
        except OSError as e:
            raise ImageStorageError(f"Could not cache image {original_filename or cache_name}: {e}") from e
        logger.debug(f"Cached image {original_filename or cache_name} as {cache_name}")
        return cache_name

    def promote(self, cache_name: str) -> str:
        """Moves a cached upload into the store and returns its identifier."""
        cached_path = self.cache_root / Path(cache_name).name
        if not cached_path.is_file():
            raise ImageStorageError(f"Cached image {cache_name} not found in {self.cache_root}")
        identifier = self.store(cached_path.read_bytes(), original_filename=cache_name)
        cached_path.unlink()
        return identifier

    def clear_cache(self) -> None:
        if self.cache_root.exists():
            shutil.rmtree(self.cache_root)
