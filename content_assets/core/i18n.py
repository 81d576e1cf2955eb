import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from . import config as app_config

logger = logging.getLogger(__name__)

BUNDLED_LOCALES_PATH = Path(__file__).resolve().parent.parent / "locales"


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _load_catalog(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            catalog = json.load(f)
    except (IOError, json.JSONDecodeError) as e:
        raise ValueError(f"Error reading or parsing locale catalog {path}: {e}")
    if not isinstance(catalog, dict):
        raise ValueError(f"Locale catalog {path} must be a JSON object (dictionary).")
    return catalog


class Translator:
    """
    Dotted-key string lookup over JSON catalogs.

    Catalogs are looked up as ``<locale>.json`` in the bundled locales directory
    and then in ``extra_path`` (if given), later files overriding earlier ones.
    """

    def __init__(self, locale: str = "en", extra_path: Optional[str] = None):
        self.locale = locale
        self.catalog: Dict[str, Any] = {}

        search_paths = [BUNDLED_LOCALES_PATH]
        if extra_path:
            search_paths.append(Path(extra_path))

        for directory in search_paths:
            catalog_file = directory / f"{locale}.json"
            if catalog_file.is_file():
                self.catalog = _deep_merge(self.catalog, _load_catalog(catalog_file))
                logger.debug(f"Loaded locale catalog {catalog_file}")

        if not self.catalog:
            logger.warning(f"No locale catalog found for '{locale}' in {[str(p) for p in search_paths]}")

    def lookup(self, key: str) -> Optional[str]:
        node: Any = self.catalog
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node if isinstance(node, str) else None

    def t(self, key: str, default: Optional[str] = None, **interpolations: Any) -> str:
        """
        Translate ``key`` (e.g. ``content.title.prefix``).

        Missing keys return ``default`` when given, otherwise a
        ``translation missing: <locale>.<key>`` marker.
        """
        value = self.lookup(key)
        if value is None:
            if default is not None:
                return default
            logger.warning(f"Missing translation for '{key}' in locale '{self.locale}'")
            return f"translation missing: {self.locale}.{key}"
        if interpolations:
            return value.format(**interpolations)
        return value


@lru_cache(maxsize=None)
def _translator_for(locale: str, extra_path: Optional[str]) -> Translator:
    return Translator(locale=locale, extra_path=extra_path)


def get_translator() -> Translator:
    """Returns the translator for the currently configured locale."""
    return _translator_for(app_config.settings.LOCALE, app_config.settings.LOCALES_PATH)


def t(key: str, default: Optional[str] = None, **interpolations: Any) -> str:
    return get_translator().t(key, default=default, **interpolations)
