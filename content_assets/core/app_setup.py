import logging
from typing import Optional

from sqlalchemy.orm import configure_mappers

from .registry import ContentRegistry, content_registry

logger = logging.getLogger(__name__)


def setup_content_types(registry: Optional[ContentRegistry] = None) -> ContentRegistry:
    """
    Startup hook for the content layer.

    Imports the bundled models (registering their content types), configures
    the mappers so every content type has its asset relationship, and installs
    the per-type collection scopes on Asset. Content types defined later still
    get their scope, since the registry installs it on registration.
    """
    from ..models import Asset  # Importing the models package registers the bundled content types.

    effective_registry = registry or content_registry
    configure_mappers()
    effective_registry.install_asset_scopes(Asset)
    logger.info(
        f"Content types ready: {', '.join(sorted(effective_registry.content_types())) or '(none)'}"
    )
    return effective_registry
