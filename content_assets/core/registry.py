"""
Process-wide registry of content types.

Every concrete class mixing in ``ContentMixin`` registers itself here when it is
defined. The registry derives the key and association names used everywhere
else (``Poll`` -> ``poll`` -> ``polls``) and installs one collection scope per
content type on the asset class, e.g. ``Asset.polls()``.
"""

import logging
from typing import Any, Dict, List, Optional, Type

from sqlalchemy import select

from ..utils.inflection import pluralize, underscore
from .exceptions import ContentTypeCollisionError, UnknownContentTypeError

logger = logging.getLogger(__name__)

# Marker set on the functions installed as asset scopes so they can be told
# apart from attributes the asset class defines itself.
CONTENT_SCOPE_MARKER = "__content_scope__"


def _qualified_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def _make_asset_scope(association: str, type_name: str) -> classmethod:
    def scope(asset_cls):
        return select(asset_cls).where(asset_cls.content_type == type_name)

    scope.__name__ = association
    scope.__doc__ = f"Assets whose content is a {type_name}."
    setattr(scope, CONTENT_SCOPE_MARKER, type_name)
    return classmethod(scope)


def _is_installed_scope(asset_cls: type, name: str) -> bool:
    attr = asset_cls.__dict__.get(name)
    return isinstance(attr, classmethod) and hasattr(attr.__func__, CONTENT_SCOPE_MARKER)


class ContentRegistry:
    """Key -> content type mapping plus the asset scopes derived from it."""

    def __init__(self) -> None:
        self._types: Dict[str, Type[Any]] = {}
        self._asset_cls: Optional[type] = None

    # --- registration ---

    def register(self, content_cls: Type[Any]) -> str:
        """
        Registers ``content_cls`` under its normalized key and returns the key.

        Registering a class whose module and qualified name match the current
        entry replaces it (module reload). Any other class normalizing to an
        existing key raises ContentTypeCollisionError. A subclass of a
        registered type is not a type of its own; its base's key is returned.

        Nothing is changed when registration fails.
        """
        base = self._registered_base(content_cls)
        if base is not None and base is not content_cls:
            key = self.key_for(base)
            logger.debug(f"{content_cls.__name__} is a subclass of content type {base.__name__}; using key '{key}'")
            return key

        key = underscore(content_cls.__name__)
        existing = self._types.get(key)
        if existing is not None and existing is not content_cls:
            if _qualified_name(existing) != _qualified_name(content_cls):
                raise ContentTypeCollisionError(
                    f"Content type {_qualified_name(content_cls)} normalizes to key '{key}', "
                    f"which is already registered by {_qualified_name(existing)}.",
                    key=key,
                )
            logger.debug(f"Replacing reloaded content type {_qualified_name(content_cls)} under key '{key}'")

        if self._asset_cls is not None:
            # Scopes were already installed; late registrations get theirs right away.
            self._check_scope_free(self._asset_cls, key, content_cls)
            self._install_scope(self._asset_cls, key, content_cls)

        self._types[key] = content_cls
        logger.debug(f"Registered content type: {content_cls.__name__} as '{key}'")
        return key

    def clear(self) -> None:
        """Forgets all registered types and removes the scopes installed on the asset class."""
        if self._asset_cls is not None:
            for association in self.content_associations():
                if _is_installed_scope(self._asset_cls, association):
                    delattr(self._asset_cls, association)
        self._types.clear()
        self._asset_cls = None

    # --- derived mappings ---

    def content_models(self) -> List[Type[Any]]:
        """Registered content classes, in registration order."""
        return list(self._types.values())

    def content_types(self) -> Dict[str, Type[Any]]:
        """{"discussion": Discussion, "poll": Poll}"""
        return dict(self._types)

    def content_associations(self) -> Dict[str, str]:
        """{"discussions": "Discussion", "polls": "Poll"}"""
        return {pluralize(key): content_cls.__name__ for key, content_cls in self._types.items()}

    # --- lookups ---

    def get(self, key: str) -> Type[Any]:
        try:
            return self._types[key]
        except KeyError:
            raise UnknownContentTypeError(
                f"No content type registered under '{key}'. Registered: {sorted(self._types)}"
            ) from None

    def key_for(self, content_cls: Type[Any]) -> str:
        """Key of ``content_cls``, or of the registered type it subclasses."""
        base = self._registered_base(content_cls)
        for key, registered in self._types.items():
            if registered is base:
                return key
        raise UnknownContentTypeError(f"{content_cls.__name__} is not a registered content type.")

    def _registered_base(self, content_cls: Type[Any]) -> Optional[Type[Any]]:
        for klass in content_cls.__mro__:
            if klass in self:
                return klass
        return None

    def key_for_type_name(self, type_name: str) -> str:
        """Key for the type tag stored on assets (the content class name)."""
        for key, registered in self._types.items():
            if registered.__name__ == type_name:
                return key
        raise UnknownContentTypeError(f"No content type registered with type name '{type_name}'.")

    def association_for(self, content_cls: Type[Any]) -> str:
        return pluralize(self.key_for(content_cls))

    def __contains__(self, content_cls: object) -> bool:
        return any(registered is content_cls for registered in self._types.values())

    def __len__(self) -> int:
        return len(self._types)

    # --- asset scopes ---

    def install_asset_scopes(self, asset_cls: type) -> None:
        """
        Installs ``asset_cls.<association>()`` for every registered content type.
        Safe to call repeatedly. If any scope would shadow an attribute of
        ``asset_cls``, nothing is installed.
        """
        if self._asset_cls is not None and self._asset_cls is not asset_cls:
            raise ValueError(
                f"Asset scopes are already installed on {self._asset_cls.__name__}; "
                f"cannot also install them on {asset_cls.__name__}."
            )
        for key, content_cls in self._types.items():
            self._check_scope_free(asset_cls, key, content_cls)

        self._asset_cls = asset_cls
        for key, content_cls in self._types.items():
            self._install_scope(asset_cls, key, content_cls)
        logger.info(f"Installed {len(self._types)} content scopes on {asset_cls.__name__}")

    def refresh(self) -> None:
        """Re-installs the scope of every registered type on the asset class."""
        if self._asset_cls is None:
            logger.warning("ContentRegistry.refresh() called before install_asset_scopes(); nothing to refresh.")
            return
        self.install_asset_scopes(self._asset_cls)

    @staticmethod
    def _check_scope_free(asset_cls: type, key: str, content_cls: Type[Any]) -> None:
        association = pluralize(key)
        if hasattr(asset_cls, association) and not _is_installed_scope(asset_cls, association):
            raise ContentTypeCollisionError(
                f"Cannot install scope '{association}' for {content_cls.__name__}: "
                f"{asset_cls.__name__}.{association} already exists.",
                key=key,
            )

    def _install_scope(self, asset_cls: type, key: str, content_cls: Type[Any]) -> None:
        association = pluralize(key)
        setattr(asset_cls, association, _make_asset_scope(association, content_cls.__name__))
        logger.debug(f"Installed scope {asset_cls.__name__}.{association} for {content_cls.__name__}")


# Process-wide registry used by ContentMixin.
content_registry = ContentRegistry()
