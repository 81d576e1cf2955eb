"""Custom exceptions for the content/asset layer."""


class ContentAssetsError(Exception):
    """Base class for exceptions raised by content_assets."""

    pass


class ContentTypeCollisionError(ContentAssetsError):
    """Raised when a content type cannot be registered under its normalized key."""

    def __init__(self, message: str, key: str) -> None:
        super().__init__(message)
        self.key = key


class UnknownContentTypeError(ContentAssetsError, LookupError):
    """Raised when a content type is looked up but was never registered."""

    pass


class AssetPresenceError(ContentAssetsError):
    """Raised at flush time when a content record is not paired with its asset."""

    def __init__(self, message: str, content: object | None = None) -> None:
        super().__init__(message)
        self.content = content


class MissingAssetError(ContentAssetsError):
    """Raised when a delegated attribute is used on content that has no asset."""

    pass


class ContentNotFoundError(ContentAssetsError):
    """Raised when a content record is not found."""

    pass


class ImageStorageError(ContentAssetsError):
    """Raised when the image store cannot read or write an upload."""

    pass
