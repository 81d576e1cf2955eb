# Content types. Importing this package registers every bundled content type.
from .content_mixin import CONTENT_DELEGATIONS, AssetDelegate, ContentMixin
from .discussion import Discussion
from .poll import Poll
from .scopes import ContentQuery

__all__ = [
    "CONTENT_DELEGATIONS",
    "AssetDelegate",
    "ContentMixin",
    "ContentQuery",
    "Discussion",
    "Poll",
]
