# This file makes the 'models' directory a Python package.

# Ensure all model modules are imported so they register with Base.metadata
# and, for content types, with the content registry.
from .asset import Asset
from .base_class import Base
from .category import Category
from .comment import Comment
from .company import Company
from .content import CONTENT_DELEGATIONS, AssetDelegate, ContentMixin, ContentQuery, Discussion, Poll
from .user import User

__all__ = [
    # Core
    "Base",
    "Asset",
    "Comment",
    # Supporting records
    "Category",
    "Company",
    "User",
    # Content
    "CONTENT_DELEGATIONS",
    "AssetDelegate",
    "ContentMixin",
    "ContentQuery",
    "Discussion",
    "Poll",
]
