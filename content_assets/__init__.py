"""
content_assets: content types paired one-to-one with a shared Asset record.

Content classes mix in ``ContentMixin``; the asset carries the common metadata,
comments and query scopes for all of them.
"""

__version__ = "0.1.0"
