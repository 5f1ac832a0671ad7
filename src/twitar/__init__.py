"""Twitter OAuth 1.0a / OAuth 2.0 (PKCE) broker."""

__version__ = "0.1.0"
