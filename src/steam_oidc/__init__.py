"""Steam OpenID 2.0 to OpenID Connect bridge."""

__version__ = "0.1.0"
