"""Client-side session and access token lifecycle."""

__version__ = "1.0.0"
