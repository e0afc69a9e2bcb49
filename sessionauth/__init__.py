"""Session Auth - email/password authentication with per-device sessions."""

__version__ = "1.0.0"
