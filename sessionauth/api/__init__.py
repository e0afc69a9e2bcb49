"""Session Auth HTTP API."""
