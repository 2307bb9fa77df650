"""Todo list API with token-authenticated users."""

__version__ = "1.0.0"
