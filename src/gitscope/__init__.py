"""GitScope: early warning for fast-growing GitHub repositories."""

__version__ = "0.1.0"
