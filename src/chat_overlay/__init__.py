"""Chat overlay engine - username casing, post counts and lazy emoji loading."""

__version__ = "0.4.0"
