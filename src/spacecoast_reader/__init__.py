"""Terminal reader for the Space Coast Devs blog."""

__version__ = "0.1.0"
