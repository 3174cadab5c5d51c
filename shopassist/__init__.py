"""shopassist -- product assistant and comment moderation for an apparel store."""

__version__ = "0.1.0"
