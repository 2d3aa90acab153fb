"""Property listing services: listings, messages, search indexing, a queue consumer and user storage."""

__version__ = "0.1.0"