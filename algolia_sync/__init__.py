"""Keep an Algolia index in sync with a SQLAlchemy unit of work."""

__version__ = "0.1.0"
