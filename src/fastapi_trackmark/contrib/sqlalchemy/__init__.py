"""SQLAlchemy (async) storage backend."""
