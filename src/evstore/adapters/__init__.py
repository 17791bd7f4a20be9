"""Adapters – SQLAlchemy persistence and Redis caching."""
