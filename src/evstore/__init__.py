"""
evstore – event-sourced persistence for aggregate roots.

Import path convention::

    from evstore.kernel.errors import ConcurrencyConflictError
    from evstore.application.event_sourcing import EventRecord, EventStore
    from evstore.adapters.sqlalchemy import SQLAlchemyEventStore
    from evstore.bootstrap import build_event_store
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
