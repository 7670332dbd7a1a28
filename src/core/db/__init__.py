"""Database module.

All mixins compose into the Database class via multiple inheritance.
The MRO (Method Resolution Order) ensures ConnectionBase.__init__
runs first, then SchemaMixin._ensure_schema() creates the schema.
"""

from __future__ import annotations

from src.core.db.connection import ConnectionBase
from src.core.db.schema import SchemaMixin
from src.core.db.session_queries import ScrapeSessionMixin
from src.core.db.smart_set_queries import SmartSetMixin

__all__ = ["Database"]


class Database(
    SchemaMixin,
    ScrapeSessionMixin,
    SmartSetMixin,
    ConnectionBase,
):
    """Main database class composing all query mixins.

    Inherits connection management from ConnectionBase,
    schema handling from SchemaMixin, and all query methods
    from the remaining mixins.
    """

    pass
