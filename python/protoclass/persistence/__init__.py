"""Storage side of generated classes: CRUD methods and table DDL."""

from .schema import build_create_table_sql, create_table
from .service import QueryService

__all__ = [
    "QueryService",
    "build_create_table_sql",
    "create_table",
]
