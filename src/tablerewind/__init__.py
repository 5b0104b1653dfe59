"""tablerewind - record which tables each database connection inserted into.

Write entry points of database connection types are wrapped so every
row insertion is recorded against the calling connection. A reset routine
between tests then truncates exactly those tables.
"""

__version__ = "0.1.0"

from tablerewind.rewinder import (
    Rewinder,
    clear_inserted_tables,
    get_rewinder,
    inserted_tables,
    install,
)

__all__ = [
    "Rewinder",
    "__version__",
    "clear_inserted_tables",
    "get_rewinder",
    "inserted_tables",
    "install",
]
