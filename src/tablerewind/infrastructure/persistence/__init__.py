"""SQLAlchemy integration."""

from tablerewind.infrastructure.persistence.event_listeners import (
    create_dialect_registry,
    dialect_entry_points,
    register_sqlalchemy_listeners,
    remove_sqlalchemy_listeners,
    resolve_dialect,
)

__all__ = [
    "create_dialect_registry",
    "dialect_entry_points",
    "register_sqlalchemy_listeners",
    "remove_sqlalchemy_listeners",
    "resolve_dialect",
]
