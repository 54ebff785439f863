from app.db.connection import (
    ConnectionManager,
    ConnectionPhase,
    DatabaseHandle,
    acquire_connection,
    get_connection_manager,
    install_connection_manager,
    reset_connection_manager,
)
from app.db.indexes import ensure_indexes

__all__ = [
    "ConnectionManager", "ConnectionPhase", "DatabaseHandle",
    "acquire_connection", "get_connection_manager",
    "install_connection_manager", "reset_connection_manager",
    "ensure_indexes",
]
