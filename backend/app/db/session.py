"""
FastAPI dependency that hands route handlers the live database handle.
"""

from app.db.connection import DatabaseHandle, acquire_connection


async def get_db() -> DatabaseHandle:
    return await acquire_connection()
