"""Database engine and connection utilities.

This module centralizes database connectivity primitives to enforce the db-layer
boundary for all SQLAlchemy usage.
"""

import hashlib

from sqlalchemy import Engine, create_engine


def db_create_engine(database_url: str) -> Engine:
    """Create the SQLAlchemy engine for application database access.

    Args:
        database_url: SQLAlchemy database URL.

    Returns:
        Engine: Configured SQLAlchemy engine.

    Raises:
        ValueError: Raised when the database URL is blank.
    """

    if not database_url.strip():
        raise ValueError("database_url must not be blank")

    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})
    return create_engine(database_url, pool_pre_ping=True, isolation_level="READ COMMITTED")


def db_build_advisory_lock_keys(lock_scope: str) -> tuple[int, int]:
    """Create deterministic PostgreSQL advisory lock keys for one lock scope.

    Args:
        lock_scope: Scope label such as a security class identifier.

    Returns:
        tuple[int, int]: Two signed int32 lock keys.

    Raises:
        ValueError: Raised when lock_scope is blank.
    """

    normalized_scope = lock_scope.strip()
    if not normalized_scope:
        raise ValueError("lock_scope must not be blank")
    digest = hashlib.sha256(normalized_scope.encode("utf-8")).digest()
    key_1 = int.from_bytes(digest[0:4], byteorder="big", signed=True)
    key_2 = int.from_bytes(digest[4:8], byteorder="big", signed=True)
    return key_1, key_2
