"""
PostGIS Connection Helpers.

Connections are opened per load from caller-supplied parameters; there is
no application database.

Exports:
    postgis_connection: Context manager yielding a psycopg connection
"""

from contextlib import contextmanager
from typing import Iterator

import psycopg

from core.models import RelationalDestination
from exceptions import DestinationError
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.REPOSITORY, "postgis")


@contextmanager
def postgis_connection(destination: RelationalDestination, connect_timeout: int = 10) -> Iterator[psycopg.Connection]:
    """
    Context manager for PostgreSQL connections to a caller's database.

    Connection Lifecycle:
        1. Connect with the destination's host/port/database/user/password
        2. Yield connection to caller (autocommit off)
        3. On error: rollback transaction
        4. Always: close connection

    Raises:
        DestinationError: Connection failed (network, authentication)
    """
    logger.debug(f"Connecting to {destination.host}:{destination.port}/{destination.database}")
    try:
        conn = psycopg.connect(
            host=destination.host,
            port=destination.port,
            dbname=destination.database,
            user=destination.user,
            password=destination.password,
            connect_timeout=connect_timeout
        )
    except psycopg.Error as e:
        raise DestinationError(
            f"Could not connect to PostgreSQL at {destination.host}:{destination.port}/{destination.database}: {e}"
        ) from e

    try:
        yield conn
    except Exception:
        try:
            conn.rollback()
        except psycopg.Error as rollback_error:
            logger.warning(f"Rollback failed: {rollback_error}")
        raise
    finally:
        conn.close()
