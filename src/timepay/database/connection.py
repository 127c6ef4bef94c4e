from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Optional

import mysql.connector
from mysql.connector.constants import ClientFlag

logger = logging.getLogger(__name__)


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str


class DatabaseConnection:
    """Singleton-like DB connection factory.

    Note: We create short-lived connections per operation. Inside
    `transaction()` every repository call made on the same thread shares one
    connection, which is committed or rolled back as a unit.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config
        self._local = threading.local()

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    def connect(self):
        return mysql.connector.connect(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
            client_flags=[ClientFlag.FOUND_ROWS],
        )

    @property
    def active_connection(self) -> Any:
        return getattr(self._local, "conn", None)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self.active_connection is not None:
            yield
            return

        conn = self.connect()
        conn.start_transaction()
        self._local.conn = conn
        try:
            yield
            conn.commit()
        except Exception:
            logger.debug("Rolling back transaction")
            conn.rollback()
            raise
        finally:
            self._local.conn = None
            conn.close()
