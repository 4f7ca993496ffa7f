"""
SQLite 连接器（标准库 sqlite3）
"""

import sqlite3
from typing import Any, Tuple, Type

from ..common.options import SqliteConnectorOptions
from .base import Connector


class SqliteConnector(Connector):
    """SQLite connector (stdlib)"""

    DIALECT_NAME = 'sqlite'
    REQUIRED_DEPENDENCIES = []  # 标准库

    def __init__(self, options: SqliteConnectorOptions):
        assert isinstance(options, SqliteConnectorOptions), "options must be an instance of SqliteConnectorOptions"
        super().__init__(options)
        self.options: SqliteConnectorOptions = options

    def _do_connect(self) -> sqlite3.Connection:
        return sqlite3.connect(
            self.options.database,
            timeout=self.options.timeout,
            isolation_level=self.options.isolation_level,
            check_same_thread=self.options.check_same_thread,
        )

    def driver_errors(self) -> Tuple[Type[BaseException], ...]:
        return (sqlite3.Error,)
