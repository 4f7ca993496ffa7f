"""
MySQL 连接器（mysql-connector-python）
"""

from typing import Any, Dict, Tuple, Type

from ..common.options import MysqlConnectorOptions
from .base import Connector


class MysqlConnector(Connector):
    """MySQL connector (requires mysql-connector-python)"""

    DIALECT_NAME = 'mysql'
    REQUIRED_DEPENDENCIES = ['mysql.connector']
    INSTALL_EXTRA = 'mysql'

    def __init__(self, options: MysqlConnectorOptions):
        assert isinstance(options, MysqlConnectorOptions), "options must be an instance of MysqlConnectorOptions"
        super().__init__(options)
        self.options: MysqlConnectorOptions = options

    def _do_connect(self) -> Any:
        import mysql.connector

        params: Dict[str, Any] = {
            'host': self.options.host,
            'port': self.options.port,
            'database': self.options.database,
            'user': self.options.username,
            'password': self.options.password,
            'charset': self.options.charset,
            'autocommit': True,
        }
        if self.options.connect_timeout is not None:
            params['connection_timeout'] = self.options.connect_timeout
        return mysql.connector.connect(**params)

    def driver_errors(self) -> Tuple[Type[BaseException], ...]:
        import mysql.connector
        return (mysql.connector.Error,)

    def begin(self, driver: Any) -> None:
        driver.start_transaction()
