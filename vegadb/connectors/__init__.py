"""
vegadb 连接器模块

按方言拨号到具体数据库（sqlite3 / mysql-connector-python / psycopg2）
"""

from .base import Connector
from .registry import ConnectorRegistry, get_connector
from .sqlite import SqliteConnector
from .mysql import MysqlConnector
from .pgsql import PgsqlConnector

ConnectorRegistry.register(SqliteConnector)
ConnectorRegistry.register(MysqlConnector)
ConnectorRegistry.register(PgsqlConnector)

__all__ = [
    'Connector',
    'ConnectorRegistry',
    'get_connector',
    'SqliteConnector',
    'MysqlConnector',
    'PgsqlConnector',
]
