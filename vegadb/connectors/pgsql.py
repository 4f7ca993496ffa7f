"""
PostgreSQL 连接器（psycopg2）
"""

from typing import Any, Dict, Tuple, Type

from ..common.options import PgsqlConnectorOptions
from .base import Connector


class PgsqlConnector(Connector):
    """PostgreSQL connector (requires psycopg2)"""

    DIALECT_NAME = 'pgsql'
    REQUIRED_DEPENDENCIES = ['psycopg2']
    INSTALL_EXTRA = 'postgres'

    def __init__(self, options: PgsqlConnectorOptions):
        assert isinstance(options, PgsqlConnectorOptions), "options must be an instance of PgsqlConnectorOptions"
        super().__init__(options)
        self.options: PgsqlConnectorOptions = options

    def _do_connect(self) -> Any:
        import psycopg2

        params: Dict[str, Any] = {
            'host': self.options.host,
            'port': self.options.port,
            'dbname': self.options.database,
            'user': self.options.username,
            'password': self.options.password,
        }
        if self.options.connect_timeout is not None:
            params['connect_timeout'] = self.options.connect_timeout
        conn = psycopg2.connect(**params)
        # 与其他方言一致：事务之外的语句立即提交
        conn.autocommit = True
        if self.options.schema:
            with conn.cursor() as cursor:
                cursor.execute('SET search_path TO %s', (self.options.schema,))
        return conn

    def driver_errors(self) -> Tuple[Type[BaseException], ...]:
        import psycopg2
        return (psycopg2.Error,)

    def begin(self, driver: Any) -> None:
        driver.autocommit = False

    def commit(self, driver: Any) -> None:
        driver.commit()
        driver.autocommit = True

    def rollback(self, driver: Any) -> None:
        driver.rollback()
        driver.autocommit = True

    def last_insert_id(self, driver: Any, cursor: Any) -> Any:
        import psycopg2

        # 表没有使用序列时 LASTVAL() 会报错，事务内用保存点隔离该错误
        in_transaction = not driver.autocommit
        with driver.cursor() as lookup:
            if in_transaction:
                lookup.execute('SAVEPOINT vegadb_lastval')
            try:
                lookup.execute('SELECT LASTVAL()')
                row = lookup.fetchone()
            except psycopg2.Error:
                if in_transaction:
                    lookup.execute('ROLLBACK TO SAVEPOINT vegadb_lastval')
                return None
            if in_transaction:
                lookup.execute('RELEASE SAVEPOINT vegadb_lastval')
        return row[0] if row else None
