"""
vegadb 连接

Connection 持有方言名称、驱动连接、表前缀、配置选项和监听器，
构建器在创建时获取一次并在整个生命周期内使用。

默认连接只是应用最外层的便捷入口：第一个以 register_default=True 创建的连接
会被记录下来，QueryBuilder() 在未显式传入连接时使用它。
"""

import logging
import time
from typing import Any, Mapping, Optional, Union, TYPE_CHECKING

from ..common.exceptions import (
    ConfigurationError,
    DatabaseConnectionError,
    TransactionError,
)
from ..common.options import ConnectorOptions, get_default_connector_options, options_from_dict
from ..connectors import Connector, get_connector
from ..dialects import QueryCompiler, get_compiler
from .event import QueryListener, event

if TYPE_CHECKING:
    from ..query.builder import QueryBuilder


logger = logging.getLogger(__name__)

_default_connection: Optional['Connection'] = None


class Connection:
    """数据库连接"""

    def __init__(
        self,
        dialect: str,
        options: Optional[Union[ConnectorOptions, Mapping[str, Any]]] = None,
        listener: Optional[QueryListener] = None,
        driver: Any = None,
        register_default: bool = True,
    ):
        """
        初始化连接

        Args:
            dialect: 方言名称（'sqlite', 'mysql', 'pgsql'）
            options: 连接器选项对象或配置字典（None 使用默认选项）
            listener: 执行监听器（None 表示不做任何上报）
            driver: 已建立的 DB-API 连接；提供时不再拨号
            register_default: 是否登记为默认连接（仅当尚无默认连接时生效）

        Raises:
            ConfigurationError: 方言未知或选项无效
            DatabaseConnectionError: 连接失败
        """
        if options is None:
            options = get_default_connector_options(dialect)
        elif isinstance(options, Mapping):
            options = options_from_dict(dialect, options)

        self.dialect = dialect
        self.options: ConnectorOptions = options
        self.prefix: Optional[str] = options.prefix
        self.listener: QueryListener = listener or QueryListener()
        self.compiler: QueryCompiler = get_compiler(dialect)
        self.connector: Connector = get_connector(dialect, options)
        self.driver: Any = driver

        if self.driver is None:
            self.connect()

        if register_default:
            global _default_connection
            if _default_connection is None:
                _default_connection = self

    def connect(self) -> None:
        """拨号并上报 after_connect"""
        start = time.perf_counter()
        self.driver = self.connector.connect()
        elapsed = time.perf_counter() - start
        logger.debug("connected to %s in %.6fs", self.dialect, elapsed)
        event.dispatch(self, 'after_connect', elapsed)

    def cursor(self) -> Any:
        """
        获取游标（语句准备阶段）

        Raises:
            DatabaseConnectionError: 连接已关闭或不可用
        """
        if self.driver is None:
            raise DatabaseConnectionError(f"{self.dialect} connection is closed")
        try:
            return self.driver.cursor()
        except self.connector.driver_errors() as e:
            raise DatabaseConnectionError(f"{self.dialect} connection is not usable: {e}") from e

    def last_insert_id(self, cursor: Any) -> Any:
        return self.connector.last_insert_id(self.driver, cursor)

    def begin_transaction(self) -> None:
        self._transaction_call('begin')

    def commit(self) -> None:
        self._transaction_call('commit')

    def rollback(self) -> None:
        self._transaction_call('rollback')

    def _transaction_call(self, name: str) -> None:
        if self.driver is None:
            raise DatabaseConnectionError(f"{self.dialect} connection is closed")
        try:
            getattr(self.connector, name)(self.driver)
        except self.connector.driver_errors() as e:
            raise TransactionError(f"{name} failed: {e}") from e

    def query_builder(self) -> 'QueryBuilder':
        """返回绑定到该连接的查询构建器"""
        from ..query.builder import QueryBuilder
        return QueryBuilder(self)

    def close(self) -> None:
        """关闭驱动连接"""
        global _default_connection
        if self.driver is not None:
            self.driver.close()
            self.driver = None
        if _default_connection is self:
            _default_connection = None
        event.clear(self)

    def __enter__(self) -> 'Connection':
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        state = 'open' if self.driver is not None else 'closed'
        return f"Connection(dialect='{self.dialect}', prefix={self.prefix!r}, {state})"


def connect(
    dialect: str,
    options: Optional[Union[ConnectorOptions, Mapping[str, Any]]] = None,
    listener: Optional[QueryListener] = None,
    **config: Any
) -> Connection:
    """
    创建连接

    Example:
        conn = connect('sqlite', database='app.db', prefix='cb_')
        conn = connect('mysql', MysqlConnectorOptions(database='app', username='root'))
    """
    if options is not None and config:
        raise ConfigurationError("Pass either an options object or keyword config, not both")
    return Connection(dialect, options if options is not None else (config or None), listener)


def get_default_connection() -> Optional[Connection]:
    """获取默认连接"""
    return _default_connection


def set_default_connection(connection: Optional[Connection]) -> None:
    """设置（或清除）默认连接"""
    global _default_connection
    _default_connection = connection
