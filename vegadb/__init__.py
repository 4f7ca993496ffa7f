"""
vegadb - Fluent SQL query builder

A dialect-agnostic query builder for SQLite, MySQL and PostgreSQL.
Build queries with chained calls, execute them through DB-API drivers,
and observe every statement through listener hooks.

Example:
    from vegadb import connect, QueryBuilder

    conn = connect('sqlite', database='app.db')
    qb = QueryBuilder(conn)
    adults = qb.table('users').where('age', '>=', 18).order_by('name').get()
"""

import logging

# query 必须先于 core 导入（dialects 依赖 query 的叶子模块）
from .query import (
    QueryBuilder,
    Raw,
    raw,
    JoinBuilder,
    NestedCriteria,
    StatementModel,
    ExecutionResult,
    SelectResult,
    InsertResult,
    BatchInsertResult,
    MutationResult,
    render_display_sql,
)
from .core import (
    Connection,
    connect,
    get_default_connection,
    set_default_connection,
    event,
    QueryListener,
    LoggingListener,
)
from .dialects import QueryCompiler, CompiledQuery, get_compiler, get_available_dialects
from .connectors import Connector, get_connector
from .common.options import (
    SqliteConnectorOptions,
    MysqlConnectorOptions,
    PgsqlConnectorOptions,
    ConnectorOptions,
    get_default_connector_options,
    options_from_dict,
)
from .common.exceptions import (
    VegadbException,
    ConfigurationError,
    DatabaseConnectionError,
    ExecutionError,
    ConsumerMisuseError,
    UnsupportedOperationError,
    TransactionError,
)

__version__ = '0.1.0'

# 库本身不配置日志输出，由应用决定
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Builder
    'QueryBuilder',
    'Raw',
    'raw',
    'JoinBuilder',
    'NestedCriteria',
    'StatementModel',
    # Results
    'ExecutionResult',
    'SelectResult',
    'InsertResult',
    'BatchInsertResult',
    'MutationResult',
    'render_display_sql',
    # Connection
    'Connection',
    'connect',
    'get_default_connection',
    'set_default_connection',
    # Events
    'event',
    'QueryListener',
    'LoggingListener',
    # Dialects & connectors
    'QueryCompiler',
    'CompiledQuery',
    'get_compiler',
    'get_available_dialects',
    'Connector',
    'get_connector',
    # Options
    'SqliteConnectorOptions',
    'MysqlConnectorOptions',
    'PgsqlConnectorOptions',
    'ConnectorOptions',
    'get_default_connector_options',
    'options_from_dict',
    # Exceptions
    'VegadbException',
    'ConfigurationError',
    'DatabaseConnectionError',
    'ExecutionError',
    'ConsumerMisuseError',
    'UnsupportedOperationError',
    'TransactionError',
]
