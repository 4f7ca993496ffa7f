"""
vegadb 配置选项 dataclass 定义

该模块定义了所有连接器的配置选项，替代原有的配置字典参数。
"""
from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional, Union

from .exceptions import ConfigurationError


@dataclass(slots=True)
class SqliteConnectorOptions:
    """SQLite 连接器配置选项"""
    database: str = ':memory:'  # 数据库文件路径
    prefix: Optional[str] = None  # 表名前缀
    timeout: float = 5.0  # 等待锁的超时时间（秒）
    isolation_level: Optional[str] = None  # 事务隔离级别，None 为自动提交
    check_same_thread: bool = True  # 检查同一线程


@dataclass(slots=True)
class MysqlConnectorOptions:
    """MySQL 连接器配置选项"""
    host: str = 'localhost'
    port: int = 3306
    database: str = ''
    username: str = ''
    password: str = ''
    charset: str = 'utf8mb4'
    prefix: Optional[str] = None  # 表名前缀
    connect_timeout: Optional[int] = None  # 连接超时时间（秒），交给驱动处理


@dataclass(slots=True)
class PgsqlConnectorOptions:
    """PostgreSQL 连接器配置选项"""
    host: str = 'localhost'
    port: int = 5432
    database: str = ''
    username: str = ''
    password: str = ''
    schema: Optional[str] = None  # 连接后设置的 search_path
    prefix: Optional[str] = None  # 表名前缀
    connect_timeout: Optional[int] = None  # 连接超时时间（秒），交给驱动处理


# Connector 选项联合类型
ConnectorOptions = Union[
    SqliteConnectorOptions,
    MysqlConnectorOptions,
    PgsqlConnectorOptions,
]


_OPTION_TYPES: Dict[str, type] = {
    'sqlite': SqliteConnectorOptions,
    'mysql': MysqlConnectorOptions,
    'pgsql': PgsqlConnectorOptions,
}


def get_default_connector_options(dialect: str) -> ConnectorOptions:
    """根据方言返回默认连接器选项"""
    option_type = _OPTION_TYPES.get(dialect)
    if option_type is None:
        raise ConfigurationError(
            f"Unknown dialect: '{dialect}'. "
            f"Valid dialects: {', '.join(sorted(_OPTION_TYPES))}"
        )
    return option_type()


def options_from_dict(dialect: str, config: Mapping[str, Any]) -> ConnectorOptions:
    """
    从普通字典构建连接器选项

    Args:
        dialect: 方言名称（'sqlite', 'mysql', 'pgsql'）
        config: 配置字典，如 {'database': 'app.db', 'prefix': 'cb_'}

    Returns:
        对应方言的选项对象

    Raises:
        ConfigurationError: 方言未知或存在无法识别的配置项
    """
    options = get_default_connector_options(dialect)
    known = {f.name for f in fields(options)}
    unknown = set(config) - known
    if unknown:
        raise ConfigurationError(
            f"Unknown option(s) for dialect '{dialect}': {', '.join(sorted(unknown))}"
        )
    for key, value in config.items():
        setattr(options, key, value)
    return options
