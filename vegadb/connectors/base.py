"""
vegadb 连接器基类

连接器负责按配置选项拨号到具体数据库，并暴露驱动的事务原语和
自增主键读取方式。构建器只依赖 DB-API 2.0 连接对象。
"""

from abc import ABC, abstractmethod
from importlib import import_module
from typing import Any, List, Optional, Tuple, Type

from ..common.exceptions import ConfigurationError, DatabaseConnectionError
from ..common.options import ConnectorOptions


class Connector(ABC):
    """连接器抽象基类"""

    DIALECT_NAME: str = ''
    REQUIRED_DEPENDENCIES: List[str] = []
    INSTALL_EXTRA: Optional[str] = None  # pip install vegadb[extra]

    def __init__(self, options: ConnectorOptions):
        self.options = options

    @classmethod
    def is_available(cls) -> bool:
        """检查驱动依赖是否已安装"""
        for module_name in cls.REQUIRED_DEPENDENCIES:
            try:
                import_module(module_name)
            except ImportError:
                return False
        return True

    def connect(self) -> Any:
        """
        建立数据库连接

        Returns:
            DB-API 2.0 连接对象

        Raises:
            ConfigurationError: 驱动依赖未安装
            DatabaseConnectionError: 驱动连接失败
        """
        if not self.is_available():
            hint = f" Install with: pip install vegadb[{self.INSTALL_EXTRA}]" if self.INSTALL_EXTRA else ''
            raise ConfigurationError(
                f"{', '.join(self.REQUIRED_DEPENDENCIES)} is required for the {self.DIALECT_NAME} dialect.{hint}"
            )
        try:
            return self._do_connect()
        except self.driver_errors() as e:
            raise DatabaseConnectionError(f"Could not connect to {self.DIALECT_NAME}: {e}") from e

    @abstractmethod
    def _do_connect(self) -> Any:
        """按选项创建驱动连接"""

    @abstractmethod
    def driver_errors(self) -> Tuple[Type[BaseException], ...]:
        """驱动抛出的异常基类"""

    def begin(self, driver: Any) -> None:
        """开始事务"""
        driver.execute('BEGIN')

    def commit(self, driver: Any) -> None:
        driver.commit()

    def rollback(self, driver: Any) -> None:
        driver.rollback()

    def last_insert_id(self, driver: Any, cursor: Any) -> Any:
        """读取最近一次插入生成的主键"""
        return cursor.lastrowid

    def __repr__(self) -> str:
        return f"{type(self).__name__}(dialect='{self.DIALECT_NAME}')"
