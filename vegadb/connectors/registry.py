"""
vegadb 连接器注册表
"""

from typing import Dict, List, Type

from ..common.exceptions import ConfigurationError
from ..common.options import ConnectorOptions
from .base import Connector


class ConnectorRegistry:
    """连接器注册表"""

    _connectors: Dict[str, Type[Connector]] = {}

    @classmethod
    def register(cls, connector_class: Type[Connector]) -> Type[Connector]:
        if not connector_class.DIALECT_NAME:
            raise ConfigurationError(
                f"{connector_class.__name__} must define DIALECT_NAME to be registered"
            )
        cls._connectors[connector_class.DIALECT_NAME] = connector_class
        return connector_class

    @classmethod
    def get(cls, dialect: str) -> Type[Connector]:
        if dialect not in cls._connectors:
            raise ConfigurationError(
                f"No connector registered for dialect '{dialect}'. "
                f"Available dialects: {', '.join(sorted(cls._connectors))}"
            )
        return cls._connectors[dialect]

    @classmethod
    def available(cls) -> List[str]:
        """返回依赖已安装的方言"""
        return sorted(name for name, c in cls._connectors.items() if c.is_available())


def get_connector(dialect: str, options: ConnectorOptions) -> Connector:
    """创建指定方言的连接器"""
    return ConnectorRegistry.get(dialect)(options)
