"""
vegadb 方言注册表

方言名称到编译器类的类型化映射，构建器在创建时查找一次编译器。
"""

from typing import Dict, List, Type

from ..common.exceptions import ConfigurationError
from .base import QueryCompiler


class DialectRegistry:
    """编译器注册表"""

    _compilers: Dict[str, Type[QueryCompiler]] = {}

    @classmethod
    def register(cls, compiler_class: Type[QueryCompiler]) -> Type[QueryCompiler]:
        """
        注册编译器类（可作为类装饰器使用）

        Args:
            compiler_class: QueryCompiler 子类，必须定义 DIALECT_NAME

        Returns:
            原编译器类
        """
        if not compiler_class.DIALECT_NAME:
            raise ConfigurationError(
                f"{compiler_class.__name__} must define DIALECT_NAME to be registered"
            )
        cls._compilers[compiler_class.DIALECT_NAME] = compiler_class
        return compiler_class

    @classmethod
    def get(cls, dialect: str) -> Type[QueryCompiler]:
        if dialect not in cls._compilers:
            raise ConfigurationError(
                f"Unknown dialect: '{dialect}'. "
                f"Available dialects: {', '.join(sorted(cls._compilers))}"
            )
        return cls._compilers[dialect]

    @classmethod
    def available(cls) -> List[str]:
        return sorted(cls._compilers)


def get_compiler(dialect: str) -> QueryCompiler:
    """创建指定方言的编译器实例"""
    return DialectRegistry.get(dialect)()


def get_available_dialects() -> List[str]:
    """获取已注册的方言名称列表"""
    return DialectRegistry.available()
