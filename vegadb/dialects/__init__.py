"""
vegadb 方言模块

提供方言编译器的注册、发现和实例化功能
"""

from .base import QueryCompiler, CompiledQuery
from .registry import DialectRegistry, get_compiler, get_available_dialects
from .sqlite import SqliteCompiler
from .mysql import MysqlCompiler
from .pgsql import PgsqlCompiler

DialectRegistry.register(SqliteCompiler)
DialectRegistry.register(MysqlCompiler)
DialectRegistry.register(PgsqlCompiler)

__all__ = [
    'QueryCompiler',
    'CompiledQuery',
    'DialectRegistry',
    'get_compiler',
    'get_available_dialects',
    'SqliteCompiler',
    'MysqlCompiler',
    'PgsqlCompiler',
]
