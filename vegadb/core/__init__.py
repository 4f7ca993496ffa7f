"""
vegadb 核心模块

包含连接、执行管道和事件钩子
"""

from .event import event, EventManager, QueryListener, LoggingListener
from .connection import (
    Connection,
    connect,
    get_default_connection,
    set_default_connection,
)
from .executor import Executor, coerce_binding

__all__ = [
    # Events
    'event',
    'EventManager',
    'QueryListener',
    'LoggingListener',
    # Connection
    'Connection',
    'connect',
    'get_default_connection',
    'set_default_connection',
    # Execution
    'Executor',
    'coerce_binding',
]
