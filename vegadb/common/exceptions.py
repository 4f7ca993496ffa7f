"""
vegadb 异常定义
"""

from typing import Optional


class VegadbException(Exception):
    """vegadb 基础异常类"""


class ConfigurationError(VegadbException):
    """配置异常（缺少连接、未知方言、驱动依赖缺失等）"""


class DatabaseConnectionError(VegadbException):
    """数据库连接异常（连接失败或句柄不可用）"""


class ExecutionError(VegadbException):
    """
    语句执行异常

    由执行器包装驱动抛出的原始异常，不会从终结操作中抛出，
    而是上报给监听器并保存在结果对象中。
    """
    def __init__(self, operation: str, sql: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.sql = sql
        self.cause = cause
        message = f"{operation} failed: {cause}" if cause is not None else f"{operation} failed"
        super().__init__(message)


class ConsumerMisuseError(VegadbException):
    """调用方式错误（参数形状不正确等）"""


class UnsupportedOperationError(VegadbException):
    """当前方言不支持的操作"""
    def __init__(self, dialect: str, operation: str):
        self.dialect = dialect
        self.operation = operation
        super().__init__(f"Operation '{operation}' is not supported by dialect '{dialect}'")


class TransactionError(VegadbException):
    """事务异常"""
