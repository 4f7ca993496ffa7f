"""
vegadb 执行管道

绑定参数、执行语句、计时、上报监听器，并执行“吞掉并上报”的错误策略：
驱动在执行阶段抛出的异常不会离开终结操作，而是包装为 ExecutionError
上报给 on_exception 并保存在结果对象中。
"""

import logging
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Type, TypeVar, Union

from ..common.exceptions import DatabaseConnectionError, ExecutionError
from ..query.debug import render_display_sql
from ..query.result import ExecutionResult, InsertResult, MutationResult, SelectResult
from .connection import Connection
from .event import event


logger = logging.getLogger(__name__)

Bindings = Optional[Union[Sequence[Any], Mapping[str, Any]]]
RowFactory = Callable[[Dict[str, Any]], Any]
_R = TypeVar('_R', bound=ExecutionResult)


def coerce_binding(value: Any) -> Any:
    """
    参数绑定的固定转换规则

    int 与 bool 绑定为整数，None 绑定为 NULL，bytes 原样传递，其余一律绑定为文本。
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return str(value)


def coerce_bindings(bindings: Bindings) -> Union[Tuple[Any, ...], Dict[str, Any]]:
    if not bindings:
        return ()
    if isinstance(bindings, Mapping):
        return {key: coerce_binding(value) for key, value in bindings.items()}
    return tuple(coerce_binding(value) for value in bindings)


class Executor:
    """
    语句执行器

    所有终结操作最终都通过该类访问驱动。
    """

    def __init__(self, connection: Connection):
        self.connection = connection

    def display_sql(self, sql: str, bindings: Bindings) -> str:
        compiler = self.connection.compiler
        return render_display_sql(sql, bindings, compiler.quote_literal, compiler.PLACEHOLDER)

    def statement(self, sql: str, bindings: Bindings = None) -> Tuple[Any, float]:
        """
        准备、绑定并执行语句

        Args:
            sql: SQL 文本
            bindings: 位置参数或命名参数

        Returns:
            (游标, 准备+绑定+执行耗时)

        Raises:
            DatabaseConnectionError: 连接不可用
            Exception: 绑定或执行失败（驱动异常、编码错误、数值溢出等）
        """
        start = time.perf_counter()
        cursor = self.connection.cursor()
        try:
            cursor.execute(sql, coerce_bindings(bindings))
        except Exception:
            cursor.close()
            raise
        return cursor, time.perf_counter() - start

    def select(self, sql: str, bindings: Bindings = None,
               row_factory: Optional[RowFactory] = None) -> SelectResult:
        """执行查询并取回全部行"""
        display = self.display_sql(sql, bindings)
        try:
            cursor, elapsed = self.statement(sql, bindings)
            try:
                fetch_start = time.perf_counter()
                rows = self._fetch_all(cursor, row_factory)
                elapsed += time.perf_counter() - fetch_start
            finally:
                cursor.close()
        except Exception as e:
            return self._failure(SelectResult, display, 'select', e)

        logger.debug("select %s | rows=%d | %.6fs", display, len(rows), elapsed)
        event.dispatch(self.connection, 'after_select', display, len(rows), elapsed)
        return SelectResult(sql=display, elapsed=elapsed, rows=rows)

    def insert(self, sql: str, bindings: Bindings = None, operation: str = 'insert') -> InsertResult:
        """执行单行插入，仅在恰好影响一行时解析自增主键"""
        display = self.display_sql(sql, bindings)
        try:
            cursor, elapsed = self.statement(sql, bindings)
            try:
                affected = cursor.rowcount
                insert_id = self.connection.last_insert_id(cursor) if affected == 1 else None
            finally:
                cursor.close()
        except Exception as e:
            return self._failure(InsertResult, display, operation, e)

        logger.debug("%s %s | affected=%d | id=%s | %.6fs", operation, display, affected, insert_id, elapsed)
        event.dispatch(self.connection, 'after_insert', display, affected, insert_id, elapsed)
        return InsertResult(sql=display, elapsed=elapsed, affected=affected, insert_id=insert_id)

    def update(self, sql: str, bindings: Bindings = None) -> MutationResult:
        return self._mutate(sql, bindings, 'update')

    def delete(self, sql: str, bindings: Bindings = None) -> MutationResult:
        return self._mutate(sql, bindings, 'delete')

    def _mutate(self, sql: str, bindings: Bindings, operation: str) -> MutationResult:
        display = self.display_sql(sql, bindings)
        try:
            cursor, elapsed = self.statement(sql, bindings)
            try:
                affected = cursor.rowcount
            finally:
                cursor.close()
        except Exception as e:
            return self._failure(MutationResult, display, operation, e)

        logger.debug("%s %s | affected=%d | %.6fs", operation, display, affected, elapsed)
        event.dispatch(self.connection, f'after_{operation}', display, affected, elapsed)
        return MutationResult(sql=display, elapsed=elapsed, affected=affected)

    def _failure(self, result_type: Type[_R], display: str, operation: str, cause: BaseException) -> _R:
        if isinstance(cause, DatabaseConnectionError):
            error: Exception = cause
        else:
            error = ExecutionError(operation, display, cause)
            error.__cause__ = cause
        logger.warning("%s failed: %s | %s", operation, cause, display)
        event.dispatch(self.connection, 'on_exception', display, operation, error)
        return result_type(sql=display, error=error)

    @staticmethod
    def _fetch_all(cursor: Any, row_factory: Optional[RowFactory]) -> List[Any]:
        if cursor.description is None:
            return []
        columns = [column[0] for column in cursor.description]
        rows = [dict(zip(columns, row)) for row in cursor.fetchall()]
        if row_factory is not None:
            rows = [row_factory(row) for row in rows]
        return rows
