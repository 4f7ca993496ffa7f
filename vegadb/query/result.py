"""
vegadb 执行结果

所有终结操作都返回结果对象而不是抛出执行异常：ok 表示成功，
error 保存失败原因（ExecutionError 或 DatabaseConnectionError）。
"""

from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional


@dataclass
class ExecutionResult:
    """
    执行结果基类

    Attributes:
        sql: 展示用 SQL（占位符已插值）
        elapsed: 执行耗时（秒）
        error: 失败时的异常，成功时为 None
    """
    sql: str = ''
    elapsed: float = 0.0
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class SelectResult(ExecutionResult):
    """
    查询结果

    行为类似只读列表：支持 len()、下标、迭代；没有行时为假值。
    """
    rows: List[Any] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def first(self) -> Optional[Any]:
        return self.rows[0] if self.rows else None

    def all(self) -> List[Any]:
        return list(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.rows)

    def __getitem__(self, index: Any) -> Any:
        return self.rows[index]

    def __bool__(self) -> bool:
        return bool(self.rows)


@dataclass
class InsertResult(ExecutionResult):
    """
    单行插入结果

    insert_id 仅在恰好影响一行时才会被解析，否则为 None。
    """
    affected: int = 0
    insert_id: Any = None


@dataclass
class BatchInsertResult(ExecutionResult):
    """
    批量插入结果，每行各执行一条语句

    某一行失败不会中断后续行；error 为第一个失败行的异常。
    """
    results: List[InsertResult] = field(default_factory=list)

    @property
    def insert_ids(self) -> List[Any]:
        return [r.insert_id for r in self.results if r.ok and r.affected == 1]

    @property
    def affected(self) -> int:
        return sum(r.affected for r in self.results)

    @property
    def errors(self) -> List[Exception]:
        return [r.error for r in self.results if r.error is not None]

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self) -> Iterator[InsertResult]:
        return iter(self.results)


@dataclass
class MutationResult(ExecutionResult):
    """UPDATE / DELETE 结果"""
    affected: int = 0
