"""
vegadb 语句模型

StatementModel 按子句名累积尚未编译的查询片段，插入顺序即渲染顺序。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from ..common.exceptions import ConsumerMisuseError
from .raw import Raw


# 有效的子句名称
CLAUSES: Tuple[str, ...] = (
    'selects', 'tables', 'wheres', 'joins', 'havings',
    'group_bys', 'order_bys', 'limit', 'offset', 'on_duplicate', 'distinct',
)
# 覆盖写入的子句，其余子句追加写入
SCALAR_CLAUSES = frozenset({'limit', 'offset', 'distinct', 'tables'})

JOINERS = ('AND', 'OR', 'AND NOT', 'OR NOT')


@dataclass(frozen=True)
class CriteriaGroup:
    """嵌套条件组，编译时渲染为带括号的子表达式"""
    criteria: Tuple['Criterion', ...]


@dataclass(frozen=True)
class Criterion:
    """
    单个查询条件

    Attributes:
        key: 列名、Raw 表达式或嵌套条件组
        operator: 比较运算符（Raw/嵌套条件时为 None）
        value: 比较值（标量、序列或 Raw）
        joiner: 与前一条件的连接方式
        bind: False 时 value 视为列名（JOIN ... ON 的列比较），不作为参数绑定
    """
    key: Union[str, Raw, CriteriaGroup]
    operator: Optional[str] = None
    value: Any = None
    joiner: str = 'AND'
    bind: bool = True


@dataclass(frozen=True)
class Ordering:
    """排序规则"""
    field: Union[str, Raw]
    direction: str = 'ASC'


@dataclass(frozen=True)
class JoinSpec:
    """JOIN 子句"""
    type: str
    table: Any
    criteria: Tuple[Criterion, ...] = field(default_factory=tuple)


class StatementModel:
    """
    语句模型

    子句名到有序条目列表的映射；limit/offset/distinct/tables 为覆盖写入的标量子句。
    """

    def __init__(self) -> None:
        self._clauses: Dict[str, Any] = {}

    def add(self, name: str, entry: Any) -> None:
        """
        写入子句

        Args:
            name: 子句名
            entry: 条目；列表会按顺序逐个追加

        Raises:
            ConsumerMisuseError: 子句名无效
        """
        if name not in CLAUSES:
            raise ConsumerMisuseError(
                f"Unknown clause: '{name}'. Valid clauses: {', '.join(CLAUSES)}"
            )
        if name in SCALAR_CLAUSES:
            self._clauses[name] = entry
            return
        entries = self._clauses.setdefault(name, [])
        if isinstance(entry, list):
            entries.extend(entry)
        else:
            entries.append(entry)

    def get(self, name: str, default: Any = None) -> Any:
        return self._clauses.get(name, default)

    def replace(self, name: str, entries: Any) -> None:
        """直接替换子句内容"""
        self._clauses[name] = entries

    def remove(self, name: str) -> None:
        self._clauses.pop(name, None)

    def snapshot(self) -> Dict[str, Any]:
        """返回当前子句的浅拷贝（列表本身也会复制）"""
        return {
            name: list(value) if isinstance(value, list) else value
            for name, value in self._clauses.items()
        }

    def restore(self, snapshot: Dict[str, Any]) -> None:
        self._clauses = {
            name: list(value) if isinstance(value, list) else value
            for name, value in snapshot.items()
        }

    def __contains__(self, name: object) -> bool:
        return name in self._clauses

    def __iter__(self) -> Iterator[str]:
        return iter(self._clauses)

    def __repr__(self) -> str:
        return f"StatementModel({', '.join(self._clauses)})"


def _prefix_one(prefix: str, value: Any, allow_mix: bool) -> Any:
    if isinstance(value, Raw) or not isinstance(value, str):
        return value
    if not allow_mix or '.' in value:
        return prefix + value
    return value


def add_table_prefix(prefix: Optional[str], values: Any, allow_mix: bool = True) -> Any:
    """
    为标识符添加表前缀

    规则：
    - 前缀为空时原样返回
    - Raw 表达式与可调用对象（延迟表达式）原样返回
    - 字典视为 {列名: 别名} 映射，只处理键
    - allow_mix 为 False 时无条件添加前缀，否则仅对包含 '.' 的标识符添加

    Args:
        prefix: 配置的表前缀
        values: 单个标识符、标识符列表或别名映射
        allow_mix: 标识符中是否可能混合表名与列名

    Returns:
        与输入形状一致的结果
    """
    if not prefix:
        return values

    if isinstance(values, dict):
        return {_prefix_one(prefix, key, allow_mix): alias for key, alias in values.items()}

    if isinstance(values, (list, tuple)):
        return [_prefix_one(prefix, value, allow_mix) for value in values]

    return _prefix_one(prefix, values, allow_mix)


def flatten_fields(fields: Any) -> List[Any]:
    """将 select/group_by 的参数整理为条目列表，别名映射展开为单键字典"""
    if isinstance(fields, dict):
        return [{key: alias} for key, alias in fields.items()]
    if isinstance(fields, (list, tuple)):
        result: List[Any] = []
        for item in fields:
            result.extend(flatten_fields(item))
        return result
    return [fields]
