"""
vegadb 条件构建

CriteriaMixin 提供 where 系列方法，所有调用最终汇入 _where(key, operator, value, joiner)。
NestedCriteria 和 JoinBuilder 是独立的子构建器：回调函数在新实例上执行，
产生的条件以值的形式合并到父构建器，不会影响父构建器的 wheres。
"""

from typing import Any, Callable, List, Optional, Sequence, Tuple, TypeVar, TYPE_CHECKING

from ..common.exceptions import ConsumerMisuseError
from .raw import Raw
from .statements import Criterion, CriteriaGroup, add_table_prefix

if TYPE_CHECKING:
    from ..dialects.base import QueryCompiler


_C = TypeVar('_C', bound='CriteriaMixin')


def _split_operator(args: Tuple[Any, ...]) -> Tuple[Optional[str], Any]:
    """两个参数时运算符默认为 '='"""
    if not args:
        return None, None
    if len(args) == 1:
        return '=', args[0]
    if len(args) == 2:
        return args[0], args[1]
    raise ConsumerMisuseError(
        f"where() takes a key plus at most an operator and a value, got {len(args) + 1} arguments"
    )


class CriteriaMixin:
    """where 系列方法，子类需提供 _prefix、_compiler 并实现 _add_criterion"""

    _prefix: Optional[str]
    _compiler: 'QueryCompiler'

    def _add_criterion(self, criterion: Criterion) -> None:
        raise NotImplementedError

    def where(self: _C, key: Any, *args: Any) -> _C:
        operator, value = _split_operator(args)
        return self._where(key, operator, value, 'AND')

    def or_where(self: _C, key: Any, *args: Any) -> _C:
        operator, value = _split_operator(args)
        return self._where(key, operator, value, 'OR')

    def where_not(self: _C, key: Any, *args: Any) -> _C:
        operator, value = _split_operator(args)
        return self._where(key, operator, value, 'AND NOT')

    def or_where_not(self: _C, key: Any, *args: Any) -> _C:
        operator, value = _split_operator(args)
        return self._where(key, operator, value, 'OR NOT')

    def where_in(self: _C, key: Any, values: Sequence[Any]) -> _C:
        return self._where(key, 'IN', self._in_values(values), 'AND')

    def where_not_in(self: _C, key: Any, values: Sequence[Any]) -> _C:
        return self._where(key, 'NOT IN', self._in_values(values), 'AND')

    def or_where_in(self: _C, key: Any, values: Sequence[Any]) -> _C:
        return self._where(key, 'IN', self._in_values(values), 'OR')

    def or_where_not_in(self: _C, key: Any, values: Sequence[Any]) -> _C:
        return self._where(key, 'NOT IN', self._in_values(values), 'OR')

    def where_between(self: _C, key: Any, value_from: Any, value_to: Any) -> _C:
        return self._where(key, 'BETWEEN', (value_from, value_to), 'AND')

    def or_where_between(self: _C, key: Any, value_from: Any, value_to: Any) -> _C:
        return self._where(key, 'BETWEEN', (value_from, value_to), 'OR')

    def where_null(self: _C, key: str) -> _C:
        return self._where_null(key, '', 'AND')

    def where_not_null(self: _C, key: str) -> _C:
        return self._where_null(key, 'NOT ', 'AND')

    def or_where_null(self: _C, key: str) -> _C:
        return self._where_null(key, '', 'OR')

    def or_where_not_null(self: _C, key: str) -> _C:
        return self._where_null(key, 'NOT ', 'OR')

    @staticmethod
    def _in_values(values: Any) -> Any:
        if isinstance(values, Raw):
            return values
        if isinstance(values, (str, bytes)) or not isinstance(values, (list, tuple, set, frozenset)):
            raise ConsumerMisuseError(
                f"IN criteria expect a list of values, got {type(values).__name__}"
            )
        return list(values)

    def _where_null(self: _C, key: str, modifier: str, joiner: str) -> _C:
        # IS NULL 不经过参数绑定，直接生成 Raw 片段
        column = self._compiler.wrap_sanitizer(add_table_prefix(self._prefix, key))
        return self._where(Raw(f"{column} IS {modifier}NULL"), None, None, joiner)

    def _where(self: _C, key: Any, operator: Optional[str] = None, value: Any = None,
               joiner: str = 'AND') -> _C:
        if isinstance(key, Raw):
            pass
        elif callable(key):
            key = CriteriaGroup(self._nested(key))
        elif operator is None:
            raise ConsumerMisuseError(
                f"Criterion on '{key}' needs an operator and a value"
            )
        else:
            key = add_table_prefix(self._prefix, key)
        self._add_criterion(Criterion(key, operator, value, joiner))
        return self

    def _nested(self, callback: Callable[['NestedCriteria'], Any]) -> Tuple[Criterion, ...]:
        nested = NestedCriteria(self._compiler, self._prefix)
        callback(nested)
        return tuple(nested.criteria)


class NestedCriteria(CriteriaMixin):
    """
    嵌套条件构建器

    where(callback) 时创建，其条件编译为带括号的条件组。
    """

    def __init__(self, compiler: 'QueryCompiler', prefix: Optional[str] = None):
        self._compiler = compiler
        self._prefix = prefix
        self.criteria: List[Criterion] = []

    def _add_criterion(self, criterion: Criterion) -> None:
        self.criteria.append(criterion)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(criteria={len(self.criteria)})"


class JoinBuilder(NestedCriteria):
    """
    JOIN 条件构建器

    on/or_on 比较两列（值不参与绑定），where 系列方法添加普通的参数化条件。
    """

    def on(self, key: Any, operator: str, value: Any) -> 'JoinBuilder':
        return self._on(key, operator, value, 'AND')

    def or_on(self, key: Any, operator: str, value: Any) -> 'JoinBuilder':
        return self._on(key, operator, value, 'OR')

    def _on(self, key: Any, operator: str, value: Any, joiner: str) -> 'JoinBuilder':
        if operator is None:
            raise ConsumerMisuseError("Join criteria need a key, an operator and a value")
        key = add_table_prefix(self._prefix, key)
        value = add_table_prefix(self._prefix, value)
        self.criteria.append(Criterion(key, operator, value, joiner, bind=False))
        return self
