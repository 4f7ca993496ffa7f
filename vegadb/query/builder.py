"""
vegadb 查询构建器

链式 API：修改 StatementModel 的方法都返回构建器本身，只有 table() 会返回
一个全新的子构建器。只有 get/first/find/find_all/count/聚合/insert/insert_ignore/
replace/update/update_or_insert/delete 这些终结操作会访问数据库。

Example:
    qb = QueryBuilder(conn)

    rows = qb.table('users').where('age', '>', 18).order_by('name').get()
    user = qb.table('users').find(5)
    new_id = qb.table('users').insert({'name': 'Alice'}).insert_id
    qb.table('users').where('id', 5).update({'name': 'Bob'})
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Generator, List, Mapping, Optional, Sequence, Union, cast

from ..common.exceptions import ConfigurationError, ConsumerMisuseError
from ..core.connection import Connection, get_default_connection
from ..core.executor import Bindings, Executor, RowFactory
from ..dialects.base import CompiledQuery
from .criteria import CriteriaMixin, JoinBuilder
from .raw import Raw
from .result import BatchInsertResult, InsertResult, MutationResult, SelectResult
from .statements import (
    Criterion,
    JoinSpec,
    Ordering,
    StatementModel,
    add_table_prefix,
    flatten_fields,
)


logger = logging.getLogger(__name__)

JOIN_TYPES = ('inner', 'left', 'right', 'cross', 'left outer', 'right outer', 'full outer')
DIRECTIONS = ('ASC', 'DESC')

InsertCompiler = Callable[[StatementModel, Mapping[str, Any]], CompiledQuery]


def _to_number(value: Any) -> Any:
    if value is None:
        return 0
    if isinstance(value, (int, float)):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        # min/max 作用于文本或日期列时返回驱动给出的原值
        return value
    return int(number) if number.is_integer() else number


class QueryBuilder(CriteriaMixin):
    """查询构建器"""

    def __init__(self, connection: Optional[Connection] = None):
        """
        初始化查询构建器

        Args:
            connection: 数据库连接，None 时使用默认连接

        Raises:
            ConfigurationError: 没有可用的连接
        """
        if connection is None:
            connection = get_default_connection()
            if connection is None:
                raise ConfigurationError("No database connection found.")

        self.connection = connection
        self._compiler = connection.compiler
        self._prefix = connection.prefix
        self._executor = Executor(connection)
        self.statements = StatementModel()
        # 原生模式下终结操作直接执行传入的 SQL；table()/from_() 之后关闭
        self._is_raw = True
        self._row_factory: Optional[RowFactory] = None

    @property
    def driver(self) -> Any:
        """底层 DB-API 连接"""
        return self.connection.driver

    @property
    def is_raw(self) -> bool:
        return self._is_raw

    def new_query(self, connection: Optional[Connection] = None) -> 'QueryBuilder':
        """在同一连接（或指定连接）上创建新的原生模式构建器"""
        return type(self)(connection or self.connection)

    def raw(self, value: str, bindings: Optional[Sequence[Any]] = None) -> Raw:
        return Raw(value, bindings)

    def get_statements(self) -> Dict[str, Any]:
        return self.statements.snapshot()

    # ------------------------------------------------------------------
    # 结果形式
    # ------------------------------------------------------------------

    def set_fetch_mode(self, mode: str) -> 'QueryBuilder':
        """
        设置行的返回形式

        Args:
            mode: 'dict'（默认）或 'tuple'
        """
        if mode == 'dict':
            self._row_factory = None
        elif mode == 'tuple':
            self._row_factory = lambda row: tuple(row.values())
        else:
            raise ConsumerMisuseError(f"Unknown fetch mode: '{mode}'. Valid modes: dict, tuple")
        return self

    def as_object(self, cls: Callable[..., Any]) -> 'QueryBuilder':
        """以 cls(**row) 的形式返回每一行"""
        self._row_factory = lambda row: cls(**row)
        return self

    # ------------------------------------------------------------------
    # 事务（直接透传给驱动，不做嵌套处理）
    # ------------------------------------------------------------------

    def begin_transaction(self) -> None:
        self.connection.begin_transaction()

    def commit(self) -> None:
        self.connection.commit()

    def rollback(self) -> None:
        self.connection.rollback()

    @contextmanager
    def transaction(self) -> Generator['QueryBuilder', None, None]:
        """
        事务上下文管理器

        正常退出时提交，发生异常时回滚并重新抛出。

        Example:
            with qb.transaction():
                qb.table('accounts').where('id', 1).update({'balance': 90})
                qb.table('accounts').where('id', 2).update({'balance': 110})
        """
        self.begin_transaction()
        try:
            yield self
        except BaseException:
            logger.debug("rolling back %s transaction", self.connection.dialect)
            self.rollback()
            raise
        self.commit()

    # ------------------------------------------------------------------
    # 表与字段
    # ------------------------------------------------------------------

    def table(self, *tables: Any) -> 'QueryBuilder':
        """
        选择表并返回新的子构建器

        父构建器不受影响，可以继续作为工厂使用。

        Args:
            *tables: 表名、表名列表或 {表名: 别名} 映射
        """
        child = type(self)(self.connection)
        child._is_raw = False
        child.statements.add('tables', self._table_entries(tables))
        return child

    def from_(self, *tables: Any) -> 'QueryBuilder':
        """在当前构建器上设置表"""
        self._is_raw = False
        self.statements.add('tables', self._table_entries(tables))
        return self

    def _table_entries(self, tables: Sequence[Any]) -> List[Any]:
        entries = flatten_fields(list(tables))
        if not entries:
            raise ConsumerMisuseError("At least one table is required")
        return [add_table_prefix(self._prefix, entry, False) for entry in entries]

    def select(self, *fields: Any) -> 'QueryBuilder':
        entries = flatten_fields(list(fields))
        self.statements.add('selects', [add_table_prefix(self._prefix, entry) for entry in entries])
        return self

    def select_distinct(self, *fields: Any) -> 'QueryBuilder':
        self.select(*fields)
        self.statements.add('distinct', True)
        return self

    def group_by(self, *fields: Any) -> 'QueryBuilder':
        entries = flatten_fields(list(fields))
        self.statements.add('group_bys', [add_table_prefix(self._prefix, entry) for entry in entries])
        return self

    def order_by(self, fields: Any, default_direction: str = 'ASC') -> 'QueryBuilder':
        """
        添加排序

        Args:
            fields: 字段名、字段列表或 {字段: 方向} 映射
            default_direction: 未指定方向时使用的方向
        """
        if isinstance(fields, dict):
            items = list(fields.items())
        elif isinstance(fields, (list, tuple)):
            items = [(field, default_direction) for field in fields]
        else:
            items = [(fields, default_direction)]

        for field, direction in items:
            direction = str(direction).upper()
            if direction not in DIRECTIONS:
                raise ConsumerMisuseError(f"Invalid order direction: '{direction}'")
            if not isinstance(field, Raw):
                field = add_table_prefix(self._prefix, field)
            self.statements.add('order_bys', Ordering(field, direction))
        return self

    def limit(self, limit: int) -> 'QueryBuilder':
        self.statements.add('limit', limit)
        return self

    def offset(self, offset: int) -> 'QueryBuilder':
        self.statements.add('offset', offset)
        return self

    def having(self, key: Any, operator: str, value: Any, joiner: str = 'AND') -> 'QueryBuilder':
        key = add_table_prefix(self._prefix, key)
        self.statements.add('havings', Criterion(key, operator, value, joiner))
        return self

    def or_having(self, key: Any, operator: str, value: Any) -> 'QueryBuilder':
        return self.having(key, operator, value, 'OR')

    def on_duplicate_key_update(self, data: Mapping[str, Any]) -> 'QueryBuilder':
        self.statements.add('on_duplicate', dict(data))
        return self

    def _add_criterion(self, criterion: Criterion) -> None:
        self.statements.add('wheres', criterion)

    # ------------------------------------------------------------------
    # JOIN
    # ------------------------------------------------------------------

    def join(self, table: Any, key: Any = None, operator: Optional[str] = None,
             value: Any = None, type: str = 'inner') -> 'QueryBuilder':
        """
        添加 JOIN

        Args:
            table: 表名或 {表名: 别名}
            key: 左侧列名，或接收 JoinBuilder 的回调函数
            operator: 比较运算符（key 为回调时忽略）
            value: 右侧列名（key 为回调时忽略）
            type: inner/left/right/cross/left outer/right outer/full outer

        Example:
            qb.table('orders').join('users', 'users.id', '=', 'orders.user_id')
            qb.table('orders').left_join('users', lambda j: j.on('users.id', '=', 'orders.user_id')
                                                        .where('users.active', 1))
        """
        join_type = type.lower()
        if join_type not in JOIN_TYPES:
            raise ConsumerMisuseError(
                f"Invalid join type: '{type}'. Valid types: {', '.join(JOIN_TYPES)}"
            )

        if key is None:
            if join_type != 'cross':
                raise ConsumerMisuseError(f"{join_type} join on '{table}' needs join criteria")
            callback: Callable[[JoinBuilder], Any] = lambda join_builder: None
        elif isinstance(key, Raw) or not callable(key):
            if operator is None:
                raise ConsumerMisuseError(
                    "join() expects either a callback or a key, an operator and a value"
                )
            callback = lambda join_builder: join_builder.on(key, operator, value)
        else:
            callback = key

        join_builder = JoinBuilder(self._compiler, self._prefix)
        callback(join_builder)

        table = add_table_prefix(self._prefix, table, False)
        if isinstance(table, dict) and len(table) != 1:
            raise ConsumerMisuseError("A join alias mapping must contain exactly one table")
        self.statements.add('joins', JoinSpec(join_type, table, tuple(join_builder.criteria)))
        return self

    def left_join(self, table: Any, key: Any, operator: Optional[str] = None,
                  value: Any = None) -> 'QueryBuilder':
        return self.join(table, key, operator, value, 'left')

    def right_join(self, table: Any, key: Any, operator: Optional[str] = None,
                   value: Any = None) -> 'QueryBuilder':
        return self.join(table, key, operator, value, 'right')

    def inner_join(self, table: Any, key: Any, operator: Optional[str] = None,
                   value: Any = None) -> 'QueryBuilder':
        return self.join(table, key, operator, value, 'inner')

    def cross_join(self, table: Any) -> 'QueryBuilder':
        return self.join(table, type='cross')

    # ------------------------------------------------------------------
    # 查询
    # ------------------------------------------------------------------

    def get(self, sql: Optional[str] = None, bindings: Bindings = None) -> SelectResult:
        """
        执行查询

        原生模式下执行传入的 SQL；否则编译当前语句模型。执行失败不会抛出异常，
        而是返回 ok 为 False 的空结果并上报 on_exception。
        """
        if self._is_raw:
            if sql is None:
                raise ConsumerMisuseError("get() without a table needs raw SQL")
        elif sql is not None:
            raise ConsumerMisuseError("get() does not accept raw SQL after table() or from_()")
        else:
            sql, bindings = self._compiler.select(self.statements)
        return self._executor.select(sql, bindings, self._row_factory)

    def query(self, sql: str, bindings: Bindings = None) -> SelectResult:
        """直接执行原生查询，与构建器模式无关"""
        return self._executor.select(sql, bindings, self._row_factory)

    def first(self, sql: Optional[str] = None, bindings: Bindings = None) -> Optional[Any]:
        """取第一行，没有结果时返回 None"""
        self.limit(1)
        return self.get(sql, bindings).first()

    def find(self, value: Any, field: str = 'id') -> Optional[Any]:
        return self.where(field, '=', value).first()

    def find_all(self, field: str, value: Any) -> SelectResult:
        return self.where(field, '=', value).get()

    def count(self) -> int:
        """
        统计行数

        临时去掉排序和分页，执行后恢复原有子句，不影响后续的 get()。
        """
        snapshot = self.statements.snapshot()
        for name in ('order_bys', 'limit', 'offset'):
            self.statements.remove(name)
        try:
            value = self._aggregate('count')
        finally:
            self.statements.restore(snapshot)
        return int(value) if value is not None else 0

    def sum(self, field: str) -> Union[int, float]:
        return _to_number(self._aggregate('sum', field))

    def avg(self, field: str) -> Union[int, float]:
        return _to_number(self._aggregate('avg', field))

    def min(self, field: str) -> Any:
        """文本或日期列返回驱动给出的原值"""
        return _to_number(self._aggregate('min', field))

    def max(self, field: str) -> Any:
        return _to_number(self._aggregate('max', field))

    def _aggregate(self, function: str, field: str = '*') -> Any:
        if field == '*':
            column = '*'
        else:
            column = self._compiler.wrap_sanitizer(add_table_prefix(self._prefix, field))

        selects = self.statements.get('selects')
        self.statements.replace('selects', [Raw(f"{function}({column}) as field")])
        try:
            sql, bindings = self._compiler.select(self.statements)
            row = self._executor.select(sql, bindings).first()
        finally:
            if selects is None:
                self.statements.remove('selects')
            else:
                self.statements.replace('selects', selects)
        return row['field'] if row else None

    # ------------------------------------------------------------------
    # 写入
    # ------------------------------------------------------------------

    def insert(self, data: Any, bindings: Bindings = None) -> Union[InsertResult, BatchInsertResult]:
        """
        插入一行或多行

        Args:
            data: 行数据映射、行数据映射列表，或原生模式下的 SQL
            bindings: 原生模式下的参数

        Returns:
            单行返回 InsertResult，多行返回 BatchInsertResult（每行单独执行一条语句）
        """
        return self._do_insert(self._compiler.insert, 'insert', data, bindings)

    def insert_ignore(self, data: Any, bindings: Bindings = None) -> Union[InsertResult, BatchInsertResult]:
        return self._do_insert(self._compiler.insert_ignore, 'insert_ignore', data, bindings)

    def replace(self, data: Any, bindings: Bindings = None) -> Union[InsertResult, BatchInsertResult]:
        return self._do_insert(self._compiler.replace, 'replace', data, bindings)

    def _do_insert(self, compile_fn: InsertCompiler, operation: str, data: Any,
                   bindings: Bindings) -> Union[InsertResult, BatchInsertResult]:
        if self._is_raw:
            if not isinstance(data, str):
                raise ConsumerMisuseError(f"{operation}() without a table needs raw SQL")
            return self._executor.insert(data, bindings, operation)

        if isinstance(data, Mapping):
            sql, params = compile_fn(self.statements, data)
            return self._executor.insert(sql, params, operation)

        if isinstance(data, (list, tuple)) and data and all(isinstance(row, Mapping) for row in data):
            # 先全部编译，调用方式错误在执行任何语句之前抛出
            compiled = [compile_fn(self.statements, row) for row in data]
            results = [self._executor.insert(sql, params, operation) for sql, params in compiled]
            errors = [r.error for r in results if r.error is not None]
            return BatchInsertResult(
                sql='; '.join(r.sql for r in results),
                elapsed=sum(r.elapsed for r in results),
                error=errors[0] if errors else None,
                results=results,
            )

        raise ConsumerMisuseError(
            f"{operation}() expects a mapping or a non-empty list of mappings"
        )

    def update(self, data: Any = None, bindings: Bindings = None) -> MutationResult:
        """
        更新当前条件匹配的行

        Args:
            data: 列值映射，或原生模式下的 SQL
            bindings: 原生模式下的参数
        """
        if self._is_raw:
            if not isinstance(data, str):
                raise ConsumerMisuseError("update() without a table needs raw SQL")
            sql = data
        else:
            sql, bindings = self._compiler.update(self.statements, data)
        return self._executor.update(sql, bindings)

    def update_or_insert(self, data: Mapping[str, Any]) -> Union[MutationResult, InsertResult]:
        """
        存在匹配行时更新，否则插入

        先查询再写入，不是原子操作：并发调用可能都判断为不存在而各自插入，
        需要由存储层的唯一约束兜底。
        """
        if self.first() is not None:
            return self.update(data)
        return cast(InsertResult, self.insert(data))

    def delete(self, sql: Optional[str] = None, bindings: Bindings = None) -> MutationResult:
        """删除当前条件匹配的行"""
        if self._is_raw:
            if sql is None:
                raise ConsumerMisuseError("delete() without a table needs raw SQL")
        elif sql is not None:
            raise ConsumerMisuseError("delete() does not accept raw SQL after table() or from_()")
        else:
            sql, bindings = self._compiler.delete(self.statements)
        return self._executor.delete(sql, bindings)

    def __repr__(self) -> str:
        mode = 'raw' if self._is_raw else 'builder'
        return f"QueryBuilder(dialect='{self.connection.dialect}', {mode}, statements={self.statements!r})"
