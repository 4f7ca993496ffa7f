"""
vegadb SQL 编译器基类

定义所有方言编译器必须实现的接口：把 StatementModel（及行数据）
翻译成 SQL 文本和按占位符顺序排列的绑定参数。编译过程是纯函数，不访问数据库。
"""

import re
from abc import ABC
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from ..common.exceptions import ConsumerMisuseError, UnsupportedOperationError
from ..query.raw import Raw
from ..query.statements import Criterion, CriteriaGroup, JoinSpec, Ordering, StatementModel


_ALIAS_SPLIT = re.compile(r'\s+as\s+', re.IGNORECASE)
_LEADING_JOINER = re.compile(r'^(AND|OR) ')

Fragment = Tuple[str, List[Any]]


@dataclass(frozen=True)
class CompiledQuery:
    """编译结果：SQL 文本与绑定参数"""
    sql: str
    bindings: Tuple[Any, ...] = ()

    def __iter__(self):
        # 支持 sql, bindings = compiled 的解包写法
        return iter((self.sql, self.bindings))


class QueryCompiler(ABC):
    """
    方言编译器抽象基类

    所有方言共享同一套子句渲染逻辑，子类通过类属性和少量钩子方法
    表达语法差异（标识符引号、占位符、INSERT 变体、LIMIT/OFFSET 写法）。

    类属性：
        DIALECT_NAME: 方言名称（注册表键）
        IDENTIFIER_QUOTE: 标识符引号字符
        PLACEHOLDER: 位置参数占位符
        REQUIRED_DEPENDENCIES: 对应驱动所需的第三方库
    """

    DIALECT_NAME: str = ''
    IDENTIFIER_QUOTE: str = '"'
    PLACEHOLDER: str = '?'
    REQUIRED_DEPENDENCIES: List[str] = []

    # ------------------------------------------------------------------
    # 标识符与字面量
    # ------------------------------------------------------------------

    def wrap_sanitizer(self, value: Any) -> str:
        """
        用方言引号包裹标识符

        'users.id' -> "users"."id"，'*' 保持不变，'name AS n' 会分别包裹列名和别名，
        Raw 表达式原样返回其 SQL 片段。

        Args:
            value: 标识符或 Raw 表达式

        Returns:
            转义后的标识符
        """
        if isinstance(value, Raw):
            return value.value
        value = str(value)
        parts = _ALIAS_SPLIT.split(value, maxsplit=1)
        if len(parts) == 2:
            return f"{self.wrap_sanitizer(parts[0])} AS {self._quote(parts[1])}"
        return '.'.join(
            piece if piece == '*' else self._quote(piece)
            for piece in value.split('.')
        )

    def _quote(self, identifier: str) -> str:
        q = self.IDENTIFIER_QUOTE
        return q + identifier.replace(q, q + q) + q

    def quote_literal(self, value: Any) -> str:
        """将值渲染为 SQL 字面量（仅用于日志展示，不用于执行）"""
        if value is None:
            return 'NULL'
        if isinstance(value, bool):
            return '1' if value else '0'
        if isinstance(value, (int, float)):
            return str(value)
        if isinstance(value, (bytes, bytearray)):
            return f"X'{bytes(value).hex()}'"
        return "'" + str(value).replace("'", "''") + "'"

    # ------------------------------------------------------------------
    # 语句
    # ------------------------------------------------------------------

    def select(self, statements: StatementModel) -> CompiledQuery:
        """编译 SELECT 语句"""
        tables = statements.get('tables')
        if not tables:
            raise ConsumerMisuseError("No table specified for select")

        bindings: List[Any] = []

        def take(fragment: Fragment) -> str:
            sql, params = fragment
            bindings.extend(params)
            return sql

        selects = take(self._render_fields(statements.get('selects') or ['*']))
        table_sql = take(self._render_fields(tables))
        join_sql = take(self._render_joins(statements.get('joins', [])))
        where_sql = take(self._render_criteria(statements.get('wheres', [])))
        group_sql = take(self._render_fields(statements.get('group_bys', [])))
        having_sql = take(self._render_criteria(statements.get('havings', [])))
        order_sql = take(self._render_orderings(statements.get('order_bys', [])))

        parts = [
            'SELECT',
            'DISTINCT' if statements.get('distinct') else '',
            selects,
            'FROM',
            table_sql,
            join_sql,
            f"WHERE {where_sql}" if where_sql else '',
            f"GROUP BY {group_sql}" if group_sql else '',
            f"HAVING {having_sql}" if having_sql else '',
            f"ORDER BY {order_sql}" if order_sql else '',
            self.limit_clause(statements.get('limit'), statements.get('offset')),
        ]
        return CompiledQuery(self._concat(parts), tuple(bindings))

    def insert(self, statements: StatementModel, data: Mapping[str, Any]) -> CompiledQuery:
        """编译 INSERT 语句（单行）"""
        return self._insert(statements, data, 'insert')

    def insert_ignore(self, statements: StatementModel, data: Mapping[str, Any]) -> CompiledQuery:
        """编译忽略冲突的 INSERT 语句（单行）"""
        return self._insert(statements, data, 'insert_ignore')

    def replace(self, statements: StatementModel, data: Mapping[str, Any]) -> CompiledQuery:
        """编译 REPLACE 语句（单行）"""
        return self._insert(statements, data, 'replace')

    def update(self, statements: StatementModel, data: Mapping[str, Any]) -> CompiledQuery:
        """编译 UPDATE 语句"""
        table = self._single_table(statements, 'update')
        set_sql, bindings = self._render_assignments(data, 'update')
        where_sql, where_bindings = self._render_criteria(statements.get('wheres', []))
        bindings.extend(where_bindings)

        parts = [
            'UPDATE',
            table,
            'SET',
            set_sql,
            f"WHERE {where_sql}" if where_sql else '',
        ]
        return CompiledQuery(self._concat(parts), tuple(bindings))

    def delete(self, statements: StatementModel) -> CompiledQuery:
        """编译 DELETE 语句"""
        table = self._single_table(statements, 'delete')
        where_sql, bindings = self._render_criteria(statements.get('wheres', []))
        parts = [
            'DELETE FROM',
            table,
            f"WHERE {where_sql}" if where_sql else '',
        ]
        return CompiledQuery(self._concat(parts), tuple(bindings))

    # ------------------------------------------------------------------
    # 方言钩子
    # ------------------------------------------------------------------

    def insert_keyword(self, kind: str) -> str:
        """返回 INSERT 变体的起始关键字"""
        keywords = {
            'insert': 'INSERT',
            'insert_ignore': 'INSERT IGNORE',
            'replace': 'REPLACE',
        }
        if kind not in keywords:
            raise UnsupportedOperationError(self.DIALECT_NAME, kind)
        return keywords[kind]

    def insert_suffix(self, kind: str) -> str:
        """INSERT 语句末尾追加的片段（如 ON CONFLICT DO NOTHING）"""
        return ''

    def on_duplicate_clause(self, data: Mapping[str, Any]) -> Fragment:
        """渲染主键冲突时的更新子句"""
        raise UnsupportedOperationError(self.DIALECT_NAME, 'on_duplicate_key_update')

    def limit_clause(self, limit: Any, offset: Any) -> str:
        """渲染 LIMIT/OFFSET 子句"""
        parts = []
        if limit is not None:
            parts.append(f"LIMIT {int(limit)}")
        if offset is not None:
            parts.append(f"OFFSET {int(offset)}")
        return ' '.join(parts)

    # ------------------------------------------------------------------
    # 子句渲染
    # ------------------------------------------------------------------

    def _insert(self, statements: StatementModel, data: Mapping[str, Any], kind: str) -> CompiledQuery:
        table = self._single_table(statements, kind)
        if not isinstance(data, Mapping) or not data:
            raise ConsumerMisuseError(f"{kind} expects a non-empty mapping of column values")

        keyword = self.insert_keyword(kind)
        columns: List[str] = []
        values: List[str] = []
        bindings: List[Any] = []
        for column, value in data.items():
            columns.append(self.wrap_sanitizer(column))
            if isinstance(value, Raw):
                values.append(value.value)
                bindings.extend(value.bindings)
            else:
                values.append(self.PLACEHOLDER)
                bindings.append(value)

        parts = [
            keyword,
            'INTO',
            table,
            f"({', '.join(columns)})",
            'VALUES',
            f"({', '.join(values)})",
        ]

        on_duplicate = statements.get('on_duplicate')
        if on_duplicate:
            merged: Dict[str, Any] = {}
            for entry in on_duplicate:
                merged.update(entry)
            duplicate_sql, duplicate_bindings = self.on_duplicate_clause(merged)
            parts.append(duplicate_sql)
            bindings.extend(duplicate_bindings)

        parts.append(self.insert_suffix(kind))
        return CompiledQuery(self._concat(parts), tuple(bindings))

    def _render_assignments(self, data: Mapping[str, Any], operation: str) -> Fragment:
        if not isinstance(data, Mapping) or not data:
            raise ConsumerMisuseError(f"{operation} expects a non-empty mapping of column values")
        assignments: List[str] = []
        bindings: List[Any] = []
        for column, value in data.items():
            if isinstance(value, Raw):
                assignments.append(f"{self.wrap_sanitizer(column)} = {value.value}")
                bindings.extend(value.bindings)
            else:
                assignments.append(f"{self.wrap_sanitizer(column)} = {self.PLACEHOLDER}")
                bindings.append(value)
        return ', '.join(assignments), bindings

    def _single_table(self, statements: StatementModel, operation: str) -> str:
        tables = statements.get('tables')
        if not tables:
            raise ConsumerMisuseError(f"No table specified for {operation}")
        sql, _ = self._render_field(tables[0])
        return sql

    def _render_field(self, field: Any) -> Fragment:
        if isinstance(field, Raw):
            return field.value, list(field.bindings)
        if isinstance(field, dict):
            (column, alias), = field.items()
            column_sql, bindings = self._render_field(column)
            return f"{column_sql} AS {self._quote(alias)}", bindings
        return self.wrap_sanitizer(field), []

    def _render_fields(self, fields: Sequence[Any]) -> Fragment:
        pieces: List[str] = []
        bindings: List[Any] = []
        for field in fields:
            sql, params = self._render_field(field)
            pieces.append(sql)
            bindings.extend(params)
        return ', '.join(pieces), bindings

    def _render_orderings(self, orderings: Sequence[Ordering]) -> Fragment:
        pieces: List[str] = []
        bindings: List[Any] = []
        for ordering in orderings:
            sql, params = self._render_field(ordering.field)
            pieces.append(f"{sql} {ordering.direction}")
            bindings.extend(params)
        return ', '.join(pieces), bindings

    def _render_joins(self, joins: Sequence[JoinSpec]) -> Fragment:
        pieces: List[str] = []
        bindings: List[Any] = []
        for join in joins:
            table_sql, params = self._render_field(join.table)
            bindings.extend(params)
            sql = f"{join.type.upper()} JOIN {table_sql}"
            if join.criteria:
                criteria_sql, params = self._render_criteria(join.criteria)
                bindings.extend(params)
                sql += f" ON {criteria_sql}"
            pieces.append(sql)
        return ' '.join(pieces), bindings

    def _render_criteria(self, criteria: Sequence[Criterion]) -> Fragment:
        pieces: List[str] = []
        bindings: List[Any] = []
        for criterion in criteria:
            sql, params = self._render_criterion(criterion)
            pieces.append(f"{criterion.joiner} {sql}")
            bindings.extend(params)
        # 首个条件的 AND/OR 连接词去掉，NOT 保留
        return _LEADING_JOINER.sub('', ' '.join(pieces)), bindings

    def _render_criterion(self, criterion: Criterion) -> Fragment:
        key = criterion.key
        if isinstance(key, CriteriaGroup):
            sql, bindings = self._render_criteria(key.criteria)
            return f"({sql})", bindings

        if isinstance(key, Raw):
            if criterion.operator is None:
                return key.value, list(key.bindings)
            key_sql, bindings = key.value, list(key.bindings)
        else:
            key_sql, bindings = self.wrap_sanitizer(key), []

        operator = criterion.operator or ''
        value = criterion.value
        keyword = operator.upper()

        if not criterion.bind:
            value_sql, params = self._render_field(value)
            return f"{key_sql} {operator} {value_sql}", bindings + params

        if isinstance(value, Raw):
            if keyword in ('IN', 'NOT IN'):
                return f"{key_sql} {keyword} ({value.value})", bindings + list(value.bindings)
            return f"{key_sql} {operator} {value.value}", bindings + list(value.bindings)

        if keyword == 'BETWEEN':
            low, high = value
            return (
                f"{key_sql} BETWEEN {self.PLACEHOLDER} AND {self.PLACEHOLDER}",
                bindings + [low, high],
            )

        if keyword in ('IN', 'NOT IN'):
            values = list(value)
            if not values:
                # 空集合：IN 恒为假，NOT IN 恒为真
                return ('1 = 0' if keyword == 'IN' else '1 = 1'), bindings
            placeholders = ', '.join(self.PLACEHOLDER for _ in values)
            return f"{key_sql} {keyword} ({placeholders})", bindings + values

        return f"{key_sql} {operator} {self.PLACEHOLDER}", bindings + [value]

    @staticmethod
    def _concat(parts: Sequence[str]) -> str:
        return ' '.join(part for part in parts if part)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(dialect='{self.DIALECT_NAME}')"
