"""
MySQL 方言编译器
"""

from typing import Any, List, Mapping

from ..query.raw import Raw
from .base import Fragment, QueryCompiler


class MysqlCompiler(QueryCompiler):
    """MySQL dialect compiler (requires mysql-connector-python, format paramstyle)"""

    DIALECT_NAME = 'mysql'
    IDENTIFIER_QUOTE = '`'
    PLACEHOLDER = '%s'
    REQUIRED_DEPENDENCIES = ['mysql.connector']

    # MySQL 没有单独的 OFFSET 语法，用最大的无符号 BIGINT 代替“不限制”
    _NO_LIMIT = 18446744073709551615

    def quote_literal(self, value: Any) -> str:
        if isinstance(value, str):
            return "'" + value.replace('\\', '\\\\').replace("'", "\\'") + "'"
        return super().quote_literal(value)

    def on_duplicate_clause(self, data: Mapping[str, Any]) -> Fragment:
        assignments: List[str] = []
        bindings: List[Any] = []
        for column, value in data.items():
            if isinstance(value, Raw):
                assignments.append(f"{self.wrap_sanitizer(column)} = {value.value}")
                bindings.extend(value.bindings)
            else:
                assignments.append(f"{self.wrap_sanitizer(column)} = {self.PLACEHOLDER}")
                bindings.append(value)
        return f"ON DUPLICATE KEY UPDATE {', '.join(assignments)}", bindings

    def limit_clause(self, limit: Any, offset: Any) -> str:
        if limit is None and offset is not None:
            return f"LIMIT {self._NO_LIMIT} OFFSET {int(offset)}"
        return super().limit_clause(limit, offset)
