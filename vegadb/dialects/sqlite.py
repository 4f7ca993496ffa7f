"""
SQLite 方言编译器
"""

from typing import Any

from .base import QueryCompiler


class SqliteCompiler(QueryCompiler):
    """SQLite dialect compiler (stdlib sqlite3, qmark paramstyle)"""

    DIALECT_NAME = 'sqlite'
    IDENTIFIER_QUOTE = '"'
    PLACEHOLDER = '?'
    REQUIRED_DEPENDENCIES = []  # 标准库

    def insert_keyword(self, kind: str) -> str:
        if kind == 'insert_ignore':
            return 'INSERT OR IGNORE'
        return super().insert_keyword(kind)

    def limit_clause(self, limit: Any, offset: Any) -> str:
        # SQLite 的 OFFSET 必须跟在 LIMIT 之后，-1 表示不限制
        if limit is None and offset is not None:
            return f"LIMIT -1 OFFSET {int(offset)}"
        return super().limit_clause(limit, offset)
