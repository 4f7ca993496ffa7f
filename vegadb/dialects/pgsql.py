"""
PostgreSQL 方言编译器
"""

from ..common.exceptions import UnsupportedOperationError
from .base import QueryCompiler


class PgsqlCompiler(QueryCompiler):
    """PostgreSQL dialect compiler (requires psycopg2, format paramstyle)"""

    DIALECT_NAME = 'pgsql'
    IDENTIFIER_QUOTE = '"'
    PLACEHOLDER = '%s'
    REQUIRED_DEPENDENCIES = ['psycopg2']

    def insert_keyword(self, kind: str) -> str:
        if kind == 'insert_ignore':
            return 'INSERT'
        if kind == 'replace':
            raise UnsupportedOperationError(self.DIALECT_NAME, kind)
        return super().insert_keyword(kind)

    def insert_suffix(self, kind: str) -> str:
        if kind == 'insert_ignore':
            return 'ON CONFLICT DO NOTHING'
        return ''
