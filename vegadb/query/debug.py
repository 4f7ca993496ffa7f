"""
调试用 SQL 插值

把占位符替换为字面量，得到便于阅读的 SQL，仅用于日志和监听器上报，
永远不会被执行，也不保证对复合结构的注入安全。
"""

import re
from typing import Any, Callable, Mapping, Optional, Sequence, Union


def default_quote(value: Any) -> str:
    """通用字面量渲染"""
    if value is None:
        return 'NULL'
    if isinstance(value, bool):
        return '1' if value else '0'
    if isinstance(value, (int, float)):
        return str(value)
    return "'" + str(value).replace("'", "''") + "'"


def _literal(value: Any, quote: Callable[[Any], str]) -> str:
    if isinstance(value, (list, tuple, set, frozenset)):
        return ','.join(quote(item) for item in value)
    return quote(value)


def render_display_sql(
    sql: str,
    bindings: Optional[Union[Sequence[Any], Mapping[str, Any]]],
    quote: Optional[Callable[[Any], str]] = None,
    placeholder: str = '?',
) -> str:
    """
    按出现顺序用字面量替换占位符

    Args:
        sql: 带占位符的 SQL
        bindings: 位置参数序列或命名参数映射
        quote: 字面量渲染函数，默认使用 default_quote
        placeholder: 位置参数占位符（'?' 或 '%s'）

    Returns:
        插值后的 SQL
    """
    if not bindings:
        return sql
    quote = quote or default_quote

    if isinstance(bindings, Mapping):
        for name, value in bindings.items():
            literal = _literal(value, quote)
            pattern = rf':{re.escape(name)}\b|%\({re.escape(name)}\)s'
            sql = re.sub(pattern, lambda _: literal, sql)
        return sql

    values = iter(bindings)

    def substitute(match: 're.Match[str]') -> str:
        try:
            return _literal(next(values), quote)
        except StopIteration:
            return match.group(0)

    return re.sub(re.escape(placeholder), substitute, sql)
