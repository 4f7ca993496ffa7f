"""
原生 SQL 片段

Raw 表达式会原样输出到最终 SQL 中，不加表前缀、不做标识符转义，
其自带的绑定参数按出现位置合并到最终的参数列表。
"""

from typing import Any, List, Optional, Sequence


class Raw:
    """原生 SQL 片段及其绑定参数"""

    __slots__ = ('value', 'bindings')

    def __init__(self, value: str, bindings: Optional[Sequence[Any]] = None):
        """
        Args:
            value: SQL 片段
            bindings: 片段中占位符对应的参数
        """
        self.value = value
        if bindings is None:
            self.bindings: List[Any] = []
        elif isinstance(bindings, (list, tuple)):
            self.bindings = list(bindings)
        else:
            self.bindings = [bindings]

    def __str__(self) -> str:
        return self.value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Raw):
            return NotImplemented
        return self.value == other.value and self.bindings == other.bindings

    def __hash__(self) -> int:
        return hash(self.value)

    def __repr__(self) -> str:
        return f"Raw({self.value!r}, {self.bindings!r})"


def raw(value: str, bindings: Optional[Sequence[Any]] = None) -> Raw:
    """创建 Raw 表达式"""
    return Raw(value, bindings)
