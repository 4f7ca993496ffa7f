"""
vegadb 查询子系统

包含原生表达式、语句模型、条件构建、查询构建器、执行结果和调试 SQL 插值
"""

# 叶子模块先导入，builder 依赖 core 和 dialects，必须放在最后
from .raw import Raw, raw
from .statements import (
    StatementModel,
    Criterion,
    CriteriaGroup,
    Ordering,
    JoinSpec,
    add_table_prefix,
)
from .criteria import CriteriaMixin, NestedCriteria, JoinBuilder
from .result import (
    ExecutionResult,
    SelectResult,
    InsertResult,
    BatchInsertResult,
    MutationResult,
)
from .debug import render_display_sql
from .builder import QueryBuilder

__all__ = [
    # Raw
    'Raw',
    'raw',
    # Statements
    'StatementModel',
    'Criterion',
    'CriteriaGroup',
    'Ordering',
    'JoinSpec',
    'add_table_prefix',
    # Criteria
    'CriteriaMixin',
    'NestedCriteria',
    'JoinBuilder',
    # Result
    'ExecutionResult',
    'SelectResult',
    'InsertResult',
    'BatchInsertResult',
    'MutationResult',
    # Debug
    'render_display_sql',
    # Builder
    'QueryBuilder',
]
