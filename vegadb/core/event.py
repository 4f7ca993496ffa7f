"""
vegadb 执行事件钩子

每个终结操作完成后向连接上注册的监听器上报执行信息，失败时上报异常。

事件：
- after_connect(elapsed)
- after_select(sql, row_count, elapsed)
- after_insert(sql, affected, insert_id, elapsed)
- after_update(sql, affected, elapsed)
- after_delete(sql, affected, elapsed)
- on_exception(sql, operation, error)

使用方式：
    from vegadb import event

    # 装饰器注册
    @event.listens_for(conn, 'after_select')
    def log_select(sql, row_count, elapsed):
        print(f"{sql} -> {row_count} rows in {elapsed:.4f}s")

    # 函数式注册
    event.listen(conn, 'on_exception', report_error)

    # 监听器对象（实现全部或部分钩子方法）
    conn = connect('sqlite', listener=MyListener())

    # 移除监听器
    event.remove(conn, 'after_select', log_select)
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Set, Tuple


# 有效的事件名称
QUERY_EVENTS: Set[str] = {
    'after_select', 'after_insert', 'after_update', 'after_delete',
}
CONNECTION_EVENTS: Set[str] = {
    'after_connect', 'on_exception',
}
ALL_EVENTS: Set[str] = QUERY_EVENTS | CONNECTION_EVENTS


class QueryListener:
    """
    监听器基类

    所有钩子默认不做任何事，子类按需覆盖。未指定监听器的连接使用该类实例。
    """

    def after_connect(self, elapsed: float) -> None:
        pass

    def after_select(self, sql: str, row_count: int, elapsed: float) -> None:
        pass

    def after_insert(self, sql: str, affected: int, insert_id: Any, elapsed: float) -> None:
        pass

    def after_update(self, sql: str, affected: int, elapsed: float) -> None:
        pass

    def after_delete(self, sql: str, affected: int, elapsed: float) -> None:
        pass

    def on_exception(self, sql: str, operation: str, error: BaseException) -> None:
        pass


class LoggingListener(QueryListener):
    """将全部钩子转发到 logging 的监听器"""

    def __init__(self, logger: Optional[logging.Logger] = None, level: int = logging.INFO):
        self.logger = logger or logging.getLogger('vegadb.query')
        self.level = level

    def after_connect(self, elapsed: float) -> None:
        self.logger.log(self.level, "connected in %.6fs", elapsed)

    def after_select(self, sql: str, row_count: int, elapsed: float) -> None:
        self.logger.log(self.level, "select %s | rows=%d | %.6fs", sql, row_count, elapsed)

    def after_insert(self, sql: str, affected: int, insert_id: Any, elapsed: float) -> None:
        self.logger.log(
            self.level, "insert %s | affected=%d | id=%s | %.6fs", sql, affected, insert_id, elapsed
        )

    def after_update(self, sql: str, affected: int, elapsed: float) -> None:
        self.logger.log(self.level, "update %s | affected=%d | %.6fs", sql, affected, elapsed)

    def after_delete(self, sql: str, affected: int, elapsed: float) -> None:
        self.logger.log(self.level, "delete %s | affected=%d | %.6fs", sql, affected, elapsed)

    def on_exception(self, sql: str, operation: str, error: BaseException) -> None:
        self.logger.error("%s failed: %s | %s", operation, error, sql)


class EventManager:
    """
    事件管理器

    全局单例，按连接管理函数式监听器。
    """

    def __init__(self) -> None:
        # {(id(connection), event_name): [callbacks]}
        self._listeners: Dict[Tuple[int, str], List[Callable[..., Any]]] = {}
        # 保存 connection 引用，防止 id 复用
        self._refs: Dict[int, Any] = {}

    def listen(self, target: Any, event_name: str, fn: Callable[..., Any]) -> None:
        """
        注册事件监听器

        Args:
            target: Connection 实例
            event_name: 事件名称
            fn: 回调函数，参数与 QueryListener 对应方法一致
        """
        if event_name not in ALL_EVENTS:
            raise ValueError(
                f"Unknown event: '{event_name}'. "
                f"Valid events: {', '.join(sorted(ALL_EVENTS))}"
            )
        key = (id(target), event_name)
        self._listeners.setdefault(key, []).append(fn)
        self._refs[id(target)] = target

    def listens_for(self, target: Any, event_name: str) -> Callable[..., Any]:
        """
        装饰器方式注册事件监听器

        Args:
            target: Connection 实例
            event_name: 事件名称

        Returns:
            装饰器函数
        """
        def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
            self.listen(target, event_name, fn)
            return fn
        return decorator

    def remove(self, target: Any, event_name: str, fn: Callable[..., Any]) -> None:
        """移除事件监听器"""
        listeners = self._listeners.get((id(target), event_name), [])
        if fn in listeners:
            listeners.remove(fn)

    def dispatch(self, target: Any, event_name: str, *args: Any) -> None:
        """
        分发事件

        先调用连接上的监听器对象，再按注册顺序调用函数式监听器。

        Args:
            target: Connection 实例
            event_name: 事件名称
            *args: 事件参数
        """
        listener = getattr(target, 'listener', None)
        if listener is not None:
            getattr(listener, event_name)(*args)
        for fn in list(self._listeners.get((id(target), event_name), [])):
            fn(*args)

    def clear(self, target: Any = None) -> None:
        """
        清除监听器

        Args:
            target: 要清除的连接。None 清除所有。
        """
        if target is None:
            self._listeners.clear()
            self._refs.clear()
            return
        tid = id(target)
        for key in [k for k in self._listeners if k[0] == tid]:
            del self._listeners[key]
        self._refs.pop(tid, None)


# 全局单例
event = EventManager()
