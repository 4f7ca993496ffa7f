"""
Pytest 配置和共享 fixtures

此文件提供 pytest 测试所需的共享配置和 fixtures。
"""
import sys
import tempfile
from pathlib import Path
from typing import Any, Callable, Generator, List, Optional, Tuple

import pytest

# 确保可以导入 vegadb
sys.path.insert(0, str(Path(__file__).parent.parent))

from vegadb import Connection, QueryBuilder, QueryListener, event, set_default_connection


SCHEMA = """
CREATE TABLE users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    age INTEGER,
    email TEXT
);
CREATE TABLE orders (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    amount INTEGER NOT NULL
);
INSERT INTO users (name, age, email) VALUES ('Alice', 30, 'alice@example.com');
INSERT INTO users (name, age, email) VALUES ('Bob', 17, NULL);
INSERT INTO users (name, age, email) VALUES ('Carol', 70, 'carol@example.com');
INSERT INTO users (name, age, email) VALUES ('Dave', 45, NULL);
INSERT INTO orders (user_id, amount) VALUES (1, 100);
INSERT INTO orders (user_id, amount) VALUES (1, 250);
INSERT INTO orders (user_id, amount) VALUES (3, 40);
"""


class RecordingListener(QueryListener):
    """按调用顺序记录所有钩子的监听器"""

    def __init__(self) -> None:
        self.calls: List[Tuple[Any, ...]] = []

    def names(self) -> List[str]:
        return [call[0] for call in self.calls]

    def of(self, name: str) -> List[Tuple[Any, ...]]:
        return [call for call in self.calls if call[0] == name]

    def after_connect(self, elapsed: float) -> None:
        self.calls.append(('after_connect', elapsed))

    def after_select(self, sql: str, row_count: int, elapsed: float) -> None:
        self.calls.append(('after_select', sql, row_count, elapsed))

    def after_insert(self, sql: str, affected: int, insert_id: Any, elapsed: float) -> None:
        self.calls.append(('after_insert', sql, affected, insert_id, elapsed))

    def after_update(self, sql: str, affected: int, elapsed: float) -> None:
        self.calls.append(('after_update', sql, affected, elapsed))

    def after_delete(self, sql: str, affected: int, elapsed: float) -> None:
        self.calls.append(('after_delete', sql, affected, elapsed))

    def on_exception(self, sql: str, operation: str, error: BaseException) -> None:
        self.calls.append(('on_exception', sql, operation, error))


class OfflineDriver:
    """不连接任何数据库的驱动占位，仅用于只检查 SQL 文本的测试"""

    def cursor(self) -> Any:
        raise AssertionError("offline driver must not execute statements")

    def close(self) -> None:
        pass


@pytest.fixture(autouse=True)
def reset_globals() -> Generator[None, None, None]:
    """每个测试前后清除事件监听器和默认连接"""
    event.clear()
    set_default_connection(None)
    yield
    event.clear()
    set_default_connection(None)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """
    提供临时目录 fixture

    使用 TemporaryDirectory 确保测试隔离，
    测试结束后自动清理。

    Yields:
        临时目录的 Path 对象
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_file(temp_dir: Path) -> Generator[Path, None, None]:
    """
    提供临时数据库文件路径 fixture

    Args:
        temp_dir: 临时目录 fixture

    Yields:
        临时文件的 Path 对象（文件本身不会被创建）
    """
    yield temp_dir / "test_db.db"


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def conn(listener: RecordingListener) -> Generator[Connection, None, None]:
    """
    已写入测试数据的内存 SQLite 连接

    users: Alice(30) / Bob(17) / Carol(70) / Dave(45)，Bob 与 Dave 没有 email
    orders: Alice 两单（100, 250），Carol 一单（40）
    """
    connection = Connection('sqlite', listener=listener, register_default=False)
    connection.driver.executescript(SCHEMA)
    listener.calls.clear()
    yield connection
    connection.close()


@pytest.fixture
def qb(conn: Connection) -> QueryBuilder:
    return QueryBuilder(conn)


@pytest.fixture
def offline_builder() -> Callable[..., QueryBuilder]:
    """
    创建不连接数据库的构建器，用于检查各方言生成的 SQL

    Example:
        q = offline_builder('mysql', prefix='cb_').table('users')
    """
    def factory(dialect: str = 'sqlite', prefix: Optional[str] = None) -> QueryBuilder:
        connection = Connection(
            dialect, {'prefix': prefix}, driver=OfflineDriver(), register_default=False
        )
        return QueryBuilder(connection)
    return factory
