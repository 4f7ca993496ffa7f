"""
where 系列条件测试

覆盖范围：
- 各 where 变体生成的 SQL 片段和连接词
- 嵌套条件组
- 空 IN 集合
- 参数形状错误
"""

from typing import Any, Callable, Tuple

import pytest

from vegadb import ConsumerMisuseError, QueryBuilder, raw
from vegadb.query.criteria import NestedCriteria
from vegadb.dialects import SqliteCompiler


BuilderFactory = Callable[..., QueryBuilder]


def _where(q: QueryBuilder) -> Tuple[str, Tuple[Any, ...]]:
    """返回 WHERE 之后的部分及全部绑定参数"""
    sql, bindings = q.connection.compiler.select(q.statements)
    prefix = 'SELECT * FROM "users" WHERE '
    assert sql.startswith(prefix), sql
    return sql[len(prefix):], bindings


@pytest.fixture
def users(offline_builder: BuilderFactory) -> QueryBuilder:
    return offline_builder().table('users')


class TestWhereVariants:
    """where 变体测试"""

    def test_two_argument_form_defaults_to_equals(self, users: QueryBuilder) -> None:
        assert _where(users.where('id', 5)) == ('"id" = ?', (5,))

    def test_joiners(self, users: QueryBuilder) -> None:
        q = users.where('a', 1).or_where('b', '>', 2).where_not('c', 3).or_where_not('d', '<', 4)
        assert _where(q) == (
            '"a" = ? OR "b" > ? AND NOT "c" = ? OR NOT "d" < ?',
            (1, 2, 3, 4),
        )

    def test_leading_not_kept(self, users: QueryBuilder) -> None:
        """首个条件只去掉 AND/OR，保留 NOT"""
        assert _where(users.where_not('id', 1)) == ('NOT "id" = ?', (1,))

    def test_leading_or_dropped(self, users: QueryBuilder) -> None:
        assert _where(users.or_where('id', 1)) == ('"id" = ?', (1,))

    def test_where_in(self, users: QueryBuilder) -> None:
        q = users.where_in('id', [1, 2, 3]).or_where_not_in('age', (17,))
        assert _where(q) == ('"id" IN (?, ?, ?) OR "age" NOT IN (?)', (1, 2, 3, 17))

    def test_or_where_in_and_where_not_in(self, users: QueryBuilder) -> None:
        q = users.where_not_in('id', {4}).or_where_in('name', ['Bob'])
        assert _where(q) == ('"id" NOT IN (?) OR "name" IN (?)', (4, 'Bob'))

    def test_empty_in(self, users: QueryBuilder) -> None:
        """空集合：IN 恒假，NOT IN 恒真，不产生绑定参数"""
        assert _where(users.where_in('id', [])) == ('1 = 0', ())

    def test_empty_not_in(self, users: QueryBuilder) -> None:
        assert _where(users.where_not_in('id', [])) == ('1 = 1', ())

    def test_where_in_subquery(self, users: QueryBuilder) -> None:
        q = users.where_in('id', raw('SELECT user_id FROM orders WHERE amount > ?', [50]))
        assert _where(q) == ('"id" IN (SELECT user_id FROM orders WHERE amount > ?)', (50,))

    def test_where_in_rejects_scalars(self, users: QueryBuilder) -> None:
        with pytest.raises(ConsumerMisuseError, match="list of values"):
            users.where_in('id', 'abc')
        with pytest.raises(ConsumerMisuseError):
            users.where_in('id', 5)  # type: ignore[arg-type]

    def test_between(self, users: QueryBuilder) -> None:
        q = users.where_between('age', 18, 65).or_where_between('id', 1, 2)
        assert _where(q) == ('"age" BETWEEN ? AND ? OR "id" BETWEEN ? AND ?', (18, 65, 1, 2))

    def test_null_checks(self, users: QueryBuilder) -> None:
        q = users.where_null('email').or_where_not_null('users.age').where_not_null('name') \
            .or_where_null('id')
        assert _where(q) == (
            '"email" IS NULL OR "users"."age" IS NOT NULL AND "name" IS NOT NULL OR "id" IS NULL',
            (),
        )

    def test_null_check_with_prefix(self, offline_builder: BuilderFactory) -> None:
        q = offline_builder(prefix='cb_').table('users').where_null('users.email')
        sql, _ = q.connection.compiler.select(q.statements)
        assert sql == 'SELECT * FROM "cb_users" WHERE "cb_users"."email" IS NULL'

    def test_raw_criterion(self, users: QueryBuilder) -> None:
        q = users.where(raw('age > ? AND age < ?', [18, 65])).where('name', 'Bob')
        assert _where(q) == ('age > ? AND age < ? AND "name" = ?', (18, 65, 'Bob'))

    def test_raw_key_with_operator(self, users: QueryBuilder) -> None:
        q = users.where(raw('LOWER(name)'), '=', 'bob')
        assert _where(q) == ('LOWER(name) = ?', ('bob',))

    def test_like(self, users: QueryBuilder) -> None:
        assert _where(users.where('name', 'LIKE', 'A%')) == ('"name" LIKE ?', ('A%',))


class TestNestedCriteria:
    """嵌套条件组测试"""

    def test_group_parenthesized(self, users: QueryBuilder) -> None:
        q = users.where('status', 'active') \
            .where(lambda c: c.where('age', '<', 18).or_where('age', '>', 65))
        assert _where(q) == (
            '"status" = ? AND ("age" < ? OR "age" > ?)',
            ('active', 18, 65),
        )

    def test_or_group(self, users: QueryBuilder) -> None:
        q = users.where('a', 1).or_where(lambda c: c.where('b', 2).where('c', 3))
        assert _where(q) == ('"a" = ? OR ("b" = ? AND "c" = ?)', (1, 2, 3))

    def test_deep_nesting(self, users: QueryBuilder) -> None:
        q = users.where(lambda c: c.where('a', 1).or_where(lambda d: d.where('b', 2).where_null('c')))
        assert _where(q) == ('("a" = ? OR ("b" = ? AND "c" IS NULL))', (1, 2))

    def test_callback_receives_isolated_builder(self, users: QueryBuilder) -> None:
        """回调中的条件只进入条件组，不会出现在父构建器的 wheres 中"""
        received = []

        def callback(criteria: NestedCriteria) -> None:
            received.append(criteria)
            criteria.where('age', '>', 1).where('age', '<', 9)

        users.where(callback)
        assert isinstance(received[0], NestedCriteria)
        assert received[0] is not users
        assert len(users.statements.get('wheres')) == 1

    def test_nested_builder_standalone(self) -> None:
        nested = NestedCriteria(SqliteCompiler())
        nested.where('a', 1).or_where_in('b', [2])
        assert len(nested.criteria) == 2
        assert nested.criteria[1].joiner == 'OR'


class TestCriteriaMisuse:
    """参数形状错误"""

    def test_key_without_value(self, users: QueryBuilder) -> None:
        with pytest.raises(ConsumerMisuseError, match="needs an operator"):
            users.where('id')

    def test_too_many_arguments(self, users: QueryBuilder) -> None:
        with pytest.raises(ConsumerMisuseError, match="at most"):
            users.where('id', '=', 1, 2)
