"""
方言编译器测试

只检查生成的 SQL 文本和绑定参数，不访问数据库。
"""

from typing import Any, Callable, Tuple

import pytest

from vegadb import (
    ConsumerMisuseError,
    QueryBuilder,
    UnsupportedOperationError,
    get_compiler,
    raw,
)
from vegadb.dialects import MysqlCompiler, PgsqlCompiler, SqliteCompiler
from vegadb.query.statements import StatementModel


BuilderFactory = Callable[..., QueryBuilder]


def _select(q: QueryBuilder) -> Tuple[str, Tuple[Any, ...]]:
    sql, bindings = q.connection.compiler.select(q.statements)
    return sql, bindings


class TestWrapSanitizer:
    """标识符转义测试"""

    def test_dotted_identifier(self) -> None:
        assert SqliteCompiler().wrap_sanitizer('users.id') == '"users"."id"'
        assert MysqlCompiler().wrap_sanitizer('users.id') == '`users`.`id`'

    def test_star_not_quoted(self) -> None:
        assert SqliteCompiler().wrap_sanitizer('users.*') == '"users".*'
        assert SqliteCompiler().wrap_sanitizer('*') == '*'

    def test_alias(self) -> None:
        assert PgsqlCompiler().wrap_sanitizer('name AS n') == '"name" AS "n"'
        assert PgsqlCompiler().wrap_sanitizer('users.name as n') == '"users"."name" AS "n"'

    def test_quote_character_escaped(self) -> None:
        assert SqliteCompiler().wrap_sanitizer('we"ird') == '"we""ird"'
        assert MysqlCompiler().wrap_sanitizer('we`ird') == '`we``ird`'

    def test_raw_verbatim(self) -> None:
        assert SqliteCompiler().wrap_sanitizer(raw('COUNT(*)')) == 'COUNT(*)'


class TestSelectCompilation:
    """SELECT 编译测试"""

    def test_basic_select(self, offline_builder: BuilderFactory) -> None:
        q = offline_builder().table('users').select('id', 'name').where('age', '>', 18) \
            .order_by('name').limit(10)
        assert _select(q) == (
            'SELECT "id", "name" FROM "users" WHERE "age" > ? ORDER BY "name" ASC LIMIT 10',
            (18,),
        )

    def test_select_star_by_default(self, offline_builder: BuilderFactory) -> None:
        assert _select(offline_builder().table('users')) == ('SELECT * FROM "users"', ())

    def test_select_without_table(self, offline_builder: BuilderFactory) -> None:
        q = offline_builder()
        with pytest.raises(ConsumerMisuseError, match="No table"):
            q.connection.compiler.select(q.statements)

    def test_distinct(self, offline_builder: BuilderFactory) -> None:
        q = offline_builder().table('users').select_distinct('name')
        assert _select(q)[0] == 'SELECT DISTINCT "name" FROM "users"'

    def test_aliases(self, offline_builder: BuilderFactory) -> None:
        q = offline_builder().table({'users': 'u'}).select({'u.name': 'n'}, 'age as a')
        assert _select(q)[0] == 'SELECT "u"."name" AS "n", "age" AS "a" FROM "users" AS "u"'

    def test_group_by_having(self, offline_builder: BuilderFactory) -> None:
        q = offline_builder().table('orders') \
            .select('user_id', raw('SUM(amount) as total')) \
            .group_by('user_id') \
            .having('total', '>', 100)
        assert _select(q) == (
            'SELECT "user_id", SUM(amount) as total FROM "orders" '
            'GROUP BY "user_id" HAVING "total" > ?',
            (100,),
        )

    def test_clause_order_and_binding_order(self, offline_builder: BuilderFactory) -> None:
        """绑定参数按 SQL 中出现的顺序排列"""
        q = offline_builder().table('orders') \
            .select(raw('SUM(amount) * ? as weighted', [2])) \
            .left_join('users', lambda j: j.on('users.id', '=', 'orders.user_id').where('users.age', '>', 18)) \
            .where('orders.amount', '>', 10) \
            .group_by('orders.user_id') \
            .having('weighted', '>', 50) \
            .order_by('weighted', 'desc') \
            .limit(5).offset(10)
        sql, bindings = _select(q)
        assert sql == (
            'SELECT SUM(amount) * ? as weighted FROM "orders" '
            'LEFT JOIN "users" ON "users"."id" = "orders"."user_id" AND "users"."age" > ? '
            'WHERE "orders"."amount" > ? GROUP BY "orders"."user_id" HAVING "weighted" > ? '
            'ORDER BY "weighted" DESC LIMIT 5 OFFSET 10'
        )
        assert bindings == (2, 18, 10, 50)

    def test_order_by_forms(self, offline_builder: BuilderFactory) -> None:
        q = offline_builder().table('users').order_by({'name': 'desc', 'id': 'asc'}) \
            .order_by(['age', 'email'], 'DESC').order_by(raw('RANDOM()'))
        assert _select(q)[0] == (
            'SELECT * FROM "users" ORDER BY "name" DESC, "id" ASC, '
            '"age" DESC, "email" DESC, RANDOM() ASC'
        )

    def test_invalid_order_direction(self, offline_builder: BuilderFactory) -> None:
        with pytest.raises(ConsumerMisuseError, match="direction"):
            offline_builder().table('users').order_by('name', 'sideways')


class TestLimitOffset:
    """各方言 LIMIT/OFFSET 写法"""

    @pytest.mark.parametrize('dialect, expected', [
        ('sqlite', 'LIMIT -1 OFFSET 5'),
        ('mysql', 'LIMIT 18446744073709551615 OFFSET 5'),
        ('pgsql', 'OFFSET 5'),
    ])
    def test_offset_without_limit(self, offline_builder: BuilderFactory,
                                  dialect: str, expected: str) -> None:
        q = offline_builder(dialect).table('users').offset(5)
        assert _select(q)[0].endswith(expected)

    @pytest.mark.parametrize('dialect', ['sqlite', 'mysql', 'pgsql'])
    def test_limit_and_offset(self, offline_builder: BuilderFactory, dialect: str) -> None:
        q = offline_builder(dialect).table('users').limit(10).offset(20)
        assert _select(q)[0].endswith('LIMIT 10 OFFSET 20')


class TestDialectSyntax:
    """方言间的引号与占位符差异"""

    def test_mysql_select(self, offline_builder: BuilderFactory) -> None:
        q = offline_builder('mysql').table('users').where('id', 5)
        assert _select(q) == ('SELECT * FROM `users` WHERE `id` = %s', (5,))

    def test_pgsql_select(self, offline_builder: BuilderFactory) -> None:
        q = offline_builder('pgsql').table('users').where_in('id', [1, 2])
        assert _select(q) == ('SELECT * FROM "users" WHERE "id" IN (%s, %s)', (1, 2))

    def test_prefix_applied(self, offline_builder: BuilderFactory) -> None:
        """表名总是加前缀，列名仅在 table.column 形式时加前缀"""
        q = offline_builder('sqlite', prefix='cb_').table('users') \
            .select('users.name', 'age').where('users.id', 1)
        assert _select(q) == (
            'SELECT "cb_users"."name", "age" FROM "cb_users" WHERE "cb_users"."id" = ?',
            (1,),
        )

    def test_compiler_registry(self) -> None:
        assert isinstance(get_compiler('sqlite'), SqliteCompiler)
        assert isinstance(get_compiler('mysql'), MysqlCompiler)
        assert isinstance(get_compiler('pgsql'), PgsqlCompiler)


class TestInsertCompilation:
    """INSERT 变体编译测试"""

    def _model(self, table: str = 'users') -> StatementModel:
        model = StatementModel()
        model.add('tables', [table])
        return model

    def test_insert(self) -> None:
        sql, bindings = SqliteCompiler().insert(self._model(), {'name': 'Alice', 'age': 30})
        assert sql == 'INSERT INTO "users" ("name", "age") VALUES (?, ?)'
        assert bindings == ('Alice', 30)

    def test_insert_raw_value_inlined(self) -> None:
        sql, bindings = MysqlCompiler().insert(
            self._model(), {'name': 'Alice', 'created_at': raw('NOW()')}
        )
        assert sql == 'INSERT INTO `users` (`name`, `created_at`) VALUES (%s, NOW())'
        assert bindings == ('Alice',)

    @pytest.mark.parametrize('compiler, expected', [
        (SqliteCompiler(), 'INSERT OR IGNORE INTO "users" ("name") VALUES (?)'),
        (MysqlCompiler(), 'INSERT IGNORE INTO `users` (`name`) VALUES (%s)'),
        (PgsqlCompiler(), 'INSERT INTO "users" ("name") VALUES (%s) ON CONFLICT DO NOTHING'),
    ])
    def test_insert_ignore(self, compiler: Any, expected: str) -> None:
        assert compiler.insert_ignore(self._model(), {'name': 'Alice'}).sql == expected

    def test_replace(self) -> None:
        assert SqliteCompiler().replace(self._model(), {'id': 1}).sql == \
            'REPLACE INTO "users" ("id") VALUES (?)'
        assert MysqlCompiler().replace(self._model(), {'id': 1}).sql == \
            'REPLACE INTO `users` (`id`) VALUES (%s)'

    def test_pgsql_replace_unsupported(self) -> None:
        with pytest.raises(UnsupportedOperationError) as exc_info:
            PgsqlCompiler().replace(self._model(), {'id': 1})
        assert exc_info.value.dialect == 'pgsql'
        assert exc_info.value.operation == 'replace'

    def test_mysql_on_duplicate_key_update(self) -> None:
        model = self._model()
        model.add('on_duplicate', {'name': 'Alice'})
        model.add('on_duplicate', {'visits': raw('visits + 1')})
        sql, bindings = MysqlCompiler().insert(model, {'id': 1, 'name': 'Alice'})
        assert sql == (
            'INSERT INTO `users` (`id`, `name`) VALUES (%s, %s) '
            'ON DUPLICATE KEY UPDATE `name` = %s, `visits` = visits + 1'
        )
        assert bindings == (1, 'Alice', 'Alice')

    @pytest.mark.parametrize('compiler', [SqliteCompiler(), PgsqlCompiler()])
    def test_on_duplicate_unsupported(self, compiler: Any) -> None:
        model = self._model()
        model.add('on_duplicate', {'name': 'Alice'})
        with pytest.raises(UnsupportedOperationError):
            compiler.insert(model, {'id': 1, 'name': 'Alice'})

    def test_empty_data_rejected(self) -> None:
        with pytest.raises(ConsumerMisuseError):
            SqliteCompiler().insert(self._model(), {})

    def test_missing_table(self) -> None:
        with pytest.raises(ConsumerMisuseError, match="No table"):
            SqliteCompiler().insert(StatementModel(), {'name': 'Alice'})


class TestUpdateDeleteCompilation:
    """UPDATE / DELETE 编译测试"""

    def test_update(self, offline_builder: BuilderFactory) -> None:
        q = offline_builder().table('users').where('id', 1)
        sql, bindings = q.connection.compiler.update(q.statements, {'age': 31, 'name': 'Al'})
        assert sql == 'UPDATE "users" SET "age" = ?, "name" = ? WHERE "id" = ?'
        assert bindings == (31, 'Al', 1)

    def test_update_raw_value(self, offline_builder: BuilderFactory) -> None:
        q = offline_builder('mysql').table('users').where('id', 1)
        sql, bindings = q.connection.compiler.update(q.statements, {'age': raw('age + %s', [1])})
        assert sql == 'UPDATE `users` SET `age` = age + %s WHERE `id` = %s'
        assert bindings == (1, 1)

    def test_update_without_where(self, offline_builder: BuilderFactory) -> None:
        q = offline_builder().table('users')
        assert q.connection.compiler.update(q.statements, {'age': 1}).sql == \
            'UPDATE "users" SET "age" = ?'

    def test_delete(self, offline_builder: BuilderFactory) -> None:
        q = offline_builder('pgsql', prefix='cb_').table('users').where('age', '<', 18)
        sql, bindings = q.connection.compiler.delete(q.statements)
        assert sql == 'DELETE FROM "cb_users" WHERE "age" < %s'
        assert bindings == (18,)


class TestQuoteLiteral:
    """调试用字面量渲染"""

    def test_standard_escaping(self) -> None:
        compiler = SqliteCompiler()
        assert compiler.quote_literal("O'Brien") == "'O''Brien'"
        assert compiler.quote_literal(None) == 'NULL'
        assert compiler.quote_literal(True) == '1'
        assert compiler.quote_literal(b'\x01\xff') == "X'01ff'"

    def test_mysql_escaping(self) -> None:
        assert MysqlCompiler().quote_literal("O'Brien\\") == "'O\\'Brien\\\\'"
