"""
Tests for the PostgreSQL partition backend DDL, against a mocked admin engine
"""

import pytest
from unittest.mock import MagicMock

from brandos.partitions.postgres import PostgresPartitionBackend, quote_identifier


@pytest.fixture
def admin_engine():
    return MagicMock()


def _executed(admin_engine):
    conn = admin_engine.begin.return_value.__enter__.return_value
    return [str(call.args[0]) for call in conn.execute.call_args_list]


def test_prepare_revokes_public_schema_create(admin_engine):
    PostgresPartitionBackend(admin_engine).prepare()

    assert _executed(admin_engine) == ["REVOKE CREATE ON SCHEMA public FROM PUBLIC"]


def test_create_partition_ddl(admin_engine):
    PostgresPartitionBackend(admin_engine).create_partition("bensu_kitchen_a1b2", "bensu_kitchen_a1b2_role")

    assert _executed(admin_engine) == [
        'CREATE SCHEMA IF NOT EXISTS "bensu_kitchen_a1b2" AUTHORIZATION "bensu_kitchen_a1b2_role"',
        'GRANT ALL ON SCHEMA "bensu_kitchen_a1b2" TO "bensu_kitchen_a1b2_role"',
        'ALTER ROLE "bensu_kitchen_a1b2_role" SET search_path TO "bensu_kitchen_a1b2"',
    ]


@pytest.mark.parametrize("identifier", ["Robert'); DROP", "has space", "1leading_digit", ""])
def test_quote_identifier_refuses_unsafe_names(identifier):
    with pytest.raises(ValueError):
        quote_identifier(identifier)


def test_sqlite_backend_prepare_is_a_no_op(backend):
    backend.prepare()
