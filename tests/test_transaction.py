import itertools

import pytest

from moderato import ConnectionGuard, Transaction, TransactionSource
from moderato.exception import (
    ConfigurationError,
    InvalidState,
    UnsupportedOperation,
)
from moderato.transaction import Moderator


def test_get_connection_outside_transaction(
    transaction_source, source, connection
):
    conn = transaction_source.get_connection()

    assert conn is connection
    assert conn.autocommit is True
    assert not transaction_source.in_transaction()

    transaction_source.release_connection(conn)
    assert source.released == [connection]


def test_get_connection_inside_transaction(transaction_source, connection):
    txn = transaction_source.begin_transaction()
    conn = transaction_source.get_connection()

    assert isinstance(conn, ConnectionGuard)
    assert conn is txn.connection
    assert transaction_source.in_transaction()

    for operation in (conn.commit, conn.rollback):
        with pytest.raises(UnsupportedOperation):
            operation()
    with pytest.raises(UnsupportedOperation):
        conn.autocommit = True
    conn.close()

    connection.commit.assert_not_called()
    connection.rollback.assert_not_called()
    connection.close.assert_not_called()
    txn.close()


def test_get_connection_with_credentials(transaction_source):
    with pytest.raises(UnsupportedOperation, match="credentials"):
        transaction_source.get_connection("user", "secret")


def test_nested_commit(transaction_source, connection, source):
    outer = transaction_source.begin_transaction()
    assert outer.depth == Moderator.ORIGINAL_DEPTH
    inner = transaction_source.begin_transaction()
    assert inner.depth == 1
    assert inner.moderator is outer.moderator
    assert inner is not outer

    inner.commit()
    assert outer.depth == Moderator.ORIGINAL_DEPTH
    connection.commit.assert_not_called()

    outer.commit()
    connection.commit.assert_called_once_with()
    assert connection.autocommit is True
    assert source.released == [connection]
    assert outer.depth == Moderator.INITIAL_DEPTH
    assert not transaction_source.in_transaction()


@pytest.mark.parametrize("depth", [1, 2, 3, 6])
def test_exactly_one_real_commit(transaction_source, connection, depth):
    handles = [transaction_source.begin_transaction() for _ in range(depth)]

    for handle in reversed(handles):
        handle.commit()

    connection.commit.assert_called_once_with()
    connection.rollback.assert_not_called()
    handles[0].moderator.ensure_committed()


@pytest.mark.parametrize("order", list(itertools.permutations(range(3))))
def test_commit_order_does_not_matter(transaction_source, connection, order):
    handles = [transaction_source.begin_transaction() for _ in range(3)]

    for position, index in enumerate(order):
        handles[index].commit()
        if position < 2:
            connection.commit.assert_not_called()

    connection.commit.assert_called_once_with()


def test_inner_scope_exit_without_commit(
    transaction_source, connection, source
):
    with transaction_source.begin_transaction() as outer:
        with transaction_source.begin_transaction():
            pass

        connection.rollback.assert_called_once_with()
        assert outer.depth == Moderator.ABORTED_DEPTH
        assert not transaction_source.in_transaction()

        with pytest.raises(InvalidState, match="dead transaction"):
            outer.commit()

    assert outer.is_closed
    connection.rollback.assert_called_once_with()
    connection.commit.assert_not_called()
    assert source.released == [connection]


def test_error_in_scope_rolls_back(transaction_source, connection):
    with pytest.raises(ValueError):
        with transaction_source.begin_transaction():
            with transaction_source.begin_transaction() as inner:
                inner.commit()
                raise ValueError("boom")

    connection.rollback.assert_called_once_with()
    connection.commit.assert_not_called()
    assert not transaction_source.in_transaction()


def test_double_commit(transaction_source, connection):
    outer = transaction_source.begin_transaction()
    inner = transaction_source.begin_transaction()
    inner.commit()

    with pytest.raises(InvalidState, match="closed"):
        inner.commit()

    assert outer.depth == Moderator.ORIGINAL_DEPTH
    outer.commit()
    connection.commit.assert_called_once_with()


def test_commit_after_transaction_committed(transaction_source, connection):
    txn = transaction_source.begin_transaction()
    txn.commit()
    stray = Transaction(txn.moderator)

    with pytest.raises(InvalidState, match="dead transaction"):
        stray.commit()
    stray.close()

    connection.commit.assert_called_once_with()
    connection.rollback.assert_not_called()


def test_close_after_commit_is_noop(transaction_source, connection):
    txn = transaction_source.begin_transaction()
    txn.commit()
    txn.close()
    txn.close()

    connection.rollback.assert_not_called()
    assert txn.is_closed


def test_open_handles_after_rollback(transaction_source, connection):
    handles = [transaction_source.begin_transaction() for _ in range(4)]
    handles[2].close()

    connection.rollback.assert_called_once_with()
    for handle in (handles[0], handles[1], handles[3]):
        with pytest.raises(InvalidState):
            handle.commit()
        handle.close()
        assert handle.is_closed

    connection.rollback.assert_called_once_with()
    connection.commit.assert_not_called()


def test_new_transaction_after_rollback(
    transaction_source, source, make_connection
):
    second_connection = make_connection()
    source.connections.append(second_connection)

    with transaction_source.begin_transaction() as first:
        pass

    with transaction_source.begin_transaction() as second:
        assert second.moderator is not first.moderator
        second.commit()

    second_connection.commit.assert_called_once_with()
    assert source.acquired[1] is second_connection


def test_begin_with_wrong_initial_autocommit(make_source, make_connection):
    connection = make_connection(autocommit=False)
    transaction_source = TransactionSource(source=make_source(connection))

    with pytest.raises(ConfigurationError):
        transaction_source.begin_transaction()

    assert len(transaction_source.registry) == 0
    assert not transaction_source.in_transaction()


def test_transaction_context_commits(transaction_source, connection):
    with transaction_source.transaction():
        with transaction_source.transaction() as inner:
            assert inner.depth == 1
        connection.commit.assert_not_called()

    connection.commit.assert_called_once_with()
    assert not transaction_source.in_transaction()


def test_transaction_context_rolls_back(transaction_source, connection):
    with pytest.raises(KeyError):
        with transaction_source.transaction():
            with transaction_source.transaction():
                raise KeyError("missing")

    connection.rollback.assert_called_once_with()
    connection.commit.assert_not_called()


def test_transaction_context_explicit_commit(transaction_source, connection):
    with transaction_source.transaction() as txn:
        txn.commit()

    connection.commit.assert_called_once_with()


def test_connection_context(transaction_source, connection, source):
    with transaction_source.connection() as conn:
        assert conn is connection
    assert source.released == [connection]

    with transaction_source.transaction():
        with transaction_source.connection() as conn:
            assert isinstance(conn, ConnectionGuard)
        assert source.released == [connection]

    assert len(source.released) == 2
    assert source.released[1] is source.acquired[1]


def test_repr(transaction_source):
    txn = transaction_source.begin_transaction()
    assert "depth=0" in repr(txn)
    txn.close()
    assert "depth=-2" in repr(txn)
