# CajaLedger Tests - Persistence Gateway
#
# Tests for:
# - Commit on success, rollback on every failure
# - Translation of SQLAlchemy errors into StorageError
# - Domain and programming errors passing through unchanged

import pytest
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from cajaledger.exceptions import NotFoundError, StorageError
from cajaledger.models import User


def _user_count(gateway):
    with gateway.transaction() as session:
        return session.query(func.count(User.id)).scalar()


def _add_user(session, email):
    session.add(User(name="Someone", email=email, role="EMPLOYEE"))
    session.flush()


class TestTransactionScope:
    """gateway.transaction() commits or rolls back as one unit."""

    def test_commit_on_success(self, gateway):
        with gateway.transaction() as session:
            _add_user(session, "one@example.com")

        assert _user_count(gateway) == 1

    def test_domain_error_rolls_back_and_propagates(self, gateway):
        with pytest.raises(NotFoundError):
            with gateway.transaction() as session:
                _add_user(session, "two@example.com")
                raise NotFoundError("Product 7 not found")

        assert _user_count(gateway) == 0

    def test_sqlalchemy_error_becomes_storage_error(self, gateway, caplog):
        """
        SCENARIO: A unique constraint fails halfway through a transaction
        EXPECTED: StorageError chained to the IntegrityError; earlier writes rolled back
        """
        with gateway.transaction() as session:
            _add_user(session, "taken@example.com")

        with pytest.raises(StorageError) as exc_info:
            with gateway.transaction() as session:
                _add_user(session, "fresh@example.com")
                _add_user(session, "taken@example.com")

        assert isinstance(exc_info.value.__cause__, IntegrityError)
        assert exc_info.value.code == "STORAGE_ERROR"
        assert _user_count(gateway) == 1
        assert any("rolled back" in message for message in caplog.messages)

    def test_other_exceptions_roll_back_unchanged(self, gateway):
        with pytest.raises(RuntimeError):
            with gateway.transaction() as session:
                _add_user(session, "three@example.com")
                raise RuntimeError("boom")

        assert _user_count(gateway) == 0

    def test_foreign_keys_enforced_on_sqlite(self, gateway):
        from cajaledger.models import StockMovement

        with pytest.raises(StorageError):
            with gateway.transaction() as session:
                session.add(StockMovement(
                    product_id=999, actor_id=999, type="ENTRY",
                    quantity=1, previous_stock=0, new_stock=1,
                ))
                session.flush()
