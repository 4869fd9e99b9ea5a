# CajaLedger Test Suite - Shared Configuration and Fixtures
#
# This module provides:
# - Test database provisioning (ephemeral SQLite file per test)
# - A controllable business clock
# - Users and actors for each role
# - Product factory helpers

from datetime import datetime, timedelta

import pytest

from cajaledger import create_app
from cajaledger.engine import CajaEngine
from cajaledger.gateway import PersistenceGateway
from cajaledger.services.permission_service import Actor


# =============================================================================
# CLOCK
# =============================================================================

class FakeClock:
    """Callable stand-in for local_now(); tests move it explicitly."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


BUSINESS_NOW = datetime(2026, 3, 14, 10, 30)


@pytest.fixture
def clock():
    return FakeClock(BUSINESS_NOW)


# =============================================================================
# DATABASE / ENGINE
# =============================================================================

@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'cajaledger-test.sqlite3'}"


@pytest.fixture
def gateway(db_url):
    gw = PersistenceGateway(db_url)
    gw.create_all()
    yield gw
    gw.drop_all()
    gw.dispose()


@pytest.fixture
def engine(gateway, clock):
    return CajaEngine(
        gateway,
        clock=clock,
        low_stock_threshold=5,
        history_limit=100,
        analytics_window_days=30,
    )


@pytest.fixture
def app(db_url):
    app = create_app({"TESTING": True, "DATABASE_URL": db_url})
    engine = app.extensions["cajaledger"]
    engine.gateway.create_all()
    yield app
    engine.gateway.dispose()


@pytest.fixture
def cli_runner(app):
    return app.test_cli_runner()


# =============================================================================
# USERS & ACTORS
# =============================================================================

@pytest.fixture
def admin_user(engine):
    return engine.users.create_user(name="Admin", email="admin@example.com", role="ADMIN")


@pytest.fixture
def manager_user(engine):
    return engine.users.create_user(name="Marta Manager", email="manager@example.com", role="MANAGER")


@pytest.fixture
def employee_user(engine):
    return engine.users.create_user(name="Eva Employee", email="eva@example.com", role="EMPLOYEE")


@pytest.fixture
def other_employee_user(engine):
    return engine.users.create_user(name="Omar Other", email="omar@example.com", role="EMPLOYEE")


@pytest.fixture
def admin(admin_user):
    return Actor.of(admin_user.id, admin_user.role)


@pytest.fixture
def manager(manager_user):
    return Actor.of(manager_user.id, manager_user.role)


@pytest.fixture
def employee(employee_user):
    return Actor.of(employee_user.id, employee_user.role)


@pytest.fixture
def other_employee(other_employee_user):
    return Actor.of(other_employee_user.id, other_employee_user.role)


# =============================================================================
# DATA FACTORIES
# =============================================================================

@pytest.fixture
def make_product(engine, admin):
    """Create products as the admin user; codes are generated when omitted."""
    counter = {"n": 0}

    def _make(stock=0, price="10.00", code=None, name=None, **attributes):
        counter["n"] += 1
        code = code or f"P-{counter['n']:03d}"
        return engine.create_product(
            admin, code, name or f"Product {code}", price=price, stock=stock, **attributes
        )

    return _make
