# tests/test_cli.py
"""
Tests for the admin command line.
"""
from decimal import Decimal

import pytest
from sqlalchemy.orm import sessionmaker

import init
import main
from models import InvestmentPlan, PaymentMethod, SystemSettings, User


@pytest.fixture
def cli_engine(engine, monkeypatch):
    """Point the module-level engine used by session_scope at the test database."""
    monkeypatch.setattr(init, "_engine", engine)
    monkeypatch.setattr(init, "_SessionFactory", sessionmaker(bind=engine))
    return engine


class TestSeed:

    def test_seed_loads_demo_catalog(self, cli_engine, session):
        assert main.main(["seed"]) == 0

        plans = {p.name: p for p in session.query(InvestmentPlan).all()}
        assert set(plans) == {"Bronze Plan", "Silver Plan", "Gold Plan", "Starter (Old)"}
        assert plans["Bronze Plan"].autoUpgradeTargetId == plans["Silver Plan"].planID
        assert plans["Bronze Plan"].holdSlots == {9, 10}
        assert plans["Starter (Old)"].status == "Disabled"
        assert session.query(PaymentMethod).count() == 4
        assert session.query(SystemSettings).count() == 1

    def test_seed_twice_keeps_one_copy(self, cli_engine, session):
        main.main(["seed"])
        main.main(["seed"])

        assert session.query(InvestmentPlan).count() == 4


class TestAdminCommands:

    def test_adjust_and_failure_exit_code(self, cli_engine, session):
        with init.session_scope() as scoped:
            scoped.add(User(username="alice", walletBalance=0, heldBalance=0, activePlans=[]))

        assert main.main(["adjust", "alice", "15", "Welcome bonus"]) == 0
        assert main.main(["adjust", "ghost", "15", "Nobody"]) == 1

        alice = session.query(User).filter_by(username="alice").one()
        assert Decimal(str(alice.walletBalance)) == Decimal("15.00")
