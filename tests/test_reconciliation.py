# CajaLedger Tests - Cash Reconciliation
#
# Pure-function tests for expected cash, signed difference and the
# one-cent tolerance.

import pytest

from cajaledger.exceptions import ValidationError
from cajaledger.models import CashRegisterRecord
from cajaledger.services.register_service import (
    TOLERANCE_CENTS,
    reconcile,
    reconcile_amounts,
    require_close_fields,
)


pytestmark = pytest.mark.registers


def _reconcile(opening, cash_sales, expenses, closing):
    return reconcile_amounts(
        opening_cash_cents=opening,
        cash_sales_cents=cash_sales,
        expenses_cents=expenses,
        closing_cash_cents=closing,
    )


class TestReconcileAmounts:
    """expected = opening + cash sales - expenses; difference = closing - expected."""

    def test_balanced(self):
        result = _reconcile(100000, 50000, 5000, 145000)

        assert result.expected_cash_cents == 145000
        assert result.difference_cents == 0
        assert result.flagged is False

    def test_excess_is_positive(self):
        result = _reconcile(1000, 0, 0, 1500)

        assert result.difference_cents == 500
        assert result.flagged is True

    @pytest.mark.parametrize("difference,flagged", [
        (0, False),
        (TOLERANCE_CENTS, False),
        (-TOLERANCE_CENTS, False),
        (TOLERANCE_CENTS + 1, True),
        (-(TOLERANCE_CENTS + 1), True),
    ])
    def test_one_cent_tolerance(self, difference, flagged):
        result = _reconcile(1000, 0, 0, 1000 + difference)

        assert result.flagged is flagged

    def test_without_closing_cash_there_is_no_difference(self):
        result = _reconcile(1000, 200, 50, None)

        assert result.expected_cash_cents == 1150
        assert result.difference_cents is None
        assert result.flagged is False

    def test_expenses_can_exceed_cash(self):
        result = _reconcile(0, 0, 700, 0)

        assert result.expected_cash_cents == -700
        assert result.difference_cents == 700

    def test_reconcile_reads_record_columns(self):
        record = CashRegisterRecord(
            opening_cash_cents=2000,
            cash_sales_cents=3000,
            expenses_cents=500,
            closing_cash_cents=4400,
        )

        assert reconcile(record).to_dict() == {
            "expected_cash_cents": 4500,
            "difference_cents": -100,
            "flagged": True,
        }


class TestCloseFields:
    """Closing needs numeric closing cash and cash sales in the request."""

    def test_all_present(self):
        require_close_fields({"closing_cash": "0", "cash_sales": 0})

    def test_reports_every_missing_field(self):
        with pytest.raises(ValidationError) as exc_info:
            require_close_fields({"closing_cash": "", "expenses": 10})

        assert exc_info.value.missing_fields == ["closing_cash", "cash_sales"]
        assert exc_info.value.to_dict()["code"] == "VALIDATION_ERROR"

    def test_non_numeric_counts_as_missing(self):
        with pytest.raises(ValidationError) as exc_info:
            require_close_fields({"closing_cash": "abc", "cash_sales": 5})

        assert exc_info.value.missing_fields == ["closing_cash"]
