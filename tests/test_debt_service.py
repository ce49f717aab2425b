"""Debt lifecycle service tests: create, update, charges and detail view."""

from __future__ import annotations

import logging
from datetime import date

import pytest

from debtsage.domain.exceptions import ConcurrentUpdateError, DebtNotFoundError, InvalidInputError
from debtsage.services.amortization import project_debt
from debtsage.services.danger import danger_score
from debtsage.services.debts import (
    apply_new_charge,
    create_debt,
    get_debt,
    get_debt_detail,
    next_due_date,
    retry_on_conflict,
    update_debt,
)
from debtsage.services.payments import record_payment


def _create(repo, today, **overrides):
    fields = dict(
        name="Visa",
        category="credit_card",
        original_balance_cents=500_000,
        current_balance_cents=500_000,
        apr_percent=24.0,
        minimum_payment_cents=15_000,
        due_day=20,
    )
    fields.update(overrides)
    return create_debt(repo, today=today, **fields)


class TestCreateDebt:
    def test_creates_active_debt_with_cached_projection(self, debt_repo, today):
        debt = _create(debt_repo, today)

        assert debt.id is not None
        assert debt.status == "active"
        assert debt.death_date == date(2030, 9, 15)
        assert debt.total_interest_projected_cents == 340_000
        assert debt.danger_score == danger_score(500_000, 24.0, 15_000)
        assert debt.next_due_date == date(2026, 1, 20)

        stored = get_debt(debt_repo, debt.id)
        assert stored.name == "Visa"
        assert stored.death_date == date(2030, 9, 15)

    def test_name_is_trimmed(self, debt_repo, today):
        assert _create(debt_repo, today, name="  Amex  ").name == "Amex"

    def test_never_paying_debt_is_stored_without_death_date(self, debt_repo, today, caplog):
        with caplog.at_level(logging.WARNING, logger="debtsage"):
            debt = _create(debt_repo, today, minimum_payment_cents=10_000)

        assert debt.death_date is None
        assert debt.total_interest_projected_cents == 0
        assert any("never pays off" in record.getMessage() for record in caplog.records)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"name": ""},
            {"name": "   "},
            {"name": "x" * 65},
            {"category": "payday"},
            {"apr_percent": -1.0},
            {"apr_percent": 100.5},
            {"apr_percent": float("inf")},
            {"minimum_payment_cents": -1},
            {"due_day": 0},
            {"due_day": 32},
            {"original_balance_cents": 0},
            {"current_balance_cents": -10},
        ],
    )
    def test_rejects_invalid_fields(self, debt_repo, today, overrides):
        with pytest.raises(InvalidInputError):
            _create(debt_repo, today, **overrides)
        assert debt_repo.list_all() == []

    def test_minimum_and_due_day_are_optional(self, debt_repo, today):
        debt = _create(debt_repo, today, minimum_payment_cents=None, due_day=None)

        assert debt.minimum_payment_cents is None
        assert debt.next_due_date is None
        assert debt.death_date is not None


class TestUpdateDebt:
    def test_pricing_change_rebuilds_projection(self, debt_repo, today):
        debt = _create(debt_repo, today)

        updated = update_debt(debt_repo, debt.id, minimum_payment_cents=20_000, today=today)

        assert updated.minimum_payment_cents == 20_000
        assert updated.death_date == date(2029, 1, 15)
        assert updated.total_interest_projected_cents == 220_000
        assert get_debt(debt_repo, debt.id).total_interest_projected_cents == 220_000

    def test_descriptive_fields(self, debt_repo, today):
        debt = _create(debt_repo, today)

        updated = update_debt(
            debt_repo, debt.id, name="Visa Platinum", category="other", due_day=5, today=today
        )

        assert updated.name == "Visa Platinum"
        assert updated.category == "other"
        assert updated.next_due_date == date(2026, 2, 5)

    def test_status_can_move_between_non_terminal_states(self, debt_repo, today):
        debt = _create(debt_repo, today)

        update_debt(debt_repo, debt.id, status="deferred", today=today)
        assert debt_repo.list_active_debts() == []

        update_debt(debt_repo, debt.id, status="active", today=today)
        assert [d.id for d in debt_repo.list_active_debts()] == [debt.id]

    @pytest.mark.parametrize(
        "changes",
        [
            {"current_balance_cents": 1},
            {"danger_score": 5},
            {"status": "closed"},
            {"status": "paid_off"},
            {"apr_percent": 150.0},
        ],
    )
    def test_rejects_invalid_changes(self, debt_repo, today, changes):
        debt = _create(debt_repo, today)

        with pytest.raises(InvalidInputError):
            update_debt(debt_repo, debt.id, today=today, **changes)

    def test_unknown_debt(self, debt_repo, today):
        with pytest.raises(DebtNotFoundError):
            update_debt(debt_repo, 77, name="Nope", today=today)


class TestApplyNewCharge:
    def test_charge_raises_balance_and_danger(self, debt_repo, today):
        debt = _create(debt_repo, today, current_balance_cents=100_000, minimum_payment_cents=5_000)

        charged = apply_new_charge(debt_repo, debt.id, 50_000, today=today)

        assert charged.current_balance_cents == 150_000
        assert charged.danger_score == danger_score(150_000, 24.0, 5_000)
        assert charged.death_date == project_debt(150_000, 24.0, 5_000, today=today).payoff_date

    def test_charge_reactivates_paid_off_debt(self, debt_repo, today):
        debt = _create(debt_repo, today, current_balance_cents=10_000)
        record_payment(debt_repo, debt.id, 20_000, today, today=today)
        assert get_debt(debt_repo, debt.id).status == "paid_off"

        charged = apply_new_charge(debt_repo, debt.id, 2_500, today=today)

        assert charged.status == "active"
        assert charged.current_balance_cents == 2_500

    @pytest.mark.parametrize("amount", [0, -100])
    def test_rejects_non_positive_charge(self, debt_repo, today, amount):
        debt = _create(debt_repo, today)

        with pytest.raises(InvalidInputError):
            apply_new_charge(debt_repo, debt.id, amount, today=today)


class TestDebtDetail:
    def test_detail_includes_projection_and_history(self, debt_repo, today):
        debt = _create(debt_repo, today)
        record_payment(debt_repo, debt.id, 15_000, "2026-01-01", today=today)
        record_payment(debt_repo, debt.id, 15_000, "2026-02-01", today=today)

        detail = get_debt_detail(debt_repo, debt.id, today=today)

        assert detail.debt.id == debt.id
        assert detail.projection == project_debt(
            detail.debt.current_balance_cents, 24.0, 15_000, today=today
        )
        assert [p.payment_date for p in detail.payments] == [date(2026, 2, 1), date(2026, 1, 1)]

    def test_detail_for_unknown_debt(self, debt_repo):
        with pytest.raises(DebtNotFoundError) as excinfo:
            get_debt_detail(debt_repo, 9)

        assert "9" in str(excinfo.value)


class TestNextDueDate:
    @pytest.mark.parametrize(
        "due_day,today,expected",
        [
            (15, date(2026, 1, 10), date(2026, 1, 15)),
            (15, date(2026, 1, 15), date(2026, 2, 15)),
            (31, date(2026, 1, 31), date(2026, 2, 28)),
            (31, date(2026, 4, 2), date(2026, 4, 30)),
            (5, date(2026, 12, 20), date(2027, 1, 5)),
            (29, date(2028, 2, 1), date(2028, 2, 29)),
        ],
    )
    def test_next_due_date(self, due_day, today, expected):
        assert next_due_date(due_day, today) == expected

    def test_no_due_day(self):
        assert next_due_date(None, date(2026, 1, 1)) is None


class TestConflictRetry:
    """Read-modify-write services re-read the debt when another writer got there first."""

    def test_charge_after_stale_read_keeps_concurrent_payment(self, debt_repo, today, monkeypatch):
        debt = _create(debt_repo, today, current_balance_cents=100_000, apr_percent=0.0)
        stale = debt_repo.find_debt(debt.id)
        record_payment(debt_repo, debt.id, 10_000, today, today=today)
        real_find = debt_repo.find_debt
        reads = iter([stale])
        monkeypatch.setattr(
            debt_repo, "find_debt", lambda debt_id: next(reads, None) or real_find(debt_id)
        )

        charged = apply_new_charge(debt_repo, debt.id, 5_000, today=today)

        assert charged.current_balance_cents == 95_000
        assert get_debt(debt_repo, debt.id).current_balance_cents == 95_000

    def test_update_after_stale_read_keeps_concurrent_payment(self, debt_repo, today, monkeypatch):
        debt = _create(debt_repo, today, current_balance_cents=100_000, apr_percent=0.0)
        stale = debt_repo.find_debt(debt.id)
        record_payment(debt_repo, debt.id, 10_000, today, today=today)
        real_find = debt_repo.find_debt
        reads = iter([stale])
        monkeypatch.setattr(
            debt_repo, "find_debt", lambda debt_id: next(reads, None) or real_find(debt_id)
        )

        updated = update_debt(debt_repo, debt.id, name="Visa Gold", today=today)

        assert updated.name == "Visa Gold"
        assert get_debt(debt_repo, debt.id).current_balance_cents == 90_000

    def test_gives_up_after_repeated_conflicts(self, debt_repo, today, monkeypatch):
        debt = _create(debt_repo, today)
        stale = debt_repo.find_debt(debt.id)
        update_debt(debt_repo, debt.id, name="Moved on", today=today)
        monkeypatch.setattr(debt_repo, "find_debt", lambda debt_id: stale)

        with pytest.raises(ConcurrentUpdateError):
            apply_new_charge(debt_repo, debt.id, 1_000, today=today)

        monkeypatch.undo()
        assert get_debt(debt_repo, debt.id).current_balance_cents == 500_000

    def test_retry_counts_attempts(self):
        attempts = []

        def always_conflicts():
            attempts.append(1)
            raise ConcurrentUpdateError(3)

        with pytest.raises(ConcurrentUpdateError):
            retry_on_conflict(always_conflicts, 3)

        assert len(attempts) == 3
