"""Tests for the recurring payment scheduler."""

import pytest
from datetime import date

from fundtrack.domain.entities import (
    Cadence,
    RecurringPayment,
    RecurringType,
    TransactionDraft,
    TransactionType,
    TransferDraft,
)
from fundtrack.domain.errors import NotFoundError, ValidationError
from fundtrack.domain.filters import DateRange, TransactionFilter
from fundtrack.domain.recurring import next_due_date, validate_recurring_payment


def make_payment(**overrides):
    fields = dict(
        id=1,
        owner="alice",
        name="Rent",
        type=RecurringType.TRANSACTION,
        cadence=Cadence.MONTHLY,
        amount=1_200_000,
        start_date=date(2024, 1, 31),
        day_of_month=31,
    )
    fields.update(overrides)
    return RecurringPayment(**fields)


class TestNextDueDate:
    """Tests for next due date computation."""

    def test_first_occurrence_is_start_date(self):
        assert next_due_date(make_payment(), date(2024, 1, 15)) == date(2024, 1, 31)

    def test_day_31_clamps_to_leap_february(self):
        payment = make_payment(last_completed_at=date(2024, 1, 31))
        assert next_due_date(payment, date(2024, 2, 10)) == date(2024, 2, 29)

    def test_clamping_does_not_stick(self):
        payment = make_payment(last_completed_at=date(2024, 2, 29))
        assert next_due_date(payment, date(2024, 3, 1)) == date(2024, 3, 31)

    def test_missed_occurrences_roll_forward(self):
        assert next_due_date(make_payment(), date(2024, 3, 5)) == date(2024, 3, 31)

    def test_due_today_is_not_skipped(self):
        assert next_due_date(make_payment(), date(2024, 1, 31)) == date(2024, 1, 31)

    def test_monthly_on_configured_day(self):
        payment = make_payment(start_date=date(2024, 1, 3), day_of_month=15)
        assert next_due_date(payment, date(2024, 1, 1)) == date(2024, 1, 15)

    def test_yearly_leap_day(self):
        payment = make_payment(
            cadence=Cadence.YEARLY, start_date=date(2023, 1, 1), month=2, day_of_month=29
        )
        assert next_due_date(payment, date(2023, 1, 1)) == date(2023, 2, 28)
        assert next_due_date(payment, date(2024, 1, 1)) == date(2024, 2, 29)

    def test_daily(self):
        payment = make_payment(cadence=Cadence.DAILY, start_date=date(2024, 1, 1), day_of_month=None)
        assert next_due_date(payment, date(2024, 1, 5)) == date(2024, 1, 5)
        completed = make_payment(
            cadence=Cadence.DAILY, start_date=date(2024, 1, 1), day_of_month=None,
            last_completed_at=date(2024, 1, 5),
        )
        assert next_due_date(completed, date(2024, 1, 5)) == date(2024, 1, 6)


class TestValidation:
    """Tests for recurring payment validation."""

    @pytest.mark.parametrize(
        "overrides,field",
        [
            ({"name": "  "}, "name"),
            ({"amount": -1}, "amount"),
            ({"transfer_charge": -1}, "transfer_charge"),
            ({"day_of_month": None}, "day_of_month"),
            ({"day_of_month": 32}, "day_of_month"),
            ({"cadence": Cadence.YEARLY, "month": None}, "month"),
            ({"cadence": Cadence.YEARLY, "month": 13}, "month"),
            ({"type": RecurringType.TRANSFER}, "account_id"),
        ],
    )
    def test_invalid_templates(self, overrides, field):
        with pytest.raises(ValidationError) as exc_info:
            validate_recurring_payment(make_payment(**overrides))
        assert exc_info.value.field == field

    def test_daily_needs_no_day(self):
        validate_recurring_payment(make_payment(cadence=Cadence.DAILY, day_of_month=None))


@pytest.fixture
def rent(recurring_service, checking, groceries, owner):
    return recurring_service.create_recurring_payment(
        owner,
        name="Rent",
        type=RecurringType.TRANSACTION,
        cadence=Cadence.MONTHLY,
        amount=1_200_000,
        start_date=date(2024, 1, 31),
        account_id=checking.id,
        category_id=groceries.id,
        day_of_month=31,
    )


class TestRecurringPaymentService:
    """Tests for RecurringPaymentService."""

    def test_create_and_get(self, recurring_service, rent, owner):
        payment = recurring_service.get_recurring_payment(owner, rent)
        assert payment.name == "Rent"
        assert payment.last_completed_at is None
        assert payment.is_active is True

    def test_other_owner_cannot_see(self, recurring_service, rent, other_owner):
        with pytest.raises(NotFoundError):
            recurring_service.get_recurring_payment(other_owner, rent)

    def test_create_with_foreign_account(self, recurring_service, account_service, other_owner, owner):
        foreign_id = account_service.create_account(other_owner, "Theirs")
        with pytest.raises(NotFoundError):
            recurring_service.create_recurring_payment(
                owner, "Rent", RecurringType.TRANSACTION, Cadence.DAILY, 1_000, date(2024, 1, 1),
                account_id=foreign_id,
            )

    def test_list_attaches_schedule(self, recurring_service, rent, owner):
        (scheduled,) = recurring_service.list_recurring_payments(owner, today=date(2024, 1, 25))
        assert scheduled.next_due_date == date(2024, 1, 31)
        assert scheduled.days_remaining == 6

    def test_propose_transaction(self, recurring_service, rent, checking, groceries, owner):
        proposal = recurring_service.propose_completion(owner, rent, today=date(2024, 1, 25))

        assert proposal.due_date == date(2024, 1, 31)
        assert isinstance(proposal.draft, TransactionDraft)
        assert proposal.draft.account_id == checking.id
        assert proposal.draft.amount == -1_200_000
        assert proposal.draft.payee == "Rent"
        assert proposal.draft.category_id == groceries.id

    def test_propose_transfer(self, recurring_service, checking, credit_card, owner):
        payment_id = recurring_service.create_recurring_payment(
            owner, "Card payment", RecurringType.TRANSFER, Cadence.MONTHLY, 300_000, date(2024, 1, 1),
            account_id=checking.id, to_account_id=credit_card.id, transfer_charge=1_000, day_of_month=10,
        )
        proposal = recurring_service.propose_completion(owner, payment_id, today=date(2024, 1, 2))

        assert isinstance(proposal.draft, TransferDraft)
        assert proposal.draft.amount == 300_000
        assert proposal.draft.from_account_id == checking.id
        assert proposal.draft.to_account_id == credit_card.id
        assert proposal.draft.transfer_charge == 1_000
        assert proposal.draft.date == date(2024, 1, 10)

    def test_propose_without_account(self, recurring_service, owner):
        payment_id = recurring_service.create_recurring_payment(
            owner, "Gym", RecurringType.TRANSACTION, Cadence.DAILY, 5_000, date(2024, 1, 1)
        )
        with pytest.raises(ValidationError):
            recurring_service.propose_completion(owner, payment_id, today=date(2024, 1, 1))

    def test_propose_writes_nothing(self, recurring_service, transaction_service, rent, owner):
        before = transaction_service.list_transactions(owner, TransactionFilter(dates=DateRange()))
        recurring_service.propose_completion(owner, rent, today=date(2024, 1, 25))
        after = transaction_service.list_transactions(owner, TransactionFilter(dates=DateRange()))
        assert len(after) == len(before)

    def test_complete_advances_schedule(self, recurring_service, rent, owner):
        recurring_service.complete(owner, rent, completed_at=date(2024, 1, 31))

        payment = recurring_service.get_recurring_payment(owner, rent)
        assert payment.last_completed_at == date(2024, 1, 31)
        assert recurring_service.schedule(payment, date(2024, 2, 10)).next_due_date == date(2024, 2, 29)

    def test_update_fields(self, recurring_service, rent, owner):
        updated = recurring_service.update_recurring_payment(
            owner, rent, amount=1_300_000, is_active=False, category_id=None
        )
        assert updated.amount == 1_300_000
        assert updated.is_active is False
        assert updated.category_id is None
        assert recurring_service.get_recurring_payment(owner, rent).amount == 1_300_000

    @pytest.mark.parametrize("field", ["last_completed_at", "id"])
    def test_update_rejects_non_editable_fields(self, recurring_service, rent, owner, field):
        with pytest.raises(ValidationError) as exc_info:
            recurring_service.update_recurring_payment(owner, rent, **{field: None})
        assert exc_info.value.field == field

    def test_update_revalidates(self, recurring_service, rent, owner):
        with pytest.raises(ValidationError):
            recurring_service.update_recurring_payment(owner, rent, cadence=Cadence.YEARLY)

    def test_delete(self, recurring_service, rent, owner):
        recurring_service.delete_recurring_payment(owner, rent)
        with pytest.raises(NotFoundError):
            recurring_service.get_recurring_payment(owner, rent)


def test_recurring_create_and_list_cli(run_cli, checking):
    created = run_cli(
        "recurring", "create", "Rent", "--amount", "1200", "--day", "31", "--account", "Checking",
        "--start-date", "2024-01-31",
    )
    assert created.exit_code == 0
    assert "Created recurring payment 'Rent'" in created.output

    listed = run_cli("recurring", "list", "--as-of", "2024-01-25")
    assert listed.exit_code == 0
    assert "Rent" in listed.output
    assert "2024-01-31" in listed.output
    assert "in 6 day(s)" in listed.output


def test_recurring_create_monthly_without_day_cli(run_cli, checking):
    result = run_cli("recurring", "create", "Rent", "--amount", "1200", "--account", "Checking")

    assert result.exit_code == 1
    assert "(field: day_of_month)" in result.output


def test_recurring_complete_cli(run_cli, recurring_service, transaction_service, rent, checking, owner):
    result = run_cli("recurring", "complete", str(rent), "--as-of", "2024-01-25")

    assert result.exit_code == 0
    assert "Due 2024-01-31: transaction of -1,200.00" in result.output
    assert "completed recurring payment" in result.output

    assert recurring_service.get_recurring_payment(owner, rent).last_completed_at == date(2024, 1, 31)
    recorded = [
        t for t in transaction_service.list_transactions(
            owner, TransactionFilter(dates=DateRange(), account_id=checking.id)
        )
        if t.payee == "Rent"
    ]
    assert len(recorded) == 1
    assert recorded[0].amount == -1_200_000
    assert recorded[0].type == TransactionType.USER_CREATED


def test_recurring_complete_dry_run_cli(run_cli, recurring_service, rent, owner):
    result = run_cli("recurring", "complete", str(rent), "--as-of", "2024-01-25", "--dry-run")

    assert result.exit_code == 0
    assert "Due 2024-01-31" in result.output
    assert recurring_service.get_recurring_payment(owner, rent).last_completed_at is None


def test_recurring_update_nothing_cli(run_cli, rent):
    result = run_cli("recurring", "update", str(rent))

    assert result.exit_code == 0
    assert "Nothing to update." in result.output
