"""
Tests for the tracker facade, input validation and bootstrap.
"""

import pytest
import pytest_asyncio
from datetime import date
from decimal import Decimal

from expense_tracker.config import AppSettings, Settings, StorageSettings, get_settings, validate_all_settings
from expense_tracker.models.audit import AuditEventType
from expense_tracker.models.expense import ExpenseCategory, Period
from expense_tracker.orchestrator import ExpenseTracker, create_tracker, to_amount
from expense_tracker.services.storage import InMemoryExpenseStorage, SQLiteExpenseStorage
from expense_tracker.validation import ExpenseValidationError, ExpenseValidator

from conftest import make_transaction


def fixed_today():
    return date(2024, 3, 31)


@pytest_asyncio.fixture
async def tracker(memory_storage, audit_logger, march_2024):
    tracker = ExpenseTracker(
        storage=memory_storage,
        validator=ExpenseValidator(AppSettings(), today=fixed_today),
        audit_logger=audit_logger,
        period=march_2024,
    )
    yield tracker
    tracker._aggregator.close()


class TestToAmount:
    """Tests for amount parsing."""
    
    def test_parses_strings_and_numbers(self):
        assert to_amount("12.50") == Decimal("12.50")
        assert to_amount(" 7 ") == Decimal("7")
        assert to_amount(15.1) == Decimal("15.1")
        assert to_amount(3) == Decimal("3")
    
    @pytest.mark.parametrize("raw", ["abc", "", "NaN", "Infinity"])
    def test_rejects_non_numbers(self, raw):
        with pytest.raises(ValueError):
            to_amount(raw)


class TestExpenseValidator:
    """Tests for input validation."""
    
    @pytest.fixture
    def validator(self):
        return ExpenseValidator(AppSettings(), today=fixed_today)
    
    def test_valid_expense(self, validator):
        result = validator.validate_expense(Decimal("12.30"), "Lunch", date(2024, 3, 5))
        assert result.is_valid
        assert result.issues == []
    
    @pytest.mark.parametrize("amount", ["0", "-5"])
    def test_non_positive_amount_is_an_error(self, validator, amount):
        result = validator.validate_expense(Decimal(amount), "", date(2024, 3, 5))
        assert result.has_errors
        assert result.issues[0].field == "amount"
    
    def test_too_many_decimal_places(self, validator):
        result = validator.validate_expense(Decimal("1.005"), "", date(2024, 3, 5))
        assert result.has_errors
        assert result.issues[0].issue_type == "invalid_format"
    
    def test_large_amount_is_a_warning(self, validator):
        result = validator.validate_expense(Decimal("250000"), "", date(2024, 3, 5))
        assert not result.has_errors
        assert [i.issue_type for i in result.issues] == ["suspicious_value"]
    
    @pytest.mark.parametrize("amount", ["10000000000000", "12345678901234567.89", "1E+27"])
    def test_unstorable_amount_is_an_error(self, validator, amount):
        result = validator.validate_expense(Decimal(amount), "", date(2024, 3, 5))
        assert result.has_errors
        assert [i.issue_type for i in result.issues] == ["out_of_range"]
    
    def test_largest_storable_amount_only_warns(self, validator):
        result = validator.validate_expense(Decimal("9999999999999.99"), "", date(2024, 3, 5))
        assert not result.has_errors
        assert [i.issue_type for i in result.issues] == ["suspicious_value"]
    
    def test_future_date_is_a_warning(self, validator):
        result = validator.validate_expense(Decimal("5"), "", date(2024, 4, 2))
        assert not result.has_errors
        assert [i.field for i in result.issues] == ["date"]
        assert len(result.warnings) == 1
    
    def test_future_date_tolerance(self):
        validator = ExpenseValidator(AppSettings(future_date_tolerance_days=3), today=fixed_today)
        result = validator.validate_expense(Decimal("5"), "", date(2024, 4, 2))
        assert result.warnings == []
    
    def test_overlong_description(self, validator):
        result = validator.validate_expense(Decimal("5"), "x" * 501, date(2024, 3, 5))
        assert result.has_errors
        assert result.issues[0].field == "description"
    
    def test_budget_validation(self, validator):
        assert validator.validate_budget(ExpenseCategory.MEAL, Decimal("0")).is_valid
        result = validator.validate_budget(ExpenseCategory.MEAL, Decimal("-1"))
        assert result.has_errors
        assert "Meal" in result.issues[0].message
        assert validator.validate_budget(ExpenseCategory.MEAL, Decimal("1E+15")).has_errors


@pytest.mark.asyncio
class TestExpenseTracker:
    """Tests for the facade over store and aggregator."""
    
    async def test_add_expense_updates_summary(self, tracker):
        new_id = await tracker.add_expense(ExpenseCategory.NTUC, "20.00", " Groceries ", on=date(2024, 3, 5))
        
        stored = await tracker.get_expense(new_id)
        assert stored.description == "Groceries"
        assert stored.amount == Decimal("20.00")
        assert tracker.summary.value.total_spent == Decimal("20.00")
        assert [t.id for t in tracker.period_transactions.value] == [new_id]
        assert tracker.transactions.value == (stored,)
    
    async def test_add_expense_rejects_invalid_input(self, tracker, audit_logger):
        with pytest.raises(ExpenseValidationError) as exc_info:
            await tracker.add_expense(ExpenseCategory.MEAL, "0", on=date(2024, 3, 5))
        
        assert exc_info.value.result.has_errors
        assert tracker.transactions.value == ()
        assert len(audit_logger.of_type(AuditEventType.VALIDATION_FAILED)) == 1
    
    async def test_add_expense_rejects_unstorable_amount(self, tracker):
        with pytest.raises(ExpenseValidationError):
            await tracker.add_expense(ExpenseCategory.MEAL, "1E+27", on=date(2024, 3, 5))
        assert tracker.transactions.value == ()
    
    async def test_add_expense_without_description(self, tracker):
        new_id = await tracker.add_expense(ExpenseCategory.MEAL, "4.50", None, on=date(2024, 3, 5))
        assert (await tracker.get_expense(new_id)).description == ""
    
    async def test_add_expense_rejects_unparseable_amount(self, tracker):
        with pytest.raises(ValueError):
            await tracker.add_expense(ExpenseCategory.MEAL, "twelve")
    
    async def test_warnings_do_not_block(self, tracker):
        new_id = await tracker.add_expense(ExpenseCategory.CASH, "5", on=date(2024, 4, 10))
        assert new_id > 0
    
    async def test_update_and_delete(self, tracker):
        new_id = await tracker.add_expense(ExpenseCategory.FUEL, "60", on=date(2024, 3, 1))
        stored = await tracker.get_expense(new_id)
        
        changed = stored.model_copy(update={"amount": Decimal("65.00")})
        assert await tracker.update_expense(changed) is True
        assert tracker.summary.value.for_category(ExpenseCategory.FUEL).spent == Decimal("65.00")
        
        assert await tracker.delete_expense(changed) is True
        assert tracker.summary.value.total_spent == 0
    
    async def test_missing_expense(self, tracker):
        ghost = make_transaction(id=999)
        assert await tracker.update_expense(ghost) is False
        assert await tracker.delete_expense(ghost) is False
        assert await tracker.get_expense(999) is None
    
    async def test_set_budget_defaults_to_selected_period(self, tracker, march_2024):
        budget = await tracker.set_budget(ExpenseCategory.MEAL, "120")
        
        assert budget.period == march_2024
        assert tracker.budgets.value == (budget,)
        assert tracker.summary.value.for_category(ExpenseCategory.MEAL).budget == Decimal("120")
        assert tracker.summary.value.total_budget == Decimal("120")
    
    async def test_set_budget_for_other_period(self, tracker):
        april = Period(month=4, year=2024)
        await tracker.set_budget(ExpenseCategory.MEAL, "80", period=april)
        assert tracker.summary.value.total_budget == 0
        
        tracker.next_period()
        assert tracker.current_period.value == april
        assert tracker.summary.value.total_budget == Decimal("80")
    
    async def test_negative_budget_is_rejected(self, tracker):
        with pytest.raises(ExpenseValidationError):
            await tracker.set_budget(ExpenseCategory.MEAL, "-10")
        assert tracker.budgets.value == ()
    
    async def test_navigation(self, tracker):
        assert tracker.previous_period() == Period(month=2, year=2024)
        tracker.select_period(Period(month=12, year=2023))
        assert tracker.next_period() == Period(month=1, year=2024)
        assert tracker.summary.value.period == Period(month=1, year=2024)
    
    async def test_breakdown(self, tracker):
        await tracker.add_expense(ExpenseCategory.NTUC, "25", on=date(2024, 3, 5))
        await tracker.add_expense(ExpenseCategory.MEAL, "75", on=date(2024, 3, 6))
        
        breakdown = tracker.breakdown.value
        assert [(b.category, b.share) for b in breakdown] == [
            (ExpenseCategory.MEAL, 75.0),
            (ExpenseCategory.NTUC, 25.0),
        ]


class TestSettings:
    """Tests for configuration loading."""
    
    def test_storage_url(self, tmp_path):
        settings = StorageSettings(path=str(tmp_path / "x.db"))
        assert settings.url == f"sqlite+aiosqlite:///{tmp_path / 'x.db'}"
        assert StorageSettings(path=":memory:").url == "sqlite+aiosqlite:///:memory:"
    
    def test_storage_path_must_have_existing_parent(self, tmp_path):
        with pytest.raises(ValueError):
            StorageSettings(path=str(tmp_path / "missing" / "x.db"))
    
    def test_app_settings_from_environment(self, monkeypatch):
        monkeypatch.setenv("EXPENSE_TRACKER_MAX_EXPENSE_AMOUNT", "500")
        monkeypatch.setenv("EXPENSE_TRACKER_CURRENCY_SYMBOL", "$")
        settings = AppSettings()
        assert settings.max_expense_amount == Decimal("500")
        assert settings.currency_symbol == "$"
    
    def test_validate_all_settings(self, monkeypatch, tmp_path):
        monkeypatch.setenv("EXPENSE_TRACKER_DB_PATH", str(tmp_path / "missing" / "x.db"))
        get_settings.cache_clear()
        try:
            results = validate_all_settings()
        finally:
            get_settings.cache_clear()
        
        assert results["app"] is True
        assert results["storage"] is False
        assert "storage_error" in results


@pytest.mark.asyncio
class TestCreateTracker:
    """Tests for the bootstrap factory."""
    
    async def test_in_memory(self):
        tracker = await create_tracker(Settings(), use_storage=False)
        try:
            assert isinstance(tracker.storage, InMemoryExpenseStorage)
            assert tracker.current_period.value == Period.current()
        finally:
            await tracker.close()
    
    async def test_sqlite_is_durable(self, monkeypatch, tmp_path):
        monkeypatch.setenv("EXPENSE_TRACKER_DB_PATH", str(tmp_path / "tracker.db"))
        
        tracker = await create_tracker(Settings())
        assert isinstance(tracker.storage, SQLiteExpenseStorage)
        new_id = await tracker.add_expense(ExpenseCategory.MEAL, "9.90", "Kopi", on=date(2024, 3, 5))
        await tracker.close()
        
        reopened = await create_tracker(Settings())
        try:
            stored = await reopened.get_expense(new_id)
            assert stored.description == "Kopi"
            assert stored.amount == Decimal("9.90")
        finally:
            await reopened.close()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
