"""Tests for the command-line interface."""

import csv
import io
import json
from datetime import date
from decimal import Decimal

import pytest
from spendtrack.cli.main import cli


@pytest.fixture
def invoke(cli_runner, temp_db):
    """Run a CLI command against the temporary database."""

    def run(*args, input=None):
        return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args], input=input)

    return run


def test_help_does_not_need_a_database(cli_runner):
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "recurring" in result.output


class TestAccountCommands:
    def test_create_and_list(self, invoke, ledger):
        result = invoke("account", "create", "Checking", "--starting-balance", "1,500.00")
        assert result.exit_code == 0
        assert "Created account 'Checking'" in result.output
        assert "$1,500.00" in result.output

        result = invoke("account", "create", "Visa", "--type", "credit", "--starting-balance", "250")
        assert result.exit_code == 0
        assert ledger.list_accounts()[1].current_balance == Decimal("-250.00")

        result = invoke("account", "list")
        assert result.exit_code == 0
        assert "Checking" in result.output
        assert "-$250.00" in result.output

    def test_list_empty(self, invoke):
        result = invoke("account", "list")
        assert result.exit_code == 0
        assert "No accounts found" in result.output

    def test_show_unknown_account(self, invoke):
        result = invoke("account", "show", "Nope")
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_delete_blocked_by_transactions(self, invoke, ledger, checking):
        ledger.record_transaction(checking.id, "5", "expense", date(2024, 1, 1), "Cafe")
        result = invoke("account", "delete", "Checking", "--yes")
        assert result.exit_code == 1
        assert "Cannot delete account" in result.output

    def test_delete_with_confirmation(self, invoke, ledger, checking):
        result = invoke("account", "delete", "Checking", input="y\n")
        assert result.exit_code == 0
        assert ledger.list_accounts() == []

    def test_merge(self, invoke, ledger, checking):
        old = ledger.create_account(name="Old", starting_balance="200")
        ledger.record_transaction(old.id, "25", "expense", date(2024, 1, 2), "Cafe")

        result = invoke("account", "merge", "Old", "Checking", input="y\n")
        assert result.exit_code == 0
        assert "Merged 'Old' into 'Checking'" in result.output
        assert "$1,175.00" in result.output
        assert [a.name for a in ledger.list_accounts()] == ["Checking"]
        assert len(ledger.require_account(checking.id).transactions) == 1

    def test_merge_rejects_different_types(self, invoke, ledger, checking, visa):
        result = invoke("account", "merge", "Visa", "Checking", "--yes")
        assert result.exit_code == 1
        assert "Error: Cannot merge a credit account" in result.output
        assert len(ledger.list_accounts()) == 2


class TestTransactionCommands:
    def test_add_expense(self, invoke, ledger, checking):
        result = invoke(
            "add", "--account", "Checking", "--amount", "42.10",
            "--payee", "Grocer", "--date", "2024-01-03", "--category", "Food",
        )
        assert result.exit_code == 0
        assert "Created transaction" in result.output
        assert ledger.require_account(checking.id).current_balance == Decimal("957.90")

    def test_add_income(self, invoke, ledger, checking):
        result = invoke("add", "--account", checking.id[:8], "--type", "income", "--amount", "100", "--payee", "Gift")
        assert result.exit_code == 0
        assert ledger.require_account(checking.id).current_balance == Decimal("1100.00")

    def test_add_rejects_negative_amount(self, invoke, ledger, checking):
        result = invoke("add", "--account", "Checking", "--amount", "-5", "--payee", "X")
        assert result.exit_code == 1
        assert "positive" in result.output
        assert ledger.require_account(checking.id).transactions == ()

    def test_transfer_and_delete_pair(self, invoke, ledger, checking, visa):
        result = invoke("transfer", "--from", "Checking", "--to", "Visa", "--amount", "200")
        assert result.exit_code == 0
        assert "Transferred $200.00" in result.output

        source = ledger.require_account(checking.id).transactions[0]
        result = invoke("transaction", "delete", source.id)
        assert result.exit_code == 0
        assert ledger.require_account(visa.id).transactions == ()
        assert ledger.require_account(visa.id).current_balance == Decimal("-500.00")

    def test_delete_by_id_prefix(self, invoke, ledger, checking):
        txn = ledger.record_transaction(checking.id, "5", "expense", date(2024, 1, 1), "Cafe")

        result = invoke("transaction", "delete", txn.id[:8])
        assert result.exit_code == 0
        assert f"Deleted transaction {txn.id}" in result.output
        assert ledger.require_account(checking.id).transactions == ()

    def test_delete_short_or_unknown_prefix(self, invoke, ledger, checking):
        txn = ledger.record_transaction(checking.id, "5", "expense", date(2024, 1, 1), "Cafe")

        result = invoke("transaction", "delete", txn.id[:3])
        assert result.exit_code == 1
        assert "not found" in result.output

        result = invoke("transaction", "delete", "zzzzzzzz")
        assert result.exit_code == 1
        assert "not found" in result.output
        assert len(ledger.require_account(checking.id).transactions) == 1

    def test_transfer_to_same_account(self, invoke, checking):
        result = invoke("transfer", "--from", "Checking", "--to", "Checking", "--amount", "1")
        assert result.exit_code == 1
        assert "itself" in result.output

    def test_transaction_list_filters(self, invoke, ledger, checking):
        ledger.record_transaction(checking.id, "5", "expense", date(2024, 1, 1), "Cafe")
        ledger.record_transaction(checking.id, "9", "expense", date(2024, 2, 1), "Cinema")

        result = invoke("transaction", "list", "--start-date", "2024-01-15")
        assert result.exit_code == 0
        assert "Cinema" in result.output
        assert "Cafe" not in result.output

        result = invoke("transaction", "list", "--search", "caf")
        assert "Cafe" in result.output
        assert "Cinema" not in result.output

    def test_period_flags_are_exclusive(self, invoke):
        result = invoke("transaction", "list", "--this-month", "--last-month")
        assert result.exit_code == 1
        assert "Only one period option" in result.output


class TestRecurringCommands:
    def test_add_check_and_list(self, invoke, ledger, registry, checking):
        result = invoke(
            "recurring", "add", "Streaming", "--account", "Checking", "--amount", "9.99",
            "--frequency", "monthly", "--next-due", "2024-01-15", "--payee", "StreamCo",
        )
        assert result.exit_code == 0
        assert "Created recurring payment 'Streaming'" in result.output

        result = invoke("recurring", "due", "--as-of", "2024-01-20")
        assert result.exit_code == 0
        assert "Streaming" in result.output

        result = invoke("recurring", "check", "--as-of", "2024-01-20")
        assert result.exit_code == 0
        assert "Processed 1 recurring payment(s)" in result.output

        result = invoke("recurring", "check", "--as-of", "2024-01-20")
        assert result.exit_code == 0
        assert "No payments processed" in result.output

        assert ledger.require_account(checking.id).current_balance == Decimal("990.01")
        payment = registry.list_payments()[0]
        assert payment.next_due_date.date() == date(2024, 2, 15)

        result = invoke("recurring", "list")
        assert "2024-02-15" in result.output
        assert "last 2024-01-20" in result.output

    def test_check_reports_failures(self, invoke, registry):
        registry.add_payment(
            name="Orphan", amount="5", account_id="gone", frequency="weekly",
            next_due_date=date(2024, 1, 1), payee="Nobody",
        )
        result = invoke("recurring", "check", "--as-of", "2024-01-02")
        assert result.exit_code == 1
        assert "Failed: Orphan" in result.output

    def test_toggle_and_delete(self, invoke, registry, checking):
        payment = registry.add_payment(
            name="Gym", amount="30", account_id=checking.id, frequency="monthly",
            next_due_date=date(2024, 1, 1), payee="Gym",
        )
        result = invoke("recurring", "toggle", "Gym")
        assert result.exit_code == 0
        assert "paused" in result.output
        assert registry.get_payment(payment.id).is_active is False

        result = invoke("recurring", "delete", payment.id[:8])
        assert result.exit_code == 0
        assert registry.list_payments() == []

    def test_unknown_payment(self, invoke):
        result = invoke("recurring", "toggle", "Nope")
        assert result.exit_code == 1
        assert "not found" in result.output


class TestSummaryAndBackup:
    def test_summary(self, invoke, checking, visa):
        result = invoke("summary")
        assert result.exit_code == 0
        assert "Net worth:         $500.00" in result.output
        assert "Total debt:        $500.00" in result.output
        assert "Health score:      66.67" in result.output

    def test_export_csv(self, invoke, ledger, checking):
        ledger.record_transaction(checking.id, "12.5", "expense", date(2024, 1, 4), "Cafe")
        result = invoke("export", "csv", "--account", "Checking")
        assert result.exit_code == 0
        rows = list(csv.reader(io.StringIO(result.output)))
        assert rows[1] == ["Checking", "Expense", "Cafe", "Other", "2024-01-04", "12.50"]

    def test_backup_save_and_restore(self, invoke, ledger, checking, tmp_path):
        backup_file = tmp_path / "backup.json"
        result = invoke("backup", "save", str(backup_file))
        assert result.exit_code == 0
        assert "Saved 1 account(s)" in result.output

        ledger.create_account(name="Scratch")
        result = invoke("backup", "restore", str(backup_file), "--yes")
        assert result.exit_code == 0
        assert [a.name for a in ledger.list_accounts()] == ["Checking"]

    def test_restore_rejects_bad_file(self, invoke, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{not json")
        result = invoke("backup", "restore", str(bad), "--yes")
        assert result.exit_code == 1
        assert "not valid JSON" in result.output

    def test_restore_rejects_inconsistent_backup(self, invoke, ledger, checking, visa, tmp_path):
        ledger.add_transfer("50", checking.id, visa.id, date(2024, 1, 2))
        backup_file = tmp_path / "backup.json"
        invoke("backup", "save", str(backup_file))

        data = json.loads(backup_file.read_text())
        data["accounts"][1]["transactions"] = []
        backup_file.write_text(json.dumps(data))

        result = invoke("backup", "restore", str(backup_file), "--yes")
        assert result.exit_code == 1
        assert "Error: Transfer" in result.output
        assert ledger.require_account(visa.id).current_balance == Decimal("-450.00")
