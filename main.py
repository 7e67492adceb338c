from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

import config
from app.attachments import ReceiptAction, ReceiptBlob
from app.audit import LedgerAuditor
from app.exporters import SUPPORTED_FORMATS, export_statement
from app.use_cases import (
    AddDeposit,
    AddExpense,
    AdjustBalance,
    CalculateTotalBalance,
    ClearAllData,
    CreateAccount,
    DeleteAccount,
    DeleteDeposit,
    DeleteExpense,
    GetAccounts,
    UpdateDeposit,
    UpdateExpense,
    UpdateOverdraftLimit,
    UpdateSetting,
)
from backup import create_backup, export_snapshot
from bootstrap import bootstrap_ledger, configure_logging
from domain.money import format_amount
from domain.reports import AccountStatement, accounts_table
from domain.results import Result
from domain.validation import (
    ensure_not_future,
    is_valid_account_number,
    normalize_account_number,
    parse_amount,
    parse_ymd,
    require_text,
)
from infrastructure.repositories import LedgerRepositories

logger = logging.getLogger(__name__)


def _report(result: Result, success_message: str) -> int:
    if result:
        print(success_message)
        return 0
    print(f"Error ({result.kind.value}): {result.message}", file=sys.stderr)
    return 1


def _transaction_date(value: str) -> str:
    day = parse_ymd(value)
    ensure_not_future(day)
    return day.isoformat()


def _transaction_changes(args: argparse.Namespace) -> dict:
    changes = {}
    if args.amount is not None:
        changes["amount"] = parse_amount(args.amount)
    if args.date is not None:
        changes["date"] = _transaction_date(args.date)
    if args.category is not None:
        changes["category"] = require_text(args.category, "category")
    if args.description is not None:
        changes["description"] = args.description
    return changes


def cmd_accounts(args, repos: LedgerRepositories) -> int:
    print(accounts_table(GetAccounts(repos).execute()))
    print(f"Total balance: {format_amount(CalculateTotalBalance(repos).execute())}")
    return 0


def cmd_add_account(args, repos: LedgerRepositories) -> int:
    bank_name = require_text(args.bank, "bank")
    number = normalize_account_number(args.number)
    if not is_valid_account_number(number):
        raise ValueError(f"Invalid account number: {args.number}")
    result = CreateAccount(repos).execute(
        bank_name=bank_name,
        account_number=number,
        balance=parse_amount(args.balance, allow_negative=True),
        overdraft_limit=parse_amount(args.overdraft, allow_zero=True),
    )
    return _report(result, f"Account created: {result.value.id if result else ''}")


def cmd_set_overdraft(args, repos: LedgerRepositories) -> int:
    limit = parse_amount(args.limit, allow_zero=True)
    result = UpdateOverdraftLimit(repos).execute(args.account_id, limit)
    return _report(result, f"Overdraft limit set to {format_amount(limit)}")


def cmd_adjust(args, repos: LedgerRepositories) -> int:
    result = AdjustBalance(repos).execute(
        args.account_id,
        parse_amount(args.balance, allow_negative=True),
        require_text(args.reason, "reason"),
        args.note or "",
    )
    if not result:
        return _report(result, "")
    return _report(
        result, f"Balance adjusted by {format_amount(result.value.adjustment_amount)}"
    )


def cmd_delete_account(args, repos: LedgerRepositories) -> int:
    result = DeleteAccount(repos).execute(args.account_id)
    if not result and result.value is not None:
        print(
            "Removed so far: "
            + ", ".join(f"{key}={count}" for key, count in result.value.removed.items()),
            file=sys.stderr,
        )
    return _report(result, f"Account {args.account_id} deleted")


def cmd_add_expense(args, repos: LedgerRepositories) -> int:
    fields = dict(
        account_id=args.account_id,
        amount=parse_amount(args.amount),
        date=_transaction_date(args.date),
        category=require_text(args.category, "category"),
        description=args.description or "",
    )
    if args.receipt:
        blob = ReceiptBlob.from_path(args.receipt)
        result = asyncio.run(AddExpense(repos).execute_async(receipt=blob, **fields))
    else:
        result = AddExpense(repos).execute(**fields)
    return _report(result, f"Expense recorded: {result.value.id if result else ''}")


def cmd_edit_expense(args, repos: LedgerRepositories) -> int:
    changes = _transaction_changes(args)
    update_balance = not args.keep_balance
    use_case = UpdateExpense(repos)
    if args.receipt:
        result = asyncio.run(
            use_case.execute_async(
                args.expense_id,
                changes,
                receipt_action=ReceiptAction.REPLACE,
                receipt=ReceiptBlob.from_path(args.receipt),
                update_balance=update_balance,
            )
        )
    else:
        action = ReceiptAction.REMOVE if args.remove_receipt else ReceiptAction.KEEP
        result = use_case.execute(
            args.expense_id, changes, receipt_action=action, update_balance=update_balance
        )
    return _report(result, f"Expense {args.expense_id} updated")


def cmd_delete_expense(args, repos: LedgerRepositories) -> int:
    result = DeleteExpense(repos).execute(
        args.expense_id, restore_balance=not args.keep_balance
    )
    return _report(result, f"Expense {args.expense_id} deleted")


def cmd_add_deposit(args, repos: LedgerRepositories) -> int:
    result = AddDeposit(repos).execute(
        account_id=args.account_id,
        amount=parse_amount(args.amount),
        date=_transaction_date(args.date),
        category=require_text(args.category, "category"),
        description=args.description or "",
    )
    return _report(result, f"Deposit recorded: {result.value.id if result else ''}")


def cmd_edit_deposit(args, repos: LedgerRepositories) -> int:
    result = UpdateDeposit(repos).execute(
        args.deposit_id,
        _transaction_changes(args),
        update_balance=not args.keep_balance,
    )
    return _report(result, f"Deposit {args.deposit_id} updated")


def cmd_delete_deposit(args, repos: LedgerRepositories) -> int:
    result = DeleteDeposit(repos).execute(
        args.deposit_id, restore_balance=not args.keep_balance
    )
    return _report(result, f"Deposit {args.deposit_id} deleted")


def cmd_statement(args, repos: LedgerRepositories) -> int:
    account = repos.accounts.get_by_id(args.account_id)
    if account is None:
        print(f"Error (not_found): Account not found: {args.account_id}", file=sys.stderr)
        return 1
    statement = AccountStatement(
        account,
        expenses=repos.expenses.get_by_account_id(account.id),
        deposits=repos.deposits.get_by_account_id(account.id),
        adjustments=repos.adjustments.get_by_account_id(account.id),
    )
    if args.export:
        export_statement(statement, args.export, args.format)
        print(f"Statement exported to {args.export}")
        return 0
    print(statement.title)
    print(statement.as_table())
    return 0


def cmd_audit(args, repos: LedgerRepositories) -> int:
    auditor = LedgerAuditor(repos)
    drifts = auditor.verify()
    for drift in drifts:
        print(
            f"Account {drift.account_id}: recorded {format_amount(drift.recorded)}, "
            f"history {format_amount(drift.expected)}, drift {format_amount(drift.drift)}"
        )
    orphans = auditor.find_orphans()
    if not orphans.is_empty():
        print(
            f"Orphaned records: {len(orphans.expenses)} expenses, "
            f"{len(orphans.deposits)} deposits, {len(orphans.adjustments)} adjustments"
        )
    if not drifts and orphans.is_empty():
        print("Ledger is consistent")
        return 0

    status = 0
    if args.repair and drifts:
        status |= _report(auditor.repair_balances(), f"Repaired {len(drifts)} balances")
    if args.purge_orphans and not orphans.is_empty():
        status |= _report(auditor.purge_orphans(), "Orphaned records purged")
    return status


def cmd_settings(args, repos: LedgerRepositories) -> int:
    if args.dark_mode is not None:
        result = UpdateSetting(repos).execute("darkMode", args.dark_mode == "on")
        if not result:
            return _report(result, "")
    for key, value in sorted(repos.settings.get_all().items()):
        print(f"{key}: {value}")
    return 0


def _data_source(args: argparse.Namespace) -> str:
    if args.backend == "sqlite":
        return str(Path(args.data_dir) / "ledger.db") if args.data_dir else config.SQLITE_PATH
    return args.data_dir or config.DATA_DIR


def cmd_clear(args, repos: LedgerRepositories) -> int:
    if not args.yes:
        print("Refusing to clear data without --yes", file=sys.stderr)
        return 1
    if not args.no_backup:
        backup_path = (
            create_backup(_data_source(args), repos.store)
            if args.backend != "memory"
            else None
        )
        if backup_path:
            print(f"Backup created: {backup_path}")
    if args.snapshot:
        print(f"Snapshot written: {export_snapshot(repos.store, args.snapshot)}")
    return _report(ClearAllData(repos).execute(), "All ledger data cleared")


def _add_transaction_options(parser: argparse.ArgumentParser, *, required: bool) -> None:
    parser.add_argument("--amount", required=required)
    parser.add_argument("--date", required=required, help="YYYY-MM-DD")
    parser.add_argument("--category", default="General" if required else None)
    parser.add_argument("--description")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Personal bank ledger")
    parser.add_argument("--backend", choices=config.BACKENDS, default=config.STORAGE_BACKEND)
    parser.add_argument("--data-dir", help="Defaults to LEDGER_DATA_DIR")
    parser.add_argument("--log-level", default=config.LOG_LEVEL)
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("accounts", help="List accounts and the total balance")
    p.set_defaults(handler=cmd_accounts)

    p = sub.add_parser("add-account", help="Open a bank account")
    p.add_argument("--bank", required=True)
    p.add_argument("--number", required=True)
    p.add_argument("--balance", default="0")
    p.add_argument("--overdraft", default="0")
    p.set_defaults(handler=cmd_add_account)

    p = sub.add_parser("set-overdraft", help="Change an account's overdraft limit")
    p.add_argument("account_id")
    p.add_argument("limit")
    p.set_defaults(handler=cmd_set_overdraft)

    p = sub.add_parser("adjust", help="Override a balance and record the adjustment")
    p.add_argument("account_id")
    p.add_argument("balance")
    p.add_argument("--reason", required=True)
    p.add_argument("--note")
    p.set_defaults(handler=cmd_adjust)

    p = sub.add_parser("delete-account", help="Delete an account and its history")
    p.add_argument("account_id")
    p.set_defaults(handler=cmd_delete_account)

    p = sub.add_parser("add-expense")
    p.add_argument("account_id")
    _add_transaction_options(p, required=True)
    p.add_argument("--receipt", help="Path of a receipt file to attach")
    p.set_defaults(handler=cmd_add_expense)

    p = sub.add_parser("edit-expense")
    p.add_argument("expense_id")
    _add_transaction_options(p, required=False)
    receipt = p.add_mutually_exclusive_group()
    receipt.add_argument("--receipt", help="Replace the receipt with this file")
    receipt.add_argument("--remove-receipt", action="store_true")
    p.add_argument("--keep-balance", action="store_true", help="Do not touch the balance")
    p.set_defaults(handler=cmd_edit_expense)

    p = sub.add_parser("delete-expense")
    p.add_argument("expense_id")
    p.add_argument("--keep-balance", action="store_true", help="Do not restore the balance")
    p.set_defaults(handler=cmd_delete_expense)

    p = sub.add_parser("add-deposit")
    p.add_argument("account_id")
    _add_transaction_options(p, required=True)
    p.set_defaults(handler=cmd_add_deposit)

    p = sub.add_parser("edit-deposit")
    p.add_argument("deposit_id")
    _add_transaction_options(p, required=False)
    p.add_argument("--keep-balance", action="store_true", help="Do not touch the balance")
    p.set_defaults(handler=cmd_edit_deposit)

    p = sub.add_parser("delete-deposit")
    p.add_argument("deposit_id")
    p.add_argument("--keep-balance", action="store_true", help="Do not restore the balance")
    p.set_defaults(handler=cmd_delete_deposit)

    p = sub.add_parser("statement", help="Show or export an account statement")
    p.add_argument("account_id")
    p.add_argument("--export", help="Write the statement to this file")
    p.add_argument("--format", choices=SUPPORTED_FORMATS)
    p.set_defaults(handler=cmd_statement)

    p = sub.add_parser("audit", help="Compare balances with transaction history")
    p.add_argument("--repair", action="store_true", help="Reset drifted balances")
    p.add_argument("--purge-orphans", action="store_true")
    p.set_defaults(handler=cmd_audit)

    p = sub.add_parser("settings", help="Show or change settings")
    p.add_argument("--dark-mode", choices=("on", "off"))
    p.set_defaults(handler=cmd_settings)

    p = sub.add_parser("clear", help="Remove all ledger data")
    p.add_argument("--yes", action="store_true")
    p.add_argument("--no-backup", action="store_true")
    p.add_argument("--snapshot", help="Also dump all collections to this JSON file")
    p.set_defaults(handler=cmd_clear)
    return parser


def main(argv: Sequence[str] | None = None, repositories: LedgerRepositories | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    repos = repositories or bootstrap_ledger(args.backend, args.data_dir)
    try:
        return args.handler(args, repos)
    except (ValueError, OSError) as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
