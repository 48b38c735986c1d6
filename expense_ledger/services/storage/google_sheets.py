"""
Google Sheets Ledger Store

DESIGN DECISION: Google Sheets is the initial storage backend because:
1. The user can look at their ledger directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions (budget upserts are read-then-write)
- Limited query capabilities (we filter, sort and page in Python)

Amounts are written as integer base-cents strings, never as decimals.
Writes retry with tenacity. Record ids and timestamps are fixed before the
first attempt, and an insert whose id is already on the sheet is a no-op,
so a retry after a lost response never appends a second row.
gspread is synchronous, so calls run in a worker thread; that keeps the
engine's timeout guard effective.
"""

import asyncio
from datetime import date, datetime
from typing import Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from expense_ledger.config import GoogleSheetsSettings, get_settings
from expense_ledger.models.categories import seed_categories
from expense_ledger.models.ledger import (
    Budget,
    Category,
    Expense,
    ExpenseQuery,
    ExpenseUpdate,
    NewExpense,
    new_id,
    utc_now,
)
from expense_ledger.services.storage.interface import (
    ConnectionError,
    LedgerStoreInterface,
    NotFoundError,
    StoreError,
)


# Column mappings for the Expenses sheet
EXPENSE_COLUMNS = [
    "id",
    "user_id",
    "category_id",
    "amount_base_cents",
    "description",
    "expense_date",
    "created_at",
    "updated_at",
]

# Column mappings for the Budgets sheet
BUDGET_COLUMNS = [
    "id",
    "user_id",
    "category_id",
    "monthly_limit_base_cents",
    "created_at",
    "updated_at",
]

# Column mappings for the Categories sheet
CATEGORY_COLUMNS = [
    "id",
    "name",
    "color",
    "icon_name",
    "emoji",
    "display_order",
]


def _safe_get(row: list, index: int, default: str = "") -> str:
    """Read a cell, tolerating short rows."""
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            return spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
            return sheet

    def get_expenses_sheet(self) -> gspread.Worksheet:
        """Get or create the Expenses worksheet."""
        return self._get_or_create(
            self._settings.expenses_sheet_name, EXPENSE_COLUMNS, rows=5000
        )

    def get_budgets_sheet(self) -> gspread.Worksheet:
        """Get or create the Budgets worksheet."""
        return self._get_or_create(
            self._settings.budgets_sheet_name, BUDGET_COLUMNS, rows=200
        )

    def get_categories_sheet(self) -> gspread.Worksheet:
        """Get or create the Categories worksheet, seeding defaults when new."""
        sheet = self._get_or_create(
            self._settings.categories_sheet_name, CATEGORY_COLUMNS, rows=100
        )
        if len(sheet.get_all_values()) <= 1:
            sheet.append_rows(
                [_category_to_row(c) for c in seed_categories()],
                value_input_option="RAW",
            )
        return sheet


def _category_to_row(category: Category) -> list:
    return [
        category.id,
        category.name,
        category.color,
        category.icon_name,
        category.emoji,
        str(category.display_order),
    ]


def _row_to_category(row: list) -> Category:
    return Category(
        id=_safe_get(row, 0),
        name=_safe_get(row, 1),
        color=_safe_get(row, 2, "#000000"),
        icon_name=_safe_get(row, 3, "MoreHorizontal"),
        emoji=_safe_get(row, 4),
        display_order=int(_safe_get(row, 5, "0")),
    )


class GoogleSheetsLedgerStore(LedgerStoreInterface):
    """
    Google Sheets implementation of the ledger store.

    Expenses, budgets and categories each live in their own worksheet,
    one record per row.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    # -- row conversion -----------------------------------------------------

    def _expense_to_row(self, expense: Expense) -> list:
        return [
            expense.id,
            expense.user_id,
            expense.category_id,
            str(expense.amount_base_cents),
            expense.description or "",
            expense.expense_date.isoformat(),
            expense.created_at.isoformat(),
            expense.updated_at.isoformat(),
        ]

    def _row_to_expense(self, row: list, categories: dict[str, Category]) -> Expense:
        category_id = _safe_get(row, 2)
        category = categories.get(category_id)
        if category is None:
            raise StoreError(f"Expense references unknown category: {category_id}")
        return Expense(
            id=_safe_get(row, 0),
            user_id=_safe_get(row, 1),
            category_id=category_id,
            category=category,
            amount_base_cents=int(_safe_get(row, 3)),
            description=_safe_get(row, 4) or None,
            expense_date=date.fromisoformat(_safe_get(row, 5)),
            created_at=datetime.fromisoformat(_safe_get(row, 6)),
            updated_at=datetime.fromisoformat(_safe_get(row, 7)),
        )

    def _budget_to_row(self, budget: Budget) -> list:
        return [
            budget.id,
            budget.user_id,
            budget.category_id,
            str(budget.monthly_limit_base_cents),
            budget.created_at.isoformat(),
            budget.updated_at.isoformat(),
        ]

    def _row_to_budget(self, row: list, categories: dict[str, Category]) -> Budget:
        category_id = _safe_get(row, 2)
        category = categories.get(category_id)
        if category is None:
            raise StoreError(f"Budget references unknown category: {category_id}")
        return Budget(
            id=_safe_get(row, 0),
            user_id=_safe_get(row, 1),
            category_id=category_id,
            category=category,
            monthly_limit_base_cents=int(_safe_get(row, 3, "0")),
            created_at=datetime.fromisoformat(_safe_get(row, 4)),
            updated_at=datetime.fromisoformat(_safe_get(row, 5)),
        )

    # -- sync helpers (run in a worker thread) ------------------------------

    def _load_categories(self) -> dict[str, Category]:
        sheet = self._client.get_categories_sheet()
        categories = {}
        for row in sheet.get_all_values()[1:]:  # Skip header
            if row and row[0]:
                category = _row_to_category(row)
                categories[category.id] = category
        return categories

    def _fetch_expenses_sync(
        self,
        user_id: str,
        query: ExpenseQuery,
        offset: int,
        limit: int,
    ) -> list[Expense]:
        categories = self._load_categories()
        all_rows = self._client.get_expenses_sheet().get_all_values()[1:]

        expenses = []
        for row in all_rows:
            if not row or not row[0] or row[1] != user_id:
                continue
            expense = self._row_to_expense(row, categories)

            # Apply filters
            if query.date_from and expense.expense_date < query.date_from:
                continue
            if query.date_to and expense.expense_date > query.date_to:
                continue
            if query.category_id and expense.category_id != query.category_id:
                continue
            if query.search_text and query.search_text.lower() not in (
                expense.description or ""
            ).lower():
                continue

            expenses.append(expense)

        if query.order_by_created:
            expenses.sort(key=lambda e: e.created_at, reverse=True)
        else:
            expenses.sort(key=lambda e: (e.expense_date, e.created_at), reverse=True)

        # Apply pagination
        return expenses[offset:offset + limit]

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type(StoreError),
        reraise=True,
    )
    def _insert_expense_sync(self, expense: NewExpense, now: datetime) -> Expense:
        # An earlier attempt may have landed even though its response was lost
        categories = self._load_categories()
        sheet = self._client.get_expenses_sheet()
        for row in sheet.get_all_values()[1:]:
            if row and row[0] == expense.id:
                if row[1] != expense.user_id:
                    raise StoreError(f"Expense id already in use: {expense.id}")
                return self._row_to_expense(row, categories)

        category = categories.get(expense.category_id)
        if category is None:
            raise NotFoundError(f"Category not found: {expense.category_id}")

        stored = Expense(
            category=category,
            created_at=now,
            updated_at=now,
            **expense.model_dump(),
        )
        sheet.append_row(self._expense_to_row(stored), value_input_option="RAW")
        return stored

    def _update_expense_sync(
        self,
        user_id: str,
        expense_id: str,
        update: ExpenseUpdate,
    ) -> Expense:
        categories = self._load_categories()
        sheet = self._client.get_expenses_sheet()
        all_rows = sheet.get_all_values()

        # Start from 2 (row 1 is header)
        for idx, row in enumerate(all_rows[1:], start=2):
            if row and row[0] == expense_id and row[1] == user_id:
                current = self._row_to_expense(row, categories)
                changes = update.changes()
                if "category_id" in changes:
                    category = categories.get(changes["category_id"])
                    if category is None:
                        raise NotFoundError(f"Category not found: {changes['category_id']}")
                    changes["category"] = category
                changes["updated_at"] = utc_now()

                updated = Expense.model_validate({**current.model_dump(), **changes})
                sheet.update(
                    range_name=f"A{idx}",
                    values=[self._expense_to_row(updated)],
                    value_input_option="RAW",
                )
                return updated

        raise NotFoundError(f"Expense not found: {expense_id}")

    def _delete_expense_sync(self, expense_id: str, user_id: str) -> bool:
        sheet = self._client.get_expenses_sheet()
        all_rows = sheet.get_all_values()

        for idx, row in enumerate(all_rows[1:], start=2):
            if row and row[0] == expense_id and row[1] == user_id:
                sheet.delete_rows(idx)
                return True

        return False

    def _fetch_budgets_sync(self, user_id: str) -> list[Budget]:
        categories = self._load_categories()
        all_rows = self._client.get_budgets_sheet().get_all_values()[1:]

        budgets = [
            self._row_to_budget(row, categories)
            for row in all_rows
            if row and row[0] and row[1] == user_id
        ]
        budgets.sort(key=lambda b: b.category.display_order)
        return budgets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type(StoreError),
        reraise=True,
    )
    def _upsert_budget_sync(
        self,
        user_id: str,
        category_id: str,
        monthly_limit_base_cents: int,
        budget_id: str,
        now: datetime,
    ) -> Budget:
        categories = self._load_categories()
        category = categories.get(category_id)
        if category is None:
            raise NotFoundError(f"Category not found: {category_id}")

        sheet = self._client.get_budgets_sheet()
        all_rows = sheet.get_all_values()

        # A retried append finds its own row here and updates it instead
        for idx, row in enumerate(all_rows[1:], start=2):
            if row and row[1] == user_id and row[2] == category_id:
                existing = self._row_to_budget(row, categories)
                budget = existing.model_copy(update={
                    "monthly_limit_base_cents": monthly_limit_base_cents,
                    "updated_at": now,
                })
                sheet.update(
                    range_name=f"A{idx}",
                    values=[self._budget_to_row(budget)],
                    value_input_option="RAW",
                )
                return budget

        budget = Budget(
            id=budget_id,
            user_id=user_id,
            category_id=category_id,
            category=category,
            monthly_limit_base_cents=monthly_limit_base_cents,
            created_at=now,
            updated_at=now,
        )
        sheet.append_row(self._budget_to_row(budget), value_input_option="RAW")
        return budget

    def _delete_budget_sync(self, user_id: str, category_id: str) -> bool:
        sheet = self._client.get_budgets_sheet()
        all_rows = sheet.get_all_values()

        for idx, row in enumerate(all_rows[1:], start=2):
            if row and row[1] == user_id and row[2] == category_id:
                sheet.delete_rows(idx)
                return True

        return False

    def _fetch_categories_sync(self) -> list[Category]:
        return sorted(self._load_categories().values(), key=lambda c: c.display_order)

    # -- interface ----------------------------------------------------------

    async def _run(self, operation: str, func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"Failed to {operation}: {e}")

    async def fetch_expenses(
        self,
        user_id: str,
        query: ExpenseQuery,
        offset: int = 0,
        limit: int = 100,
    ) -> list[Expense]:
        return await self._run(
            "fetch expenses", self._fetch_expenses_sync, user_id, query, offset, limit
        )

    async def insert_expense(self, expense: NewExpense) -> Expense:
        return await self._run(
            "insert expense", self._insert_expense_sync, expense, utc_now()
        )

    async def update_expense(
        self,
        user_id: str,
        expense_id: str,
        update: ExpenseUpdate,
    ) -> Expense:
        return await self._run(
            "update expense", self._update_expense_sync, user_id, expense_id, update
        )

    async def delete_expense(self, expense_id: str, user_id: str) -> bool:
        return await self._run(
            "delete expense", self._delete_expense_sync, expense_id, user_id
        )

    async def fetch_budgets(self, user_id: str) -> list[Budget]:
        return await self._run("fetch budgets", self._fetch_budgets_sync, user_id)

    async def upsert_budget(
        self,
        user_id: str,
        category_id: str,
        monthly_limit_base_cents: int,
    ) -> Budget:
        return await self._run(
            "save budget",
            self._upsert_budget_sync,
            user_id,
            category_id,
            monthly_limit_base_cents,
            new_id(),
            utc_now(),
        )

    async def delete_budget(self, user_id: str, category_id: str) -> bool:
        return await self._run(
            "delete budget", self._delete_budget_sync, user_id, category_id
        )

    async def fetch_categories(self) -> list[Category]:
        return await self._run("fetch categories", self._fetch_categories_sync)
