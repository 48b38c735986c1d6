"""
Two-Stage Expense Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Amount is a positive integer of base-cents
- Required fields are present
- Description length

STAGE 2 - SEMANTIC VALIDATION:
- Expense date is not in the future
- Category exists (needs the store)

Both stages run before anything reaches the store. Validation NEVER
silently fixes input: every problem is reported as a ValidationIssue and
the whole set is raised together.
"""

from datetime import date
from typing import Optional

from expense_ledger.config import LedgerSettings, get_settings
from expense_ledger.models.ledger import (
    ExpenseUpdate,
    NewExpense,
    ValidationIssue,
)
from expense_ledger.services.storage import LedgerStoreInterface


class ValidationError(Exception):
    """Input rejected before reaching the store."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        message = "; ".join(issue.message for issue in issues) or "Invalid input"
        super().__init__(message)

    @classmethod
    def single(cls, field: str, issue_type: str, message: str) -> "ValidationError":
        return cls([ValidationIssue(field=field, issue_type=issue_type, message=message)])

    def to_dicts(self) -> list[dict]:
        return [issue.model_dump() for issue in self.issues]


def is_plain_int(value) -> bool:
    """True for plain ints; bools and floats are not amounts."""
    return isinstance(value, int) and not isinstance(value, bool)


class ExpenseValidator:
    """
    Validates expense writes and list parameters.

    Stage 1: Schema validation (can run without storage)
    Stage 2: Semantic validation (category check needs storage)
    """

    def __init__(
        self,
        store: Optional[LedgerStoreInterface] = None,
        settings: Optional[LedgerSettings] = None,
    ):
        """
        Initialize validator.

        Args:
            store: Store used to confirm the category exists.
                   If None, the category check is skipped.
            settings: Ledger settings (defaults to the cached settings)
        """
        self._store = store
        self._settings = settings or get_settings().ledger

    def _validate_schema(
        self,
        category_id: Optional[str],
        amount_base_cents,
        description: Optional[str],
        require_all: bool = True,
    ) -> list[ValidationIssue]:
        """Stage 1: field presence, types and lengths."""
        issues = []

        if amount_base_cents is None:
            if require_all:
                issues.append(ValidationIssue(
                    field="amount_base_cents",
                    issue_type="missing",
                    message="Amount is required",
                ))
        elif not is_plain_int(amount_base_cents):
            issues.append(ValidationIssue(
                field="amount_base_cents",
                issue_type="invalid_type",
                message="Amount must be a whole number of base-cents",
            ))
        elif amount_base_cents <= 0:
            issues.append(ValidationIssue(
                field="amount_base_cents",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
            ))

        if category_id is not None and not category_id.strip():
            issues.append(ValidationIssue(
                field="category_id",
                issue_type="missing",
                message="Category is required",
            ))
        elif category_id is None and require_all:
            issues.append(ValidationIssue(
                field="category_id",
                issue_type="missing",
                message="Category is required",
            ))

        max_length = self._settings.max_description_length
        if description and len(description.strip()) > max_length:
            issues.append(ValidationIssue(
                field="description",
                issue_type="too_long",
                message=f"Description must be at most {max_length} characters",
            ))

        return issues

    def _validate_date(
        self,
        expense_date: Optional[date],
        today: date,
        require_all: bool = True,
    ) -> list[ValidationIssue]:
        """Stage 2 (pure part): the expense date."""
        if expense_date is None:
            if require_all:
                return [ValidationIssue(
                    field="expense_date",
                    issue_type="missing",
                    message="Expense date is required",
                )]
            return []

        if expense_date > today:
            return [ValidationIssue(
                field="expense_date",
                issue_type="future_date",
                message=f"Expense date ({expense_date}) is in the future",
            )]
        return []

    async def _validate_category(self, category_id: str) -> list[ValidationIssue]:
        """Stage 2 (store part): the category must exist."""
        if self._store is None:
            return []

        categories = await self._store.fetch_categories()
        if any(c.id == category_id for c in categories):
            return []
        return [ValidationIssue(
            field="category_id",
            issue_type="unknown",
            message=f"Unknown category: {category_id}",
        )]

    async def validate_new_expense(
        self,
        user_id: str,
        category_id: Optional[str],
        amount_base_cents,
        expense_date: Optional[date],
        description: Optional[str] = None,
        today: Optional[date] = None,
        expense_id: Optional[str] = None,
    ) -> NewExpense:
        """
        Run both stages and build the insert payload.

        Raises:
            ValidationError: With every issue found
            StoreError: If the category lookup fails
        """
        today = today or date.today()
        issues = self._validate_schema(category_id, amount_base_cents, description)
        if not user_id:
            issues.append(ValidationIssue(
                field="user_id",
                issue_type="missing",
                message="User is required",
            ))
        issues.extend(self._validate_date(expense_date, today))

        # Only hit the store if stage 1 passed
        if not issues:
            issues.extend(await self._validate_category(category_id))

        if issues:
            raise ValidationError(issues)

        fields = {"id": expense_id} if expense_id else {}
        return NewExpense(
            user_id=user_id,
            category_id=category_id,
            amount_base_cents=amount_base_cents,
            description=description,
            expense_date=expense_date,
            **fields,
        )

    async def validate_update(
        self,
        category_id: Optional[str] = None,
        amount_base_cents=None,
        expense_date: Optional[date] = None,
        description: Optional[str] = None,
        today: Optional[date] = None,
        fields_set: Optional[set[str]] = None,
    ) -> ExpenseUpdate:
        """
        Validate a partial update; only provided fields are checked.

        fields_set lists the fields the caller wants to change, so that an
        explicit description=None (clear it) differs from "not provided".
        """
        today = today or date.today()
        issues = self._validate_schema(
            category_id, amount_base_cents, description, require_all=False
        )
        issues.extend(self._validate_date(expense_date, today, require_all=False))

        if not issues and category_id is not None:
            issues.extend(await self._validate_category(category_id))

        if issues:
            raise ValidationError(issues)

        values = {
            "category_id": category_id,
            "amount_base_cents": amount_base_cents,
            "expense_date": expense_date,
            "description": description,
        }
        if fields_set is None:
            fields_set = {name for name, value in values.items() if value is not None}
        return ExpenseUpdate(**{name: values[name] for name in fields_set})

    def validate_budget_limit(self, limit_base_cents) -> int:
        """A budget limit is a non-negative int; 0 means "remove"."""
        if not is_plain_int(limit_base_cents):
            raise ValidationError.single(
                "monthly_limit_base_cents",
                "invalid_type",
                "Budget amount must be a whole number of base-cents",
            )
        if limit_base_cents < 0:
            raise ValidationError.single(
                "monthly_limit_base_cents",
                "invalid_value",
                "Budget amount must be positive",
            )
        return limit_base_cents

    def validate_page(self, page: int, page_size: int) -> None:
        issues = []
        if not is_plain_int(page) or page < 0:
            issues.append(ValidationIssue(
                field="page",
                issue_type="invalid_value",
                message="Page must be a non-negative integer",
            ))
        if not is_plain_int(page_size) or not 1 <= page_size <= 100:
            issues.append(ValidationIssue(
                field="page_size",
                issue_type="invalid_value",
                message="Page size must be between 1 and 100",
            ))
        if issues:
            raise ValidationError(issues)
