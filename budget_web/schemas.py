"""
Pydantic schemas mirroring the backend API's JSON.

Response models accept extra fields and default most attributes so a
backend that adds or omits a field does not break a page. Request models
keep optional fields as None; gateways drop them from the outbound body.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict

AccountType = Literal["checking", "savings", "credit_card", "cash", "investment"]
EntryType = Literal["income", "expense"]
Frequency = Literal["once_off", "daily", "weekly", "fortnightly", "monthly", "annually"]
MatchConfidence = Literal["manual", "auto_high", "auto_low", "unmatched"]


class BackendModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    def to_json(self) -> dict:
        """Dump only what the backend actually sent."""
        return self.model_dump(mode="json", exclude_unset=True)


class RequestModel(BaseModel):
    def to_body(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)


# Accounts


class Account(BackendModel):
    id: str
    user_id: Optional[str] = None
    name: str = ""
    account_type: str = "checking"
    balance: float = 0.0
    currency: str = "USD"
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class CreateAccountRequest(RequestModel):
    name: str
    account_type: AccountType
    balance: float = 0.0
    currency: str = "USD"


class UpdateAccountRequest(RequestModel):
    name: Optional[str] = None
    account_type: Optional[AccountType] = None
    balance: Optional[float] = None
    currency: Optional[str] = None
    is_active: Optional[bool] = None


class TotalBalance(BackendModel):
    total_balance: float = 0.0
    currency: str = "USD"


# Budgets


class Budget(BackendModel):
    id: str
    user_id: Optional[str] = None
    name: str = ""
    description: Optional[str] = None
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class BudgetEntry(BackendModel):
    id: str
    budget_id: Optional[str] = None
    category_id: Optional[str] = None
    name: str = ""
    description: Optional[str] = None
    amount: float = 0.0
    entry_type: str = "expense"
    frequency: str = "monthly"
    day_of_month: Optional[int] = None
    day_of_week: Optional[int] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    matching_rules: Optional[dict[str, Any]] = None
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class BudgetWithEntries(Budget):
    entries: Optional[list[BudgetEntry]] = None


class BudgetSummary(BackendModel):
    budget_id: Optional[str] = None
    total_monthly_income: float = 0.0
    total_monthly_expenses: float = 0.0
    monthly_surplus_deficit: float = 0.0
    total_annual_income: float = 0.0
    total_annual_expenses: float = 0.0
    annual_surplus_deficit: float = 0.0
    income_entries_count: int = 0
    expense_entries_count: int = 0


class BudgetHealthStatus(BackendModel):
    score: float = 0.0
    status: str = "fair"
    message: str = ""
    color: str = ""


class BudgetSummaryResponse(BackendModel):
    summary: Optional[BudgetSummary] = None
    health: Optional[BudgetHealthStatus] = None


class DailyProjection(BackendModel):
    date: str
    balance: float = 0.0
    daily_income: float = 0.0
    daily_expenses: float = 0.0
    daily_net: float = 0.0


class MonthlyBreakdown(BackendModel):
    month: str
    income: float = 0.0
    expenses: float = 0.0
    net: float = 0.0
    ending_balance: float = 0.0


class CashFlowProjection(BackendModel):
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    starting_balance: float = 0.0
    ending_balance: float = 0.0
    total_income: float = 0.0
    total_expenses: float = 0.0
    net_cash_flow: float = 0.0
    daily_projections: list[DailyProjection] = []
    monthly_breakdown: list[MonthlyBreakdown] = []


class CreateBudgetRequest(RequestModel):
    name: str
    description: Optional[str] = None


class UpdateBudgetRequest(RequestModel):
    name: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None


class CreateBudgetEntryRequest(RequestModel):
    category_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    amount: float
    entry_type: EntryType
    frequency: Frequency
    day_of_month: Optional[int] = None
    day_of_week: Optional[int] = None
    start_date: str
    end_date: Optional[str] = None
    matching_rules: Optional[dict[str, Any]] = None


class UpdateBudgetEntryRequest(RequestModel):
    category_id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    amount: Optional[float] = None
    entry_type: Optional[EntryType] = None
    frequency: Optional[Frequency] = None
    day_of_month: Optional[int] = None
    day_of_week: Optional[int] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    matching_rules: Optional[dict[str, Any]] = None
    is_active: Optional[bool] = None


# Categories


class Category(BackendModel):
    id: str
    user_id: Optional[str] = None
    name: str = ""
    category_type: str = "expense"
    color: Optional[str] = None
    icon: Optional[str] = None
    parent_category_id: Optional[str] = None
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class CreateCategoryRequest(RequestModel):
    name: str
    category_type: EntryType
    color: Optional[str] = None
    icon: Optional[str] = None
    parent_category_id: Optional[str] = None


class UpdateCategoryRequest(RequestModel):
    name: Optional[str] = None
    category_type: Optional[EntryType] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    parent_category_id: Optional[str] = None
    is_active: Optional[bool] = None


# Transactions


class Transaction(BackendModel):
    id: str
    user_id: Optional[str] = None
    account_id: Optional[str] = None
    category_id: Optional[str] = None
    budget_entry_id: Optional[str] = None
    amount: float = 0.0
    transaction_type: str = "expense"
    description: Optional[str] = None
    transaction_date: Optional[str] = None
    notes: Optional[str] = None
    match_confidence: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class CreateTransactionRequest(RequestModel):
    account_id: str
    category_id: Optional[str] = None
    amount: float
    transaction_type: EntryType
    description: Optional[str] = None
    transaction_date: str
    notes: Optional[str] = None


class UpdateTransactionRequest(RequestModel):
    account_id: Optional[str] = None
    category_id: Optional[str] = None
    budget_entry_id: Optional[str] = None
    amount: Optional[float] = None
    transaction_type: Optional[EntryType] = None
    description: Optional[str] = None
    transaction_date: Optional[str] = None
    notes: Optional[str] = None
    match_confidence: Optional[MatchConfidence] = None


class TransactionFilters(RequestModel):
    account_id: Optional[str] = None
    category_id: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


# Dashboard


class UpcomingBill(BackendModel):
    id: str
    name: str = ""
    amount: float = 0.0
    due_date: Optional[str] = None
    category_id: Optional[str] = None
    is_overdue: bool = False


class CategorySpending(BackendModel):
    category_id: Optional[str] = None
    category_name: str = ""
    total_amount: float = 0.0
    percentage: float = 0.0
    color: Optional[str] = None


class DashboardSummary(BackendModel):
    total_balance: float = 0.0
    account_count: int = 0
    month_to_date_income: float = 0.0
    month_to_date_expenses: float = 0.0
    month_to_date_net: float = 0.0
    budgeted_monthly_income: float = 0.0
    budgeted_monthly_expense: float = 0.0
    budget_health_score: float = 0.0
    budget_health_status: str = ""
    budget_health_message: str = ""
    budget_health_color: str = ""
    upcoming_bills: Optional[list[UpcomingBill]] = None
    recent_transactions: Optional[list[Transaction]] = None
    spending_by_category: Optional[list[CategorySpending]] = None


class SpendingByCategoryResponse(BackendModel):
    spending_by_category: Optional[list[CategorySpending]] = None
    total_expenses: float = 0.0
    start_date: Optional[str] = None
    end_date: Optional[str] = None


# Reports


class SpendingTrend(BackendModel):
    month: str
    category_id: Optional[str] = None
    category: str = ""
    amount: float = 0.0


class BudgetVariance(BackendModel):
    entry_id: str
    entry_name: str = ""
    category: str = ""
    budgeted: float = 0.0
    actual: float = 0.0
    variance: float = 0.0
    variance_pct: float = 0.0


class DailyCashFlowProjection(BackendModel):
    date: str
    projected_income: float = 0.0
    projected_expenses: float = 0.0
    projected_balance: float = 0.0


class TopExpense(BackendModel):
    category_id: Optional[str] = None
    category_name: str = ""
    total_amount: float = 0.0
    percentage: float = 0.0
    count: int = 0


# Matching


class MatchSuggestion(BackendModel):
    budget_entry: BudgetEntry
    confidence_score: float = 0.0
    confidence_level: str = "auto_low"
    match_reasons: list[str] = []


class MatchSuggestionsResponse(BackendModel):
    transaction: Transaction
    suggestions: Optional[list[MatchSuggestion]] = None


class AutoMatchResponse(BackendModel):
    transaction: Transaction
    matched: bool = False


class BulkAutoMatchResponse(BackendModel):
    matched_count: int = 0
    message: str = ""


class TeachMatchRequest(RequestModel):
    budget_entry_id: str
    create_rules: bool = False
    amount_tolerance: Optional[float] = None


class TeachMatchResponse(BackendModel):
    transaction: Transaction
    rules_created: bool = False


class MatchingRules(RequestModel):
    description_contains: Optional[list[str]] = None
    merchant_name: Optional[str] = None
    amount_tolerance: Optional[float] = None


# Identity and auth


class UserRoles(BackendModel):
    user_id: str
    email: Optional[str] = None
    roles: Optional[list[Any]] = None
    is_admin: bool = False
    is_moderator: bool = False


class SyncUserRequest(RequestModel):
    email: str
    name: str
    avatar_url: str = ""
    provider: str = "email"
    provider_user_id: str


class AuthUser(BackendModel):
    id: str
    email: Optional[str] = None
    user_metadata: dict[str, Any] = {}
    app_metadata: dict[str, Any] = {}

    @property
    def display_name(self) -> str:
        meta = self.user_metadata or {}
        return meta.get("full_name") or meta.get("name") or self.email or ""

    @property
    def avatar_url(self) -> str:
        meta = self.user_metadata or {}
        return meta.get("avatar_url") or meta.get("picture") or ""

    @property
    def provider(self) -> str:
        return (self.app_metadata or {}).get("provider") or "email"


class AuthSession(BackendModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: Optional[str] = None
    expires_in: Optional[int] = None
    expires_at: Optional[int] = None
    user: Optional[AuthUser] = None
