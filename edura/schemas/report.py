"""Financial report schemas."""

from pydantic import BaseModel


class PaymentMethodShare(BaseModel):
    method: str  # "unknown" when not recorded
    count: int
    amount: int


class CollectionMetricsResponse(BaseModel):
    """Collected versus billed tuition."""

    total_billed: int
    total_collected: int
    collection_rate: int  # Percent, rounded
    payment_method_distribution: list[PaymentMethodShare]


class MonthlyTrend(BaseModel):
    month: str
    revenue: int
    outstanding: int


class FinancialSummaryResponse(BaseModel):
    """Dashboard totals for a center."""

    total_revenue: int
    outstanding_amount: int  # Pending and overdue bills
    outstanding_count: int
    month_revenue: int  # Paid bills of the current billing month
    pending_tutor_payments: int
    pending_tutor_count: int
    monthly_trend: list[MonthlyTrend]
