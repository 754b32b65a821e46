"""
Aggregation Engine

DESIGN DECISION: All figures shown to the user are computed here, on the
fly, from the raw month buckets. Nothing derived is ever stored.

Two different filter semantics exist and must not be confused:

TOTALS FILTER (period expense/income/balance):
- None or a built-in type name ("income"/"expense") -> every transaction
- a custom tag name -> only transactions with that tag

ROW FILTER (which table rows are shown):
- None -> every row
- a built-in type name -> untagged rows of that type
- anything else -> rows whose tag equals it
"""

from datetime import date
from typing import Iterable, Optional

from money_tracker.config import AppSettings, get_settings
from money_tracker.ledger.transactions import (
    iter_transactions,
    month_key,
    sort_for_display,
)
from money_tracker.models.records import (
    Amount,
    Tag,
    Transaction,
    TransactionsByMonth,
    TransactionType,
)
from money_tracker.models.results import (
    AggregateQuery,
    DisplayRow,
    DisplayWindow,
    Totals,
)


BUILTIN_FILTERS = frozenset(t.value for t in TransactionType)

_WINDOW_CYCLE = {
    DisplayWindow.THIS_MONTH: DisplayWindow.SELECTED_MONTH,
    DisplayWindow.SELECTED_MONTH: DisplayWindow.SELECTED_YEAR,
    DisplayWindow.SELECTED_YEAR: DisplayWindow.THIS_MONTH,
}

_WINDOW_LABELS = {
    DisplayWindow.THIS_MONTH: "This month",
    DisplayWindow.SELECTED_MONTH: "Selected month",
    DisplayWindow.SELECTED_YEAR: "Selected year",
}


def is_custom_filter(filter_value: Optional[str]) -> bool:
    return filter_value is not None and filter_value not in BUILTIN_FILTERS


def compute_totals(
    transactions: Iterable[Transaction],
    filter_value: Optional[str] = None,
) -> Totals:
    """Sum expense and income; balance is income minus expense."""
    expense: Amount = 0
    income: Amount = 0
    for transaction in transactions:
        if is_custom_filter(filter_value) and transaction.tag != filter_value:
            continue
        if transaction.type == TransactionType.EXPENSE:
            expense += transaction.amount
        else:
            income += transaction.amount
    return Totals(expense=expense, income=income, balance=income - expense)


def current_balance(initial_balance: Amount, by_month: TransactionsByMonth) -> Amount:
    """Initial balance plus every income and minus every expense ever recorded."""
    total = initial_balance
    for transaction in iter_transactions(by_month):
        if transaction.type == TransactionType.INCOME:
            total += transaction.amount
        else:
            total -= transaction.amount
    return total


def matches_filter(transaction: Transaction, filter_value: Optional[str]) -> bool:
    """Row filter match, used for the transaction table."""
    if filter_value is None:
        return True
    if filter_value in BUILTIN_FILTERS:
        return transaction.tag is None and transaction.type.value == filter_value
    return transaction.tag == filter_value


def filter_value_for(transaction: Transaction) -> str:
    """The filter value selected by clicking this row's tag."""
    return transaction.tag or transaction.type.value


def toggle_filter(current: Optional[str], clicked: str) -> Optional[str]:
    """Clicking the active filter clears it; clicking anything else selects it."""
    return None if current == clicked else clicked


def cycle_window(window: DisplayWindow) -> DisplayWindow:
    return _WINDOW_CYCLE[window]


def period_label(window: DisplayWindow, filter_value: Optional[str] = None) -> str:
    """Heading for the totals, naming the custom tag when one is filtered."""
    label = _WINDOW_LABELS[window]
    if is_custom_filter(filter_value):
        return f"{label} ({filter_value})"
    return label


class AggregationEngine:
    """
    Computes totals, balances and display rows from month buckets.

    GUARANTEES:
    - balance == income - expense for every result
    - Only stored transactions are counted; nothing is estimated
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def type_label(self, transaction_type: TransactionType) -> str:
        if transaction_type == TransactionType.INCOME:
            return self._settings.income_label
        return self._settings.expense_label

    def window_transactions(
        self,
        by_month: TransactionsByMonth,
        query: AggregateQuery,
        today: Optional[date] = None,
    ) -> list[Transaction]:
        """Gather the transactions inside the query's window."""
        if query.window == DisplayWindow.THIS_MONTH:
            today = today or date.today()
            return list(by_month.get(month_key(today.year, today.month), []))

        if query.window == DisplayWindow.SELECTED_MONTH:
            return list(by_month.get(month_key(query.year, query.month), []))

        prefix = f"{query.year}-"
        return [
            transaction
            for key, bucket in by_month.items()
            if key.startswith(prefix)
            for transaction in bucket
        ]

    def execute(
        self,
        by_month: TransactionsByMonth,
        query: AggregateQuery,
        today: Optional[date] = None,
    ) -> Totals:
        """Run a totals query."""
        transactions = self.window_transactions(by_month, query, today)
        return compute_totals(transactions, query.filter)

    def display_rows(
        self,
        transactions: Iterable[Transaction],
        filter_value: Optional[str],
        tags: Iterable[Tag],
    ) -> list[DisplayRow]:
        """
        Rows for one month's table: filtered, sorted by day then id.

        A tag name with no matching Tag (deleted tag) is shown with the
        built-in type label and no color.
        """
        tags_by_name = {tag.name: tag for tag in tags}
        rows = []
        last_date = None

        for transaction in sort_for_display(
            t for t in transactions if matches_filter(t, filter_value)
        ):
            tag = tags_by_name.get(transaction.tag) if transaction.tag else None
            rows.append(DisplayRow(
                transaction=transaction,
                show_date=transaction.date != last_date,
                tag_label=tag.name if tag else self.type_label(transaction.type),
                tag_color=tag.color if tag else None,
                is_filtered=filter_value == filter_value_for(transaction),
            ))
            last_date = transaction.date

        return rows
