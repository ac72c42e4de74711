"""
User interface components for the expense tracker.
"""

from .components import (
    setup_sidebar,
    display_auth_forms,
    display_date_filter,
    display_summary_metrics,
    display_monthly_chart,
    display_category_chart,
    display_expense_form,
    display_expense_list,
    display_receipt_scanner,
    format_currency
)

__all__ = [
    'setup_sidebar',
    'display_auth_forms',
    'display_date_filter',
    'display_summary_metrics',
    'display_monthly_chart',
    'display_category_chart',
    'display_expense_form',
    'display_expense_list',
    'display_receipt_scanner',
    'format_currency'
]
