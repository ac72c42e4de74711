"""
UI components for the expense tracker.
Provides reusable interface elements for authentication, the expense form,
the dashboard filter, charts and the expense list.
"""

import streamlit as st
import plotly.express as px
import pandas as pd
import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional, List

from pydantic import ValidationError

from core.algorithms import AnalyticsEngine
from core.auth import AuthService, AuthError
from core.database import DatabaseManager
from core.models import (
    DEFAULT_CATEGORIES, DEFAULT_CATEGORY, TRAVEL_CATEGORY, TRAVEL_ICONS, DEFAULT_TRAVEL_ICON,
    DateFilterSelection, Expense, ExpenseCreate, ExpenseSummary, ExpenseUpdate, FilterType, ReceiptGuess,
    User, UserCreate, parse_amount
)
from core.ocr import OcrError, ReceiptScanner, validate_receipt_image

logger = logging.getLogger(__name__)

CATEGORY_ICONS = {
    "food": "🍔",
    "utility": "⚡",
    "shopping": "🛍️",
    "travel": "🚗",
    "gifts": "🎁",
    "home": "🏠",
}

TRAVEL_ICON_LABELS = {
    "car": "🚗 Car",
    "bike": "🚲 Bike",
    "train": "🚆 Train",
    "plane": "✈️ Plane",
}

CATEGORY_COLORS = {
    "food": "#16a34a",
    "utility": "#34d399",
    "shopping": "#86efac",
    "travel": "#0f766e",
    "gifts": "#22c55e",
    "home": "#065f46",
}

FALLBACK_COLORS = ['#bbf7d0', '#064e3b', '#4ade80', '#14532d', '#a7f3d0']

MONTH_LABELS = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']


def format_currency(amount: Decimal, currency: str = "PKR") -> str:
    """Format currency amount for display.

    Args:
        amount: Amount to format
        currency: Currency code

    Returns:
        Formatted currency string, e.g. "Rs 1,234.50"
    """
    currency_symbols = {
        "PKR": "Rs ",
        "INR": "₹",
        "USD": "$",
        "EUR": "€",
        "GBP": "£",
    }

    symbol = currency_symbols.get(currency, f"{currency} ")
    return f"{symbol}{Decimal(amount):,.2f}"


def amount_label(currency: str = "PKR") -> str:
    """Label of the amount input."""
    return f"Amount ({currency})"


def expense_icon(expense: Expense) -> str:
    """Emoji shown next to an expense."""
    if expense.category == TRAVEL_CATEGORY and expense.icon:
        return TRAVEL_ICON_LABELS.get(expense.icon, "🚗").split()[0]
    return CATEGORY_ICONS.get(expense.category, "🏷️")


def setup_sidebar(user: User, db_manager: DatabaseManager):
    """Setup the main sidebar with account controls and information."""
    with st.sidebar:
        st.header("💸 Expense Tracker")

        st.markdown(f"""
        **Signed in as:** {user.display_name}
        {user.email}
        """)

        try:
            total_expenses = db_manager.get_expense_count(user.id)
            st.metric("Recorded Expenses", total_expenses)
        except Exception as e:
            logger.error(f"Error loading sidebar stats: {e}")
            st.error("Error loading statistics")

        if st.button("🚪 Sign Out", use_container_width=True):
            logger.info(f"User {user.id} signed out")
            for key in list(st.session_state.keys()):
                if key not in ("config", "db_manager", "auth_service"):
                    del st.session_state[key]
            st.rerun()

        st.markdown("---")

        st.markdown("""
        ### 📍 Navigation
        - **Home**: Dashboard & expense list
        - **Scan Receipt**: Fill an expense from a photo
        """)

        with st.expander("❓ Help & Tips"):
            st.markdown("""
            **Scanning receipts:**
            - Flat, well-lit photos work best
            - Keep the total line in frame
            - Always check the pre-filled amount before saving
            """)


def display_auth_forms(auth_service: AuthService) -> Optional[User]:
    """Display sign-in and sign-up tabs.

    Args:
        auth_service: Authentication service

    Returns:
        The user who just signed in, None otherwise
    """
    tab_sign_in, tab_sign_up = st.tabs(["Sign In", "Sign Up"])

    with tab_sign_in:
        with st.form("sign_in_form"):
            email = st.text_input("Email", key="sign_in_email")
            password = st.text_input("Password", type="password", key="sign_in_password")
            submitted = st.form_submit_button("Sign In", type="primary")

        if submitted:
            try:
                user = auth_service.sign_in(email, password)
                st.success("Signed in successfully")
                return user
            except AuthError as e:
                st.error(str(e))

    with tab_sign_up:
        with st.form("sign_up_form"):
            name = st.text_input("Full Name")
            email = st.text_input("Email", key="sign_up_email")
            mobile = st.text_input("Mobile Number")
            password = st.text_input("Password", type="password", key="sign_up_password")
            confirm = st.text_input("Confirm Password", type="password")
            submitted = st.form_submit_button("Create Account", type="primary")

        if submitted:
            if password != confirm:
                st.error("Passwords do not match")
                return None
            try:
                user = auth_service.sign_up(UserCreate(
                    name=name,
                    email=email,
                    password=password,
                    mobile=mobile or None
                ))
                st.success("Account created successfully!")
                return user
            except ValidationError as e:
                st.error(f"Invalid sign-up details: {e.errors()[0]['msg']}")
            except AuthError as e:
                st.error(str(e))

    return None


def display_date_filter() -> DateFilterSelection:
    """Display the day/week/month/custom filter and return the selection."""
    labels = {
        FilterType.DAY: "Day",
        FilterType.WEEK: "Week",
        FilterType.MONTH: "Month",
        FilterType.CUSTOM: "Custom",
    }

    filter_type = st.radio(
        "Show expenses for",
        options=list(labels.keys()),
        format_func=lambda f: labels[f],
        index=2,
        horizontal=True,
        key="filter_type"
    )

    start_date = end_date = None
    if filter_type == FilterType.CUSTOM:
        col1, col2 = st.columns(2)
        with col1:
            start_date = st.date_input("Start Date", value=None, key="filter_start")
        with col2:
            end_date = st.date_input("End Date", value=None, key="filter_end")

        if start_date is None or end_date is None:
            st.caption("Pick both dates to narrow the list; showing all expenses.")

    return DateFilterSelection(filter_type=filter_type, start_date=start_date, end_date=end_date)


def display_summary_metrics(summary: ExpenseSummary, expense_count: int, currency: str = "PKR"):
    """Display total spending and number of expenses."""
    col1, col2 = st.columns(2)
    with col1:
        st.metric("Total Expense", format_currency(summary.total, currency))
    with col2:
        st.metric("Number of Expenses", expense_count)


def display_monthly_chart(summary: ExpenseSummary, year: int):
    """Line chart of monthly totals for the current year."""
    st.subheader("📈 Spending Trend")
    st.caption(f"Monthly expenses for {year}")

    df = pd.DataFrame({
        "Month": MONTH_LABELS,
        "Amount": [float(amount) for amount in summary.sum_by_month_of_current_year],
    })

    fig = px.line(df, x="Month", y="Amount", markers=True)
    fig.update_traces(line_color="#16a34a")
    fig.update_layout(height=320, margin=dict(l=10, r=10, t=10, b=10))
    st.plotly_chart(fig, use_container_width=True)


def display_category_chart(summary: ExpenseSummary, analytics_engine: AnalyticsEngine):
    """Pie chart of spending by category."""
    st.subheader("🥧 By Category")
    st.caption("Expenses by category")

    breakdown = analytics_engine.category_breakdown(summary)
    if not breakdown:
        st.info("No data to display")
        return

    df = pd.DataFrame(breakdown, columns=["Category", "Amount"])
    df["Amount"] = df["Amount"].astype(float)
    df["Category"] = df["Category"].str.capitalize()

    color_map = {}
    fallback_index = 0
    for category, _ in breakdown:
        if category in CATEGORY_COLORS:
            color_map[category.capitalize()] = CATEGORY_COLORS[category]
        else:
            color_map[category.capitalize()] = FALLBACK_COLORS[fallback_index % len(FALLBACK_COLORS)]
            fallback_index += 1

    fig = px.pie(df, names="Category", values="Amount", color="Category", color_discrete_map=color_map)
    fig.update_layout(height=320, margin=dict(l=10, r=10, t=10, b=10))
    st.plotly_chart(fig, use_container_width=True)


def display_expense_form(form_key: str, submit_label: str,
                         initial: Optional[Expense] = None,
                         guess: Optional[ReceiptGuess] = None,
                         currency: str = "PKR") -> Optional[ExpenseCreate]:
    """Display the add/edit expense form.

    Args:
        form_key: Unique Streamlit form key
        submit_label: Text of the submit button
        initial: Expense being edited
        guess: Receipt guess used to pre-fill a new expense
        currency: Currency code shown next to the amount

    Returns:
        Validated ExpenseCreate when submitted successfully, None otherwise
    """
    name = ""
    amount = ""
    category = DEFAULT_CATEGORY
    icon = DEFAULT_TRAVEL_ICON

    if initial is not None:
        name = initial.name
        amount = str(initial.amount)
        category = initial.category
        icon = initial.icon or DEFAULT_TRAVEL_ICON
    elif guess is not None:
        name = guess.merchant_name or ""
        amount = str(guess.amount) if guess.amount is not None else ""

    is_custom = category not in DEFAULT_CATEGORIES

    with st.form(form_key, clear_on_submit=initial is None):
        new_name = st.text_input("Expense Name", value=name, placeholder="Enter expense name")

        new_category = st.selectbox(
            "Expense Type",
            options=list(DEFAULT_CATEGORIES),
            index=DEFAULT_CATEGORIES.index(category) if not is_custom else 0,
            format_func=lambda c: f"{CATEGORY_ICONS[c]} {c.capitalize()}"
        )

        custom_category = st.text_input(
            "Or add custom category",
            value=category if is_custom else "",
            placeholder="e.g. subscriptions"
        )

        new_icon = st.radio(
            "Travel icon",
            options=list(TRAVEL_ICONS),
            index=TRAVEL_ICONS.index(icon),
            format_func=lambda i: TRAVEL_ICON_LABELS[i],
            horizontal=True,
            help="Only used for travel expenses"
        )

        new_amount = st.text_input(amount_label(currency), value=amount, placeholder="0.00")

        submitted = st.form_submit_button(submit_label, type="primary")

    if not submitted:
        return None

    if not new_name.strip() or not new_amount.strip():
        st.error("Expense name and amount are required")
        return None

    try:
        return ExpenseCreate(
            name=new_name,
            category=custom_category.strip() or new_category,
            icon=new_icon,
            amount=parse_amount(new_amount),
            occurred_on=initial.occurred_on if initial is not None else datetime.now()
        )
    except ValueError as e:
        # pydantic's ValidationError is a ValueError too
        logger.warning(f"Rejected expense form input: {e}")
        st.error(f"❌ Invalid expense: {e}")
        return None


def display_expense_list(expenses: List[Expense], db_manager: DatabaseManager, user: User,
                         currency: str = "PKR"):
    """Display the expense list with per-row and bulk actions.

    Args:
        expenses: Expenses to list (already filtered)
        db_manager: Database manager instance
        user: Signed-in user
        currency: Display currency
    """
    st.subheader("🧾 Recent Expenses")

    if not expenses:
        st.info("No expenses found for the selected period")
        return

    ids = [expense.id for expense in expenses]
    selected_ids = [i for i in ids if st.session_state.get(f"select_{i}")]

    col1, col2, col3 = st.columns([1, 1, 2])
    with col1:
        st.button("☑️ Select all", on_click=_set_selection, args=(ids, True))
    with col2:
        st.button("✖️ Clear", on_click=_set_selection, args=(ids, False))
    with col3:
        if selected_ids and st.button(f"🗑️ Delete Selected ({len(selected_ids)})"):
            st.session_state.confirm_bulk_delete = True

    if st.session_state.get("confirm_bulk_delete") and selected_ids:
        _confirm_bulk_delete(selected_ids, db_manager, user)

    for expense in expenses:
        _display_expense_row(expense, db_manager, user, currency)


def _set_selection(ids: List[str], value: bool):
    for expense_id in ids:
        st.session_state[f"select_{expense_id}"] = value


def _confirm_bulk_delete(selected_ids: List[str], db_manager: DatabaseManager, user: User):
    st.warning(
        f"⚠️ Delete {len(selected_ids)} selected expense(s)? This action cannot be undone."
    )
    col1, col2 = st.columns(2)
    with col1:
        if st.button("Yes, delete them", type="primary", key="bulk_delete_yes"):
            try:
                deleted = db_manager.delete_expenses(user.id, selected_ids)
                _set_selection(selected_ids, False)
                st.session_state.confirm_bulk_delete = False
                st.success(f"{deleted} expense(s) deleted successfully")
                st.rerun()
            except Exception as e:
                logger.error(f"Bulk delete failed: {str(e)}")
                st.error("Failed to delete some expenses")
    with col2:
        if st.button("Cancel", key="bulk_delete_no"):
            st.session_state.confirm_bulk_delete = False
            st.rerun()


def _display_expense_row(expense: Expense, db_manager: DatabaseManager, user: User, currency: str):
    col_select, col_name, col_date, col_amount, col_actions = st.columns([0.5, 3, 2, 2, 3])

    with col_select:
        st.checkbox("Select", key=f"select_{expense.id}", label_visibility="collapsed")
    with col_name:
        st.markdown(f"{expense_icon(expense)} **{expense.name}**  \n{expense.category.capitalize()}")
    with col_date:
        st.write(expense.occurred_on.strftime("%d %b %Y"))
    with col_amount:
        st.write(format_currency(expense.amount, currency))
    with col_actions:
        edit_col, dup_col, del_col = st.columns(3)
        with edit_col:
            if st.button("✏️", key=f"edit_{expense.id}", help="Edit"):
                st.session_state.editing_expense_id = expense.id
        with dup_col:
            if st.button("📄", key=f"dup_{expense.id}", help="Duplicate"):
                try:
                    db_manager.duplicate_expense(user.id, expense.id)
                    st.success("Expense duplicated")
                    st.rerun()
                except Exception as e:
                    logger.error(f"Duplicate failed: {str(e)}")
                    st.error("Failed to duplicate expense")
        with del_col:
            if st.button("🗑️", key=f"del_{expense.id}", help="Delete"):
                st.session_state.confirm_delete_id = expense.id

    if st.session_state.get("confirm_delete_id") == expense.id:
        st.warning("⚠️ This will permanently delete this expense.")
        yes_col, no_col = st.columns(2)
        with yes_col:
            if st.button("Delete", type="primary", key=f"del_yes_{expense.id}"):
                try:
                    db_manager.delete_expense(user.id, expense.id)
                    st.session_state.confirm_delete_id = None
                    st.success("Expense deleted successfully")
                    st.rerun()
                except Exception as e:
                    logger.error(f"Delete failed: {str(e)}")
                    st.error("Failed to delete expense")
        with no_col:
            if st.button("Cancel", key=f"del_no_{expense.id}"):
                st.session_state.confirm_delete_id = None
                st.rerun()

    if st.session_state.get("editing_expense_id") == expense.id:
        display_edit_form(expense, db_manager, user, currency)


def display_edit_form(expense: Expense, db_manager: DatabaseManager, user: User, currency: str = "PKR"):
    """Display the edit form for one expense.

    Args:
        expense: Expense to edit
        db_manager: Database manager instance
        user: Signed-in user
        currency: Display currency
    """
    with st.container(border=True):
        st.markdown("**✏️ Edit Expense**")
        updated = display_expense_form(f"edit_{expense.id}_form", "Update Expense",
                                       initial=expense, currency=currency)

        if st.button("Cancel editing", key=f"edit_cancel_{expense.id}"):
            st.session_state.editing_expense_id = None
            st.rerun()

    if updated is None:
        return

    try:
        success = db_manager.update_expense(user.id, expense.id, ExpenseUpdate(**updated.model_dump()))
        if success:
            st.session_state.editing_expense_id = None
            st.success("✅ Expense updated successfully!")
            st.rerun()
        else:
            st.error("❌ Expense no longer exists")
    except Exception as e:
        logger.error(f"Expense update error: {str(e)}")
        st.error("Failed to update expense")


def display_receipt_scanner(scanner: ReceiptScanner, max_bytes: int) -> Optional[ReceiptGuess]:
    """Display receipt upload/camera inputs and scan the chosen image.

    Args:
        scanner: Receipt scanner
        max_bytes: Largest accepted image size

    Returns:
        ReceiptGuess after a successful scan, None otherwise
    """
    source = st.radio("Receipt source", options=["Upload", "Camera"], horizontal=True)

    if source == "Upload":
        image_file = st.file_uploader(
            "Choose a receipt photo",
            type=['png', 'jpg', 'jpeg', 'webp', 'bmp', 'tif', 'tiff'],
            help="Photo or scan of a single receipt"
        )
    else:
        image_file = st.camera_input("Take a photo of the receipt")

    if image_file is None:
        return None

    is_valid, error = validate_receipt_image(image_file.name, image_file.size, max_bytes)
    if not is_valid:
        st.error(f"❌ {error}")
        return None

    st.image(image_file, caption="Receipt", width=320)

    if not st.button("🔍 Scan Receipt", type="primary"):
        return None

    with st.spinner("Reading receipt..."):
        try:
            return scanner.scan(image_file.getvalue(), image_file.name)
        except OcrError as e:
            logger.error(f"Receipt scan failed: {str(e)}")
            st.error(f"❌ {e}")
            return None
