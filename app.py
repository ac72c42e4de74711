"""
Expense Tracker Application - Main Entry Point
Personal expense tracking with receipt scanning, using Streamlit.
"""

import streamlit as st
import sys
import logging
from datetime import datetime
from pathlib import Path

# Add src directory to Python path
src_path = Path(__file__).parent / "src"
sys.path.insert(0, str(src_path))

from core.algorithms import FilterEngine, AnalyticsEngine
from core.auth import AuthService
from core.config import ConfigError, load_config
from core.database import DatabaseManager
from ui.components import (
    setup_sidebar, display_auth_forms, display_date_filter, display_summary_metrics,
    display_monthly_chart, display_category_chart, display_expense_form, display_expense_list
)

logger = logging.getLogger(__name__)


def configure_logging(log_file: str):
    """Configure file and console logging once per process."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )


def initialize_app():
    """Initialize the application and database."""
    try:
        if 'config' not in st.session_state:
            config = load_config()
            configure_logging(config.log_file)
            st.session_state.config = config

        config = st.session_state.config

        if 'db_manager' not in st.session_state:
            db_manager = DatabaseManager(config.db_path)
            db_manager.initialize_database()
            st.session_state.db_manager = db_manager

        if 'auth_service' not in st.session_state:
            st.session_state.auth_service = AuthService(st.session_state.db_manager)

        if 'user' not in st.session_state:
            st.session_state.user = None

    except ConfigError as e:
        st.error(f"Invalid configuration: {str(e)}")
        st.stop()
    except Exception as e:
        logger.error(f"Failed to initialize application: {str(e)}")
        st.error(f"Failed to initialize application: {str(e)}")
        st.stop()


def display_dashboard():
    """Dashboard: filter, metrics, charts and the expense list."""
    user = st.session_state.user
    db_manager = st.session_state.db_manager
    currency = st.session_state.config.currency

    st.title(f"👋 Welcome back, {user.display_name}")

    with st.expander("➕ Add Expense", expanded=False):
        new_expense = display_expense_form("add_expense_form", "Add Expense", currency=currency)
        if new_expense is not None:
            try:
                db_manager.add_expense(user.id, new_expense)
                st.success("Expense added successfully")
            except Exception as e:
                logger.error(f"Failed to add expense: {str(e)}")
                st.error("Failed to add expense")

    try:
        expenses = db_manager.get_expenses(user.id)
    except Exception as e:
        logger.error(f"Failed to load expenses: {str(e)}")
        st.error("Failed to load expenses")
        return

    selection = display_date_filter()

    now = datetime.now()
    filtered = FilterEngine().filter_expenses(expenses, selection, now)
    analytics_engine = AnalyticsEngine()
    summary = analytics_engine.aggregate(filtered, now)

    display_summary_metrics(summary, len(filtered), currency)

    col1, col2 = st.columns(2)
    with col1:
        display_monthly_chart(summary, now.year)
    with col2:
        display_category_chart(summary, analytics_engine)

    st.markdown("---")
    display_expense_list(filtered, db_manager, user, currency)


def main():
    """Main application function."""
    st.set_page_config(
        page_title="Expense Tracker",
        page_icon="💸",
        layout="wide",
        initial_sidebar_state="expanded"
    )

    initialize_app()

    if st.session_state.user is None:
        st.title("💸 Expense Tracker")
        st.markdown("Track your spending, scan receipts and see where your money goes.")

        user = display_auth_forms(st.session_state.auth_service)
        if user is not None:
            st.session_state.user = user
            st.rerun()
        return

    setup_sidebar(st.session_state.user, st.session_state.db_manager)
    display_dashboard()


if __name__ == "__main__":
    main()
