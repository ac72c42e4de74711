"""
Scan Receipt page for the expense tracker.
Reads a receipt photo and pre-fills a new expense with the merchant and total.
"""

import streamlit as st
import logging
import sys
from pathlib import Path

# Add src directory to path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from core.ocr import ReceiptScanner, build_ocr_engine
from ui.components import display_expense_form, display_receipt_scanner, format_currency, setup_sidebar

logger = logging.getLogger(__name__)


def main():
    """Main function for Scan Receipt page."""
    st.set_page_config(
        page_title="Scan Receipt - Expense Tracker",
        page_icon="📷",
        layout="wide"
    )

    st.title("📷 Scan Receipt")
    st.markdown("Snap or upload a receipt and we'll fill in the expense for you")

    if st.session_state.get('user') is None or 'db_manager' not in st.session_state:
        st.error("Please sign in on the main page first.")
        return

    user = st.session_state.user
    db_manager = st.session_state.db_manager
    config = st.session_state.config

    setup_sidebar(user, db_manager)

    if 'receipt_scanner' not in st.session_state:
        st.session_state.receipt_scanner = ReceiptScanner(build_ocr_engine(config))

    scanner = st.session_state.receipt_scanner
    if not scanner.engine.available:
        st.warning("⚠️ Receipt scanning is not configured. You can still enter expenses manually.")

    guess = display_receipt_scanner(scanner, config.ocr_max_upload_bytes)
    if guess is not None:
        st.session_state.receipt_guess = guess

    guess = st.session_state.get('receipt_guess')
    if guess is None:
        return

    st.markdown("---")
    if guess.is_empty:
        st.info("ℹ️ Couldn't read a name or amount from this receipt. Please enter the details manually.")
    else:
        found = []
        if guess.merchant_name:
            found.append(f"**Name:** {guess.merchant_name}")
        if guess.amount is not None:
            found.append(f"**Amount:** {format_currency(guess.amount, config.currency)}")
        st.success("✅ Found " + " · ".join(found) + ". Check the details before saving.")

    with st.expander("🔍 Recognised text"):
        st.code(guess.raw_text or "(no text)", language="text")

    expense = display_expense_form("scanned_expense_form", "Add Expense", guess=guess, currency=config.currency)
    if expense is not None:
        try:
            db_manager.add_expense(user.id, expense)
            st.session_state.receipt_guess = None
            st.success("Expense added successfully")
        except Exception as e:
            logger.error(f"Failed to add scanned expense: {str(e)}")
            st.error("Failed to add expense")


if __name__ == "__main__":
    main()
