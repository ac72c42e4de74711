"""
Unit tests for receipt text interpretation.
Tests amount and merchant extraction from raw OCR text.
"""

import pytest
from decimal import Decimal

from core.parsing import ReceiptInterpreter
from core.models import ReceiptGuess


class TestReceiptInterpreter:
    """Test cases for ReceiptInterpreter class."""

    @pytest.fixture
    def interpreter(self):
        """Create ReceiptInterpreter instance for testing."""
        return ReceiptInterpreter()

    @pytest.fixture
    def sample_receipt_text(self):
        """Sample receipt text for testing extraction."""
        return """
        KFC Gulberg
        Main Boulevard, Lahore
        NTN 1234567-8

        2 Zinger Burger        1,100.00
        1 Pepsi                  180.00

        Sub Total              1,280.00
        Tax                      204.80
        FBR POS Fee                1.00

        Thank you for visiting!
        """

    def test_returns_receipt_guess(self, interpreter, sample_receipt_text):
        """Test interpret returns a ReceiptGuess keeping the raw text."""
        guess = interpreter.interpret(sample_receipt_text)

        assert isinstance(guess, ReceiptGuess)
        assert guess.raw_text == sample_receipt_text

    def test_sample_receipt(self, interpreter, sample_receipt_text):
        """Test extraction from a realistic receipt."""
        guess = interpreter.interpret(sample_receipt_text)

        assert guess.merchant_name == "KFC Gulberg"
        # "Sub Total" is the first total-like line
        assert guess.amount == Decimal("1280.00")

    def test_last_amount_on_keyword_line(self, interpreter):
        """Test the last number on the total line wins over earlier ones."""
        text = "SHOP\nNet Total 1,234.56 extra 9\nCash 2,000.00"

        guess = interpreter.interpret(text)

        assert guess.amount == Decimal("9")

    def test_maximum_amount_without_keyword_line(self, interpreter):
        """Test the largest number is used when no total line exists."""
        text = "Item 12\nThing 450.00\nQty 3"

        guess = interpreter.interpret(text)

        assert guess.amount == Decimal("450.00")

    def test_merchant_skips_numeric_and_total_lines(self, interpreter):
        """Test merchant skips pure-digit lines and keyword lines."""
        guess = interpreter.interpret("1234567890\nSTARBUCKS\nTOTAL 500")

        assert guess.merchant_name == "STARBUCKS"
        assert guess.amount == Decimal("500")

    @pytest.mark.parametrize("keyword_line", [
        "Total Amount: 1,500.00",
        "Amount Inc. GST 1,500.00",
        "AMOUNT EX VAT 1,500.00",
        "net bill 1,500.00",
        "Grand Total 1,500.00",
    ])
    def test_total_keywords_case_insensitive(self, interpreter, keyword_line):
        """Test every total keyword is recognised regardless of case."""
        text = f"Cafe\nDeposit 9,999.00\n{keyword_line}"

        assert interpreter.interpret(text).amount == Decimal("1500.00")

    def test_first_keyword_line_wins(self, interpreter):
        """Test only the first keyword line is considered."""
        text = "SUBTOTAL 100.00\nTAX 16.00\nTOTAL 116.00"

        assert interpreter.interpret(text).amount == Decimal("100.00")

    def test_keyword_line_without_numbers_falls_back(self, interpreter):
        """Test a total line with no figures falls back to the maximum."""
        text = "Bakery\nGRAND TOTAL\n1,250.00\n50"

        assert interpreter.interpret(text).amount == Decimal("1250.00")

    def test_comma_is_thousands_separator(self, interpreter):
        """Test commas are stripped even when used as decimal separator."""
        assert interpreter.interpret("Price 5,00").amount == Decimal("500")
        assert interpreter.interpret("Price 500").amount == Decimal("500")

    def test_repeated_dots_read_leading_number(self, interpreter):
        """Test a dotted group like 1.234.567 keeps only its leading number."""
        guess = interpreter.interpret("Ref 1.234.567")

        assert guess.amount == Decimal("1.234")
        assert guess.merchant_name == "Ref 1.234.567"
        assert str(guess.amount) in guess.raw_text

    def test_repeated_dots_do_not_hide_larger_amounts(self, interpreter):
        guess = interpreter.interpret("Ref 1.234.567\nItem 75.50")

        assert guess.amount == Decimal("75.50")

    def test_non_ascii_digits_are_not_amounts(self, interpreter):
        """Test Arabic-Indic digits are not read as numbers."""
        assert interpreter.interpret("Shop\nTotal ١٢٣").amount is None
        assert interpreter.interpret("٤٥٦ ٧٨٩").amount is None

    def test_non_ascii_digit_line_can_be_merchant(self, interpreter):
        """Test only ASCII digits make a line count as numeric."""
        assert interpreter.interpret("١٢٣٤\nShop").merchant_name == "١٢٣٤"

    def test_only_newlines_split_lines(self, interpreter):
        """Test form feeds and other separators stay inside a line."""
        guess = interpreter.interpret("Cafe\x0cTotal 90\nItem 500")

        assert guess.merchant_name == "Item 500"
        assert guess.amount == Decimal("90")

    def test_form_feed_page_break(self, interpreter):
        guess = interpreter.interpret("\x0cBakers Inn\nTOTAL 350.00\n\x0c")

        assert guess.merchant_name == "Bakers Inn"
        assert guess.amount == Decimal("350.00")

    @pytest.mark.parametrize("text", ["", "   \n  \n", None])
    def test_empty_text(self, interpreter, text):
        """Test empty input yields an empty guess."""
        guess = interpreter.interpret(text)

        assert guess.amount is None
        assert guess.merchant_name is None
        assert guess.is_empty

    def test_no_digits(self, interpreter):
        """Test text without numbers yields no amount."""
        guess = interpreter.interpret("Corner Store\nThanks!")

        assert guess.amount is None
        assert guess.merchant_name == "Corner Store"

    @pytest.mark.parametrize("line", [
        "Invoice No A-12",
        "Scan the QR code",
        "Q R payment",
        "FBR verified",
        "POS terminal",
        "Change due",
        "Balance",
        "Sales Tax",
    ])
    def test_merchant_skips_keyword_lines(self, interpreter, line):
        """Test footer and tax lines are never picked as merchant."""
        guess = interpreter.interpret(f"{line}\nGeneral Store")

        assert guess.merchant_name == "General Store"

    def test_merchant_skips_short_and_symbol_lines(self, interpreter):
        """Test single characters and digit/symbol rows are skipped."""
        text = "*\n**** 4321 ****\n+92-300-1234567\nX\nBook Corner"

        assert interpreter.interpret(text).merchant_name == "Book Corner"

    def test_merchant_is_trimmed(self, interpreter):
        """Test merchant name comes back without surrounding whitespace."""
        assert interpreter.interpret("   Imtiaz Super Market   \n").merchant_name == "Imtiaz Super Market"

    def test_windows_line_endings(self, interpreter):
        """Test CRLF text is split into lines too."""
        guess = interpreter.interpret("METRO\r\nTOTAL 2,345.00\r\n")

        assert guess.merchant_name == "METRO"
        assert guess.amount == Decimal("2345.00")

    @pytest.mark.parametrize("text", [
        "-500",
        "Total: -12.00",
        "!@#$%^&*()",
        "1,2,3,4,5",
        "0.00",
        "\x00\x01 binary 12",
    ])
    def test_amount_never_negative(self, interpreter, text):
        """Test interpret never raises and never returns negative amounts."""
        guess = interpreter.interpret(text)

        assert guess.amount is None or guess.amount >= 0
