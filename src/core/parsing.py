"""
Receipt text interpretation for the expense tracker.
Turns raw OCR output into a best guess of the merchant name and total amount.
"""

import re
import logging
from decimal import Decimal, InvalidOperation
from typing import Optional, List

from .models import ReceiptGuess

logger = logging.getLogger(__name__)

class ReceiptInterpreter:
    """Extracts a merchant name and a total amount from receipt text.

    Two fixed heuristics, no scoring:

    * amount: the last number on the first total-like line, otherwise the
      largest number anywhere in the text.
    * merchant: the first line that is not a totals/tax/footer line and
      is not purely numeric.
    """

    # One to three digits, optional thousands groups, optional two decimals.
    # Plain integers match too.
    AMOUNT_PATTERN = re.compile(r'[0-9]{1,3}(?:[.,][0-9]{3})*(?:[.,][0-9]{2})?')

    # Digits with at most one decimal point, read from the start of a match
    LEADING_NUMBER = re.compile(r'[0-9]+(?:\.[0-9]+)?')

    LINE_BREAK = re.compile(r'\r?\n')

    TOTAL_KEYWORDS = (
        'TOTAL', 'TOTAL AMOUNT', 'AMOUNT INC', 'AMOUNT EX',
        'NET BILL', 'NET TOTAL', 'GRAND TOTAL',
    )

    # Lines containing these never name the merchant
    NON_MERCHANT_KEYWORDS = (
        'TOTAL', 'SUBTOTAL', 'TAX', 'CHANGE', 'AMOUNT', 'BALANCE',
        'Q R', 'QR', 'FBR', 'POS', 'NET BILL', 'INVOICE',
    )

    MIN_MERCHANT_LENGTH = 2

    def __init__(self):
        """Initialize the receipt interpreter."""
        self.logger = logger

    def interpret(self, raw_text: Optional[str]) -> ReceiptGuess:
        """Interpret raw OCR text.

        Args:
            raw_text: Text returned by the OCR provider

        Returns:
            ReceiptGuess with whatever could be found; missing values are None
        """
        text = raw_text or ""

        guess = ReceiptGuess(
            raw_text=text,
            amount=self._extract_amount(text),
            merchant_name=self._extract_merchant_name(text)
        )

        self.logger.debug(
            f"Interpreted receipt text ({len(text)} chars): "
            f"merchant={guess.merchant_name!r}, amount={guess.amount}"
        )
        return guess

    def _extract_amount(self, text: str) -> Optional[Decimal]:
        """Extract the total amount from receipt text.

        Args:
            text: Raw receipt text

        Returns:
            Amount or None if no number could be parsed
        """
        total_line = next(
            (line for line in self.LINE_BREAK.split(text) if self._contains_keyword(line, self.TOTAL_KEYWORDS)),
            None
        )

        if total_line is not None:
            line_amounts = self._find_amounts(total_line)
            if line_amounts:
                # The figure after a running calculation is the final one
                return line_amounts[-1]

        amounts = self._find_amounts(text)
        if amounts:
            return max(amounts)

        return None

    def _extract_merchant_name(self, text: str) -> Optional[str]:
        """Extract the merchant name from receipt text.

        Args:
            text: Raw receipt text

        Returns:
            First line that looks like a name, or None
        """
        lines = [line.strip() for line in self.LINE_BREAK.split(text) if line.strip()]

        for line in lines:
            if self._contains_keyword(line, self.NON_MERCHANT_KEYWORDS):
                continue

            # Barcodes, phone numbers, totals-only rows
            if re.search(r'[0-9]', line) and not re.search(r'[A-Za-z]', line):
                continue

            if len(line) < self.MIN_MERCHANT_LENGTH:
                continue

            return line

        return None

    def _find_amounts(self, text: str) -> List[Decimal]:
        """Find every parseable monetary value in text, in order of appearance.

        Args:
            text: Text to scan

        Returns:
            List of amounts; malformed matches are skipped
        """
        amounts = []

        for match in self.AMOUNT_PATTERN.findall(text):
            amount = self._parse_amount(match)
            if amount is not None:
                amounts.append(amount)

        return amounts

    def _parse_amount(self, amount_str: str) -> Optional[Decimal]:
        """Parse a matched amount after stripping commas.

        Commas are always treated as thousands separators, so "5,00" reads
        as 500 rather than 5.00. Only the leading number is read, so
        "1.234.567" gives 1.234.

        Args:
            amount_str: Matched monetary substring

        Returns:
            Amount or None if no number could be read
        """
        number = self.LEADING_NUMBER.match(amount_str.replace(',', ''))
        if number is None:
            return None

        try:
            amount = Decimal(number.group())
        except InvalidOperation:
            return None

        if not amount.is_finite():
            return None
        return amount

    @staticmethod
    def _contains_keyword(line: str, keywords) -> bool:
        upper = line.upper()
        return any(keyword in upper for keyword in keywords)
