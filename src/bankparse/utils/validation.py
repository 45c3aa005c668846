"""Validation engine for extracted transactions and CSV output."""

import csv
import os
import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from ..models.core import Category, RawTransaction, TransactionType


ISO_DATE = re.compile(r'^\d{4}-\d{2}-\d{2}$')

MIN_DATE = date(1900, 1, 1)
MAX_DATE = date(2100, 12, 31)


class ValidationEngine:
    """Validates extracted transaction data"""

    def __init__(self, max_amount: Decimal = Decimal('1000000')):
        self.max_amount = Decimal(str(max_amount))
        self.csv_headers = ['date', 'merchant', 'amount', 'category', 'type']

    def validate_transaction(self, transaction: RawTransaction, min_merchant_length: int = 2,
                             max_amount: Optional[Decimal] = None) -> List[str]:
        """Validate individual transaction and return list of errors"""
        errors = []
        ceiling = self.max_amount if max_amount is None else Decimal(str(max_amount))

        errors.extend(self._validate_date(transaction.date))

        merchant = str(transaction.merchant or '').strip()
        if not merchant:
            errors.append("Merchant cannot be empty")
        elif len(merchant) < min_merchant_length:
            errors.append(f"Merchant too short (minimum {min_merchant_length} characters)")

        amount = transaction.amount
        if not isinstance(amount, Decimal):
            errors.append("Invalid amount: must be Decimal object")
        elif not amount.is_finite():
            errors.append("Amount must be finite")
        elif abs(amount) > ceiling:
            errors.append(f"Amount {amount} exceeds ceiling {ceiling}")

        return errors

    def _validate_date(self, value: str) -> List[str]:
        if not isinstance(value, str) or not ISO_DATE.match(value):
            return [f"Invalid date: {value!r} is not YYYY-MM-DD"]
        try:
            parsed = date.fromisoformat(value)
        except ValueError:
            return [f"Invalid date: {value} is not a calendar date"]
        if not (MIN_DATE <= parsed <= MAX_DATE):
            return [f"Date {value} outside {MIN_DATE.isoformat()}..{MAX_DATE.isoformat()}"]
        return []

    def is_valid(self, transaction: RawTransaction, min_merchant_length: int = 2,
                 max_amount: Optional[Decimal] = None) -> bool:
        return not self.validate_transaction(transaction, min_merchant_length, max_amount)

    def validate_csv_output(self, csv_path: str) -> List[str]:
        """Validate a categorized-transactions CSV file"""
        errors = []

        if not os.path.exists(csv_path):
            errors.append(f"CSV file does not exist: {csv_path}")
            return errors

        try:
            with open(csv_path, 'r', encoding='utf-8', newline='') as file:
                reader = csv.DictReader(file)

                if not reader.fieldnames:
                    errors.append("CSV file has no headers")
                    return errors

                if list(reader.fieldnames) != self.csv_headers:
                    errors.append(
                        f"Invalid CSV headers. Expected: {self.csv_headers}, "
                        f"Got: {list(reader.fieldnames)}"
                    )

                for row_num, row in enumerate(reader, start=2):
                    errors.extend(self._validate_csv_row(row, row_num))
                    if len(errors) > 100:
                        errors.append("Too many errors, stopping validation")
                        break

        except UnicodeDecodeError:
            errors.append(f"CSV file encoding error: {csv_path}")
        except csv.Error as e:
            errors.append(f"CSV format error: {str(e)}")

        return errors

    def _validate_csv_row(self, row: Dict[str, str], row_num: int) -> List[str]:
        errors = []

        for message in self._validate_date(row.get('date', '')):
            errors.append(f"Row {row_num}: {message}")

        if not (row.get('merchant') or '').strip():
            errors.append(f"Row {row_num}: Merchant cannot be empty")

        try:
            Decimal(row.get('amount') or '')
        except InvalidOperation:
            errors.append(f"Row {row_num}: Invalid amount format: {row.get('amount')}")

        categories = {category.value for category in Category}
        if row.get('category') not in categories:
            errors.append(f"Row {row_num}: Unknown category: {row.get('category')}")

        types = {kind.value for kind in TransactionType}
        if row.get('type') not in types:
            errors.append(f"Row {row_num}: Unknown type: {row.get('type')}")

        return errors
