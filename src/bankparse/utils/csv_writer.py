"""CSV output of categorized transactions."""

import csv
import logging
import os
from typing import Dict, List, TextIO

from ..models.core import CategorizedTransaction


logger = logging.getLogger(__name__)


class CSVWriter:
    """Writes categorized transactions in a fixed column layout"""

    STANDARD_HEADERS = [
        'date',
        'merchant',
        'amount',
        'category',
        'type',
    ]

    def write_transactions(self, transactions: List[CategorizedTransaction], output_path: str) -> bool:
        """
        Write transactions to a CSV file

        Args:
            transactions: Categorized transactions to write
            output_path: Path where CSV file should be written

        Returns:
            True if successful, False otherwise
        """
        try:
            output_dir = os.path.dirname(output_path)
            if output_dir:
                os.makedirs(output_dir, exist_ok=True)

            with open(output_path, 'w', newline='', encoding='utf-8') as csvfile:
                self.write_to_stream(transactions, csvfile)

            logger.info(f"Wrote {len(transactions)} transactions to {output_path}")
            return True

        except (OSError, csv.Error) as e:
            logger.error(f"Error writing CSV file {output_path}: {e}")
            return False

    def write_to_stream(self, transactions: List[CategorizedTransaction], stream: TextIO) -> None:
        writer = csv.DictWriter(stream, fieldnames=self.STANDARD_HEADERS)
        writer.writeheader()
        for transaction in transactions:
            writer.writerow(self._transaction_to_dict(transaction))

    def _transaction_to_dict(self, transaction: CategorizedTransaction) -> Dict[str, str]:
        return {
            'date': transaction.date,
            'merchant': transaction.merchant,
            'amount': str(transaction.amount),
            'category': transaction.category.value,
            'type': transaction.type.value,
        }
