"""Turns statement files into the plain text block the parser consumes."""

import logging
import os
from typing import List

import pandas as pd
import pdfplumber

from .error_handler import TextExtractionError, UnsupportedFormatError


logger = logging.getLogger(__name__)


class TextExtractor:
    """Reads PDF, CSV and plain-text statements"""

    SUPPORTED_EXTENSIONS = ['.pdf', '.csv', '.txt']

    def get_supported_extensions(self) -> List[str]:
        return list(self.SUPPORTED_EXTENSIONS)

    def extract_text(self, file_path: str) -> str:
        """Return the text of a statement file, one statement line per line.

        Raises:
            UnsupportedFormatError: For file types other than .pdf, .csv and .txt
            TextExtractionError: If the file cannot be read
        """
        _, ext = os.path.splitext(file_path.lower())
        if ext not in self.SUPPORTED_EXTENSIONS:
            raise UnsupportedFormatError(
                f"Unsupported file type '{ext or file_path}'. "
                f"Supported types: {', '.join(self.SUPPORTED_EXTENSIONS)}",
                file_path,
            )

        if not os.path.exists(file_path):
            raise TextExtractionError(f"File does not exist: {file_path}", file_path)

        if ext == '.pdf':
            text = self._extract_from_pdf(file_path)
        elif ext == '.csv':
            text = self._extract_from_csv(file_path)
        else:
            text = self._extract_from_txt(file_path)

        logger.info(f"Extracted {len(text.splitlines())} lines of text from {file_path}")
        return text

    def _extract_from_pdf(self, file_path: str) -> str:
        try:
            with pdfplumber.open(file_path) as pdf:
                pages = [page.extract_text() or '' for page in pdf.pages]
        except Exception as e:
            # pdfminer raises a range of unrelated exception types for bad files
            raise TextExtractionError(f"Error reading PDF file {file_path}: {e}", file_path) from e

        if not any(page.strip() for page in pages):
            logger.warning(f"PDF file {file_path} appears to have no readable text")
        return '\n'.join(pages)

    def _extract_from_csv(self, file_path: str) -> str:
        try:
            df = pd.read_csv(
                file_path,
                header=None,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
            )
        except pd.errors.EmptyDataError:
            logger.warning(f"CSV file is empty: {file_path}")
            return ''
        except (OSError, UnicodeDecodeError, pd.errors.ParserError) as e:
            raise TextExtractionError(f"Error reading CSV file {file_path}: {e}", file_path) from e

        lines = []
        for row in df.itertuples(index=False):
            values = [self._quote(str(value).strip()) for value in row]
            while values and not values[-1]:
                values.pop()
            if values:
                lines.append(','.join(values))
        return '\n'.join(lines)

    def _quote(self, value: str) -> str:
        if ',' in value or '"' in value:
            return '"' + value.replace('"', '""') + '"'
        return value

    def _extract_from_txt(self, file_path: str) -> str:
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise TextExtractionError(f"Error reading text file {file_path}: {e}", file_path) from e
