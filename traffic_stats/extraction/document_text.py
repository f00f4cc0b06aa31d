"""
Document-to-text operations.
Handles upload discovery and turning PDF / spreadsheet reports into plain text.
"""

import os
from pathlib import Path

import pdfplumber
import polars as pl

from traffic_stats.errors import UnsupportedDocumentError

PDF_EXTENSIONS = ('.pdf',)
SHEET_EXTENSIONS = ('.xlsx', '.xls')
CSV_EXTENSIONS = ('.csv',)
SUPPORTED_EXTENSIONS = PDF_EXTENSIONS + SHEET_EXTENSIONS + CSV_EXTENSIONS


def discover_upload_files(upload_dir, logger):
    """
    List supported report files in the upload directory, sorted by file name.

    Args:
        upload_dir: Path object or string path to directory
        logger: Logger instance

    Returns:
        list: Paths of supported files in lexicographic name order
    """
    upload_dir = Path(upload_dir)

    if not upload_dir.exists():
        logger.error(f'Directory does not exist: {upload_dir}')
        return []

    if not upload_dir.is_dir():
        logger.error(f'Path is not a directory: {upload_dir}')
        return []

    found = []
    with os.scandir(upload_dir) as entries:
        for entry in entries:
            if not entry.is_file() or entry.name.startswith('.'):
                continue
            if entry.name.lower().endswith(SUPPORTED_EXTENSIONS):
                found.append(Path(entry.path))
            else:
                logger.warning(f'Unsupported file type, ignoring: {entry.name}')

    found.sort(key=lambda path: path.name)
    logger.debug(f'Discovered {len(found)} supported file(s) in {upload_dir}')
    return found


def read_pdf_text(file_path):
    with pdfplumber.open(file_path) as pdf:
        pages = [page.extract_text() or '' for page in pdf.pages]
    return '\n'.join(pages)


def read_sheet_text(file_path):
    """First worksheet rendered as CSV text."""
    df = pl.read_excel(file_path, infer_schema_length=0)
    return df.write_csv()


def read_csv_text(file_path):
    return Path(file_path).read_text(encoding='utf-8', errors='replace')


def extract_text(file_path, logger):
    """
    Extract plain text from a report document, choosing the reader by extension.

    Args:
        file_path: Path to the document
        logger: Logger instance

    Returns:
        str: Extracted text (may be empty)

    Raises:
        UnsupportedDocumentError: If the extension has no reader
    """
    file_path = Path(file_path)
    suffix = file_path.suffix.lower()

    if suffix in PDF_EXTENSIONS:
        text = read_pdf_text(file_path)
    elif suffix in SHEET_EXTENSIONS:
        text = read_sheet_text(file_path)
    elif suffix in CSV_EXTENSIONS:
        text = read_csv_text(file_path)
    else:
        raise UnsupportedDocumentError(f'No text reader for {file_path.name}')

    if not text.strip():
        logger.warning(f'No text extracted from {file_path.name}')
    else:
        logger.debug(f'Extracted {len(text):,} characters from {file_path.name}')
    return text
