"""
Collaborators that turn uploaded documents into candidate records.
"""

from .document_text import discover_upload_files, extract_text
from .field_extraction import GeminiFieldExtractor, build_extractor, fold_category_rows, with_retry

__all__ = [
    'discover_upload_files',
    'extract_text',
    'GeminiFieldExtractor',
    'build_extractor',
    'fold_category_rows',
    'with_retry',
]
