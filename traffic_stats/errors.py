"""
Exception types raised by the consolidation pipeline.
"""


class ConsolidatorError(Exception):
    """Base class for all consolidator errors."""


class ExtractionError(ConsolidatorError):
    """Field extraction failed for a document."""


class TransientExtractionError(ExtractionError):
    """Rate limit or server-side failure; safe to retry."""

    def __init__(self, message, status=None):
        super().__init__(message)
        self.status = status


class TerminalExtractionError(ExtractionError):
    """Malformed request or unusable response; retrying will not help."""

    def __init__(self, message, status=None):
        super().__init__(message)
        self.status = status


class UnsupportedDocumentError(ConsolidatorError):
    """No text reader exists for the document's extension."""


class IngestionAbortedError(ConsolidatorError):
    """
    Raised once per failed ingestion run.

    Carries the file that failed, the underlying cause, and the summary of the
    files committed before the failure.
    """

    def __init__(self, file_name, cause, summary=None):
        super().__init__(f'Ingestion aborted at {file_name}: {cause}')
        self.file_name = file_name
        self.cause = cause
        self.summary = summary
