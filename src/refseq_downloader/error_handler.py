"""Error taxonomy and per-item error reporting."""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

import requests
from lxml import etree

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Invalid configuration detected before any network activity."""


class EmptyInputError(ConfigurationError):
    """Input file contains no usable tokens."""


class EutilsError(requests.RequestException):
    """E-utilities request failed or returned an unusable response."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 body_snippet: Optional[str] = None, url: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body_snippet = body_snippet
        self.url = url


class ErrorType(Enum):
    """Types of errors that can occur."""
    CONFIGURATION = "configuration"
    RESOLUTION_MISS = "resolution_miss"
    NETWORK = "network"
    HTTP_STATUS = "http_status"
    PARSE = "parse"
    FILE_IO = "file_io"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass
class ErrorContext:
    """Context information for an error."""
    error_type: ErrorType
    severity: ErrorSeverity
    message: str
    timestamp: float
    operation: str
    item_id: Optional[str] = None
    status_code: Optional[int] = None
    details: Optional[Dict[str, Any]] = None
    suggestion: Optional[str] = None


SUGGESTIONS = {
    ErrorType.CONFIGURATION: "Check the command-line options and configuration file.",
    ErrorType.RESOLUTION_MISS: "Check the gene symbol and taxonomy id.",
    ErrorType.NETWORK: "Check network connectivity to eutils.ncbi.nlm.nih.gov.",
    ErrorType.HTTP_STATUS: "NCBI rejected the request; an API key raises the rate limit.",
    ErrorType.PARSE: "NCBI returned an unexpected document; try again later.",
    ErrorType.FILE_IO: "Check permissions and free space in the output directory.",
}


class ErrorHandler:
    """Classifies, logs and remembers errors raised while processing items."""

    def __init__(self):
        self.error_history: List[ErrorContext] = []

    def handle_error(self, error: Exception, operation: str,
                     item_id: Optional[str] = None, **kwargs) -> ErrorContext:
        """
        Record an error raised by one item of the run.

        Args:
            error: The exception that occurred
            operation: The operation being performed
            item_id: Gene symbol or accession being processed
            **kwargs: Additional context data

        Returns:
            ErrorContext with error details
        """
        error_type = self._classify_error(error)
        severity = ErrorSeverity.CRITICAL if error_type == ErrorType.CONFIGURATION else ErrorSeverity.ERROR

        context = ErrorContext(
            error_type=error_type,
            severity=severity,
            message=str(error),
            timestamp=time.time(),
            operation=operation,
            item_id=item_id,
            status_code=getattr(error, 'status_code', None),
            details=kwargs or None,
            suggestion=SUGGESTIONS.get(error_type),
        )

        self._log_error(context)
        self.error_history.append(context)
        return context

    def record_miss(self, operation: str, item_id: str, message: str) -> ErrorContext:
        """Record a non-fatal resolution miss."""
        context = ErrorContext(
            error_type=ErrorType.RESOLUTION_MISS,
            severity=ErrorSeverity.WARNING,
            message=message,
            timestamp=time.time(),
            operation=operation,
            item_id=item_id,
            suggestion=SUGGESTIONS[ErrorType.RESOLUTION_MISS],
        )
        self._log_error(context)
        self.error_history.append(context)
        return context

    def _classify_error(self, error: Exception) -> ErrorType:
        """Classify the error type based on exception."""
        if isinstance(error, ConfigurationError):
            return ErrorType.CONFIGURATION
        if isinstance(error, EutilsError):
            if error.status_code is not None:
                return ErrorType.HTTP_STATUS
            if isinstance(error.__cause__, etree.XMLSyntaxError):
                return ErrorType.PARSE
            if isinstance(error.__cause__, requests.RequestException):
                return ErrorType.NETWORK
            return ErrorType.PARSE
        if isinstance(error, etree.XMLSyntaxError):
            return ErrorType.PARSE
        if isinstance(error, requests.RequestException):
            return ErrorType.NETWORK
        if isinstance(error, OSError):
            return ErrorType.FILE_IO
        return ErrorType.UNKNOWN

    def _log_error(self, context: ErrorContext):
        """Log error with appropriate level and details."""
        log_message = f"{context.operation} - {context.error_type.value}: {context.message}"

        if context.item_id:
            log_message += f" (item: {context.item_id})"

        if context.severity == ErrorSeverity.WARNING:
            logger.warning(log_message)
        elif context.severity == ErrorSeverity.CRITICAL:
            logger.critical(log_message)
        else:
            logger.error(log_message)

        if context.suggestion:
            logger.debug(f"Suggestion: {context.suggestion}")

    def get_error_summary(self) -> Dict[str, Any]:
        """Get summary of recorded errors."""
        by_type: Dict[str, int] = {}
        for context in self.error_history:
            by_type[context.error_type.value] = by_type.get(context.error_type.value, 0) + 1

        return {
            'total_errors': len(self.error_history),
            'by_type': by_type,
            'items': [c.item_id for c in self.error_history if c.item_id],
        }
