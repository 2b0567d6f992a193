"""Tests for error handling."""

import logging

import pytest
import requests
from lxml import etree

from refseq_downloader.error_handler import (
    ConfigurationError, EmptyInputError, ErrorHandler, ErrorSeverity,
    ErrorType, EutilsError
)


class TestErrorHandler:
    """Test cases for error handler."""

    @pytest.fixture
    def handler(self):
        return ErrorHandler()

    def test_error_classification(self, handler):
        assert handler._classify_error(ConfigurationError("bad")) == ErrorType.CONFIGURATION
        assert handler._classify_error(EmptyInputError("empty")) == ErrorType.CONFIGURATION
        assert handler._classify_error(EutilsError("HTTP 500", status_code=500)) == ErrorType.HTTP_STATUS
        assert handler._classify_error(requests.ConnectionError("refused")) == ErrorType.NETWORK
        assert handler._classify_error(PermissionError("denied")) == ErrorType.FILE_IO
        assert handler._classify_error(Exception("Something went wrong")) == ErrorType.UNKNOWN

    def test_wrapped_error_classification(self, handler):
        try:
            try:
                raise requests.Timeout("timed out")
            except requests.Timeout as e:
                raise EutilsError("EFetch failed") from e
        except EutilsError as wrapped:
            assert handler._classify_error(wrapped) == ErrorType.NETWORK

        try:
            try:
                etree.fromstring(b"<broken")
            except etree.XMLSyntaxError as e:
                raise EutilsError("Malformed XML") from e
        except EutilsError as wrapped:
            assert handler._classify_error(wrapped) == ErrorType.PARSE

    def test_eutils_error_is_request_exception(self):
        assert issubclass(EutilsError, requests.RequestException)

    def test_handle_error(self, handler, caplog):
        error = EutilsError("EFetch HTTP 502 for NM_000546.6", status_code=502)

        with caplog.at_level(logging.ERROR):
            context = handler.handle_error(error, "fetch_flat_file", item_id="NM_000546.6")

        assert context.error_type == ErrorType.HTTP_STATUS
        assert context.severity == ErrorSeverity.ERROR
        assert context.status_code == 502
        assert context.item_id == "NM_000546.6"
        assert context.suggestion
        assert "NM_000546.6" in caplog.text
        assert handler.error_history == [context]

    def test_record_miss(self, handler, caplog):
        with caplog.at_level(logging.WARNING):
            context = handler.record_miss("resolve_gene_id", "NOTAGENE", "GeneID not found")

        assert context.error_type == ErrorType.RESOLUTION_MISS
        assert context.severity == ErrorSeverity.WARNING
        assert "GeneID not found" in caplog.text

    def test_error_summary(self, handler):
        handler.record_miss("resolve_gene_id", "A", "GeneID not found")
        handler.record_miss("resolve_gene_id", "B", "GeneID not found")
        handler.handle_error(requests.ConnectionError("refused"), "resolve_gene_id", item_id="C")

        summary = handler.get_error_summary()

        assert summary['total_errors'] == 3
        assert summary['by_type'] == {'resolution_miss': 2, 'network': 1}
        assert summary['items'] == ['A', 'B', 'C']
