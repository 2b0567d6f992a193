"""Tests for the E-utilities client."""

import pytest
import requests

from refseq_downloader.config import APIConfig
from refseq_downloader.error_handler import EutilsError
from refseq_downloader.eutils_client import EutilsClient
from refseq_downloader.models import FetchRange

from conftest import GENBANK_TEXT, elink_xml, esearch_xml, make_response


class TestEutilsClient:
    """Test cases for EutilsClient."""

    @pytest.fixture
    def client(self, session):
        api = APIConfig(tool="test_tool", email="test@example.com")
        return EutilsClient(api=api, session=session)

    @pytest.fixture
    def keyed_client(self, session):
        api = APIConfig(tool="test_tool", email="test@example.com", api_key="secret_key")
        return EutilsClient(api=api, session=session)

    def test_resolve_gene_id(self, client, session):
        session.get.return_value = make_response(esearch_xml("672", "100"))

        gene_id = client.resolve_gene_id("BRCA1", "9606")

        assert gene_id == "672"
        args, kwargs = session.get.call_args
        assert args[0] == "https://eutils.ncbi.nlm.nih.gov/entrez/eutils/esearch.fcgi"
        params = kwargs['params']
        assert params['db'] == 'gene'
        assert params['term'] == "BRCA1[Gene Name] AND txid9606[Organism]"
        assert params['retmode'] == 'xml'
        assert params['retmax'] == '5'
        assert params['tool'] == 'test_tool'
        assert params['email'] == 'test@example.com'
        assert 'api_key' not in params

    def test_resolve_gene_id_not_found(self, client, session):
        session.get.return_value = make_response(esearch_xml())

        assert client.resolve_gene_id("NOTAGENE", "9606") is None

    def test_api_key_sent_when_configured(self, keyed_client, session):
        session.get.return_value = make_response(esearch_xml("672"))

        keyed_client.resolve_gene_id("BRCA1", "9606")

        assert session.get.call_args.kwargs['params']['api_key'] == 'secret_key'

    def test_xml_timeouts(self, client, session):
        session.get.return_value = make_response(esearch_xml("672"))

        client.resolve_gene_id("BRCA1", "9606")

        assert session.get.call_args.kwargs['timeout'] == (20.0, 30.0)

    def test_traverse_links(self, client, session):
        session.get.return_value = make_response(
            elink_xml("672", "gene_nuccore_refseqrna", "NM_007294.4", "NM_007294.4", "NR_027676.2")
        )

        accessions = client.traverse_links("672", "gene_nuccore_refseqrna")

        # returned verbatim; callers filter and deduplicate
        assert accessions == ["NM_007294.4", "NM_007294.4", "NR_027676.2"]
        args, kwargs = session.get.call_args
        assert args[0].endswith("/elink.fcgi")
        params = kwargs['params']
        assert params['dbfrom'] == 'gene'
        assert params['db'] == 'nuccore'
        assert params['id'] == '672'
        assert params['linkname'] == 'gene_nuccore_refseqrna'
        assert params['idtype'] == 'acc'

    def test_traverse_links_empty(self, client, session):
        session.get.return_value = make_response(elink_xml("672", "gene_nuccore_refseqgene"))

        assert client.traverse_links("672", "gene_nuccore_refseqgene") == []

    def test_traverse_links_http_error(self, client, session):
        session.get.return_value = make_response(b"Too Many Requests", status_code=429, content_type="text/plain")

        with pytest.raises(EutilsError) as exc_info:
            client.traverse_links("672", "gene_nuccore_refseqrna")
        assert exc_info.value.status_code == 429

    def test_fetch_flat_file_without_range(self, client, session, tmp_path):
        session.get.return_value = make_response(GENBANK_TEXT, content_type="text/plain")
        output = tmp_path / "NM_000546.6.gb"

        result = client.fetch_flat_file("NM_000546.6", output)

        assert result == output
        assert output.read_bytes() == GENBANK_TEXT
        args, kwargs = session.get.call_args
        assert args[0].endswith("/efetch.fcgi")
        params = kwargs['params']
        assert params['db'] == 'nuccore'
        assert params['id'] == 'NM_000546.6'
        assert params['rettype'] == 'gbwithparts'
        assert params['retmode'] == 'text'
        assert 'seq_start' not in params
        assert 'seq_stop' not in params
        assert kwargs['stream'] is True
        assert kwargs['timeout'] == (20.0, 120.0)

    def test_fetch_flat_file_with_range(self, client, session, tmp_path):
        session.get.return_value = make_response(GENBANK_TEXT, content_type="text/plain")

        client.fetch_flat_file("NG_008847.2", tmp_path / "NG_008847.2.gb", FetchRange(100, 200))

        params = session.get.call_args.kwargs['params']
        assert params['seq_start'] == '100'
        assert params['seq_stop'] == '200'

    def test_fetch_truncates_existing_file(self, client, session, tmp_path):
        output = tmp_path / "NM_000546.6.gb"
        output.write_bytes(b"old content " * 1000)
        session.get.return_value = make_response(b"new", content_type="text/plain")

        client.fetch_flat_file("NM_000546.6", output)

        assert output.read_bytes() == b"new"

    def test_fetch_http_error(self, client, session, tmp_path):
        session.get.return_value = make_response(b"error", status_code=400, content_type="text/plain")
        output = tmp_path / "NM_000546.6.gb"

        with pytest.raises(EutilsError, match="EFetch HTTP 400 for NM_000546.6"):
            client.fetch_flat_file("NM_000546.6", output)
        assert not output.exists()

    def test_interrupted_transfer_leaves_no_partial_file(self, client, session, tmp_path):
        def broken_stream(chunk_size=1):
            yield GENBANK_TEXT[:40]
            raise requests.exceptions.ChunkedEncodingError("connection broken")

        response = make_response(content_type="text/plain")
        response.iter_content.side_effect = broken_stream
        session.get.return_value = response
        output = tmp_path / "NM_000546.6.gb"

        with pytest.raises(EutilsError) as exc_info:
            client.fetch_flat_file("NM_000546.6", output)

        assert isinstance(exc_info.value.__cause__, requests.exceptions.ChunkedEncodingError)
        assert list(tmp_path.iterdir()) == []

    def test_failed_transfer_keeps_previous_file(self, client, session, tmp_path):
        output = tmp_path / "NM_000546.6.gb"
        output.write_bytes(GENBANK_TEXT)
        session.get.return_value = make_response(content_type="text/plain")
        session.get.return_value.iter_content.side_effect = requests.Timeout("read timed out")

        with pytest.raises(EutilsError):
            client.fetch_flat_file("NM_000546.6", output)

        assert output.read_bytes() == GENBANK_TEXT
        assert [p.name for p in tmp_path.iterdir()] == ["NM_000546.6.gb"]

    def test_fetch_timeout_is_wrapped(self, client, session, tmp_path):
        session.get.side_effect = requests.Timeout("read timed out")

        with pytest.raises(EutilsError) as exc_info:
            client.fetch_flat_file("NM_000546.6", tmp_path / "NM_000546.6.gb")
        assert isinstance(exc_info.value.__cause__, requests.Timeout)
