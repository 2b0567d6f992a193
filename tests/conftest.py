"""Shared fixtures: canned E-utilities responses and a fake HTTP session."""

import logging
from unittest.mock import MagicMock

import pytest

ESEARCH_XML = b"""<?xml version="1.0" encoding="UTF-8" ?>
<!DOCTYPE eSearchResult PUBLIC "-//NLM//DTD esearch 20060628//EN" "https://eutils.ncbi.nlm.nih.gov/eutils/dtd/20060628/esearch.dtd">
<eSearchResult><Count>{count}</Count><RetMax>{count}</RetMax><RetStart>0</RetStart><IdList>
{ids}
</IdList></eSearchResult>
"""

ELINK_XML = b"""<?xml version="1.0" encoding="UTF-8" ?>
<!DOCTYPE eLinkResult PUBLIC "-//NLM//DTD elink 20101123//EN" "https://eutils.ncbi.nlm.nih.gov/eutils/dtd/20101123/elink.dtd">
<eLinkResult><LinkSet><DbFrom>gene</DbFrom><IdList><Id>{gene_id}</Id></IdList>
<LinkSetDb><DbTo>nuccore</DbTo><LinkName>{link_name}</LinkName>
{links}
</LinkSetDb></LinkSet></eLinkResult>
"""

GENBANK_TEXT = b"""LOCUS       NM_000546                 24 bp    mRNA    linear   PRI 01-JAN-2024
DEFINITION  Homo sapiens tumor protein p53 (TP53), transcript variant 1, mRNA.
ACCESSION   NM_000546
VERSION     NM_000546.6
KEYWORDS    RefSeq; MANE Select.
SOURCE      Homo sapiens (human)
  ORGANISM  Homo sapiens
            Eukaryota; Metazoa; Chordata.
FEATURES             Location/Qualifiers
     source          1..24
                     /organism="Homo sapiens"
ORIGIN
        1 atggaggagc cgcagtcaga tcct
//
"""


def esearch_xml(*ids):
    body = "\n".join(f"<Id>{i}</Id>" for i in ids)
    return (ESEARCH_XML
            .replace(b"{count}", str(len(ids)).encode())
            .replace(b"{ids}", body.encode()))


def elink_xml(gene_id, link_name, *accessions):
    body = "\n".join(f"<Link><Id>{a}</Id></Link>" for a in accessions)
    return (ELINK_XML
            .replace(b"{gene_id}", gene_id.encode())
            .replace(b"{link_name}", link_name.encode())
            .replace(b"{links}", body.encode()))


def make_response(content=b"", status_code=200, content_type="text/xml; charset=UTF-8",
                  url="https://eutils.ncbi.nlm.nih.gov/entrez/eutils/test.fcgi"):
    """Build a mock requests.Response usable directly or as a context manager."""
    response = MagicMock()
    response.status_code = status_code
    response.content = content
    response.headers = {'Content-Type': content_type}
    response.url = url
    response.iter_content.side_effect = lambda chunk_size=1: iter([content])
    response.__enter__.return_value = response
    response.__exit__.return_value = False
    return response


@pytest.fixture
def session():
    """Mock requests.Session; set ``session.get.side_effect`` per test."""
    return MagicMock()


@pytest.fixture(autouse=True)
def reset_package_logging():
    """Drop handlers installed by CLI runs so they don't leak between tests."""
    yield
    package_logger = logging.getLogger('refseq_downloader')
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)
