"""Hardened retrieval and parsing of E-utilities XML responses.

NCBI documents declare a DOCTYPE pointing at an external DTD. The parser below
accepts the declaration but never loads the DTD, never expands entities, never
touches the network and resolves every entity lookup to an empty document.
Keep these settings as they are: they are what blocks XML external entity
(XXE) attacks.
"""

import logging
from typing import Any, Dict, List, Optional

import requests
from lxml import etree

from .error_handler import EutilsError

logger = logging.getLogger(__name__)

BODY_SNIPPET_LENGTH = 400


class _EmptyResolver(etree.Resolver):
    """Answers every DTD/entity lookup with an empty document."""

    def resolve(self, system_url, public_id, context):
        logger.debug(f"Refusing to resolve external reference: {system_url}")
        return self.resolve_string('', context)


class SafeXmlReader:
    """Fetches XML over HTTP and parses it with external resolution disabled."""

    PARSER_OPTIONS = {
        'resolve_entities': False,
        'load_dtd': False,
        'dtd_validation': False,
        'attribute_defaults': False,
        'no_network': True,
        'huge_tree': False,
        'ns_clean': False,
        'remove_comments': True,
        'remove_pis': True,
    }

    def __init__(self, session: Optional[requests.Session] = None,
                 user_agent: str = "refseq_downloader",
                 timeout: Any = 30):
        """
        Initialize the reader.

        Args:
            session: HTTP session to use (a new one if None)
            user_agent: Descriptive client identifier sent with every request
            timeout: requests timeout for XML calls
        """
        self.session = session or requests.Session()
        self.user_agent = user_agent
        self.timeout = timeout

    def make_parser(self) -> etree.XMLParser:
        """Create a parser with the hardened configuration."""
        parser = etree.XMLParser(**self.PARSER_OPTIONS)
        parser.resolvers.add(_EmptyResolver())
        return parser

    def parse(self, content: bytes, url: Optional[str] = None) -> etree._Element:
        """Parse XML bytes with the hardened parser."""
        try:
            return etree.fromstring(content, self.make_parser())
        except etree.XMLSyntaxError as e:
            raise EutilsError(f"Malformed XML from {url}: {e}", url=url) from e

    def fetch_xml(self, url: str, params: Optional[Dict[str, str]] = None) -> etree._Element:
        """
        GET an XML document and parse it.

        Args:
            url: Endpoint URL
            params: Query parameters (percent-encoded by requests)

        Returns:
            Root element of the parsed document

        Raises:
            EutilsError: On transport failure, non-success status, non-XML
                content type or malformed XML
        """
        headers = {
            'Accept': 'application/xml',
            'User-Agent': self.user_agent,
        }

        try:
            response = self.session.get(url, params=params, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise EutilsError(f"Request to {url} failed: {e}", url=url) from e

        if response.status_code != 200:
            snippet = _snippet(response)
            raise EutilsError(
                f"HTTP {response.status_code} for {response.url}\nBody: {snippet}",
                status_code=response.status_code,
                body_snippet=snippet,
                url=response.url,
            )

        content_type = response.headers.get('Content-Type', '')
        if 'xml' not in content_type.lower():
            snippet = _snippet(response)
            raise EutilsError(
                f"Expected XML but got Content-Type: {content_type}\nBody: {snippet}",
                body_snippet=snippet,
                url=response.url,
            )

        return self.parse(response.content, url=response.url)


def extract_text_values(document: etree._Element, path: str) -> List[str]:
    """
    Evaluate an XPath expression and return the text of every match.

    Args:
        document: Parsed document (or any element in it)
        path: XPath expression, e.g. ``//IdList/Id/text()``

    Returns:
        Matched texts in document order
    """
    values = []
    for node in document.xpath(path):
        if isinstance(node, etree._Element):
            values.append(''.join(node.itertext()))
        else:
            values.append(str(node))
    return values


def _snippet(response: requests.Response) -> str:
    return response.content.decode('utf-8', errors='replace')[:BODY_SNIPPET_LENGTH]
