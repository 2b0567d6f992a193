"""NCBI E-utilities client: ESearch, ELink and EFetch."""

import logging
from pathlib import Path
from typing import Dict, List, Optional

import requests

from .config import APIConfig
from .error_handler import EutilsError
from .logging_config import LogTimer
from .models import FetchRange, GeneQuery
from .xml_reader import SafeXmlReader, extract_text_values

logger = logging.getLogger(__name__)


class EutilsClient:
    """Resolves gene symbols, follows gene-to-nuccore links and fetches GenBank files."""

    NCBI_BASE_URL = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils"
    SEARCH_RETMAX = 5
    CHUNK_SIZE = 64 * 1024
    PARTIAL_SUFFIX = ".part"

    def __init__(self, api: Optional[APIConfig] = None,
                 session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            api: Tool name, contact email, optional API key and timeouts
            session: HTTP session to use (a new one if None)
        """
        self.api = api or APIConfig()
        self.session = session or requests.Session()
        self.xml_reader = SafeXmlReader(
            session=self.session,
            user_agent=f"{self.api.tool} ({self.api.email})",
            timeout=(self.api.connect_timeout_seconds, self.api.xml_timeout_seconds),
        )

    def _url(self, endpoint: str) -> str:
        return f"{self.NCBI_BASE_URL}/{endpoint}"

    def _params(self, params: Dict[str, str]) -> Dict[str, str]:
        """Add tool, email and (if set) api_key to request parameters."""
        params = dict(params)
        params['tool'] = self.api.tool
        params['email'] = self.api.email
        if self.api.has_api_key:
            params['api_key'] = self.api.api_key
        return params

    def resolve_gene_id(self, symbol: str, tax_id: str) -> Optional[str]:
        """
        Find the NCBI GeneID of a gene symbol within one organism.

        Only the first search hit is used; ambiguous symbols are not reported.

        Args:
            symbol: Gene symbol, e.g. BRCA1
            tax_id: NCBI taxonomy id, e.g. 9606

        Returns:
            GeneID, or None if the search found nothing
        """
        query = GeneQuery(symbol, tax_id)
        params = self._params({
            'db': 'gene',
            'term': query.term,
            'retmode': 'xml',
            'retmax': str(self.SEARCH_RETMAX),
        })

        with LogTimer(f"ESearch {query.term}", logger):
            document = self.xml_reader.fetch_xml(self._url("esearch.fcgi"), params)

        ids = extract_text_values(document, "//IdList/Id/text()")
        if not ids:
            logger.info(f"No GeneID found for {symbol} (taxid {tax_id})")
            return None

        if len(ids) > 1:
            logger.debug(f"{len(ids)} GeneIDs for {symbol}, using first: {ids[0]}")
        return ids[0].strip()

    def traverse_links(self, gene_id: str, link_name: str) -> List[str]:
        """
        Follow a gene -> nuccore link and return accession.version strings.

        The relation only approximates the record family; callers filter the
        result by prefix and remove duplicates.

        Args:
            gene_id: NCBI GeneID
            link_name: ELink relation, e.g. gene_nuccore_refseqrna

        Returns:
            Linked accessions as returned by NCBI
        """
        params = self._params({
            'dbfrom': 'gene',
            'db': 'nuccore',
            'id': gene_id,
            'linkname': link_name,
            'idtype': 'acc',
            'retmode': 'xml',
        })

        with LogTimer(f"ELink {gene_id} {link_name}", logger):
            document = self.xml_reader.fetch_xml(self._url("elink.fcgi"), params)

        accessions = extract_text_values(document, "//LinkSetDb/Link/Id/text()")
        logger.debug(f"ELink {link_name} for GeneID {gene_id}: {len(accessions)} accessions")
        return accessions

    def fetch_flat_file(self, accession: str, output_path: Path,
                        fetch_range: Optional[FetchRange] = None) -> Path:
        """
        Download the GenBank flat file (gbwithparts) of an accession.

        Args:
            accession: Accession.version, e.g. NM_000546.6
            output_path: Destination file, replaced once the download completes
            fetch_range: Optional 1-based inclusive window (seq_start/seq_stop)

        Returns:
            Path of the written file

        Raises:
            EutilsError: On transport failure or non-success status
        """
        params = {
            'db': 'nuccore',
            'id': accession,
            'rettype': 'gbwithparts',
            'retmode': 'text',
        }
        if fetch_range is not None:
            params['seq_start'] = str(fetch_range.start)
            params['seq_stop'] = str(fetch_range.stop)
        params = self._params(params)

        url = self._url("efetch.fcgi")
        timeout = (self.api.connect_timeout_seconds, self.api.fetch_timeout_seconds)
        output_path = Path(output_path)
        partial_path = output_path.with_name(output_path.name + self.PARTIAL_SUFFIX)

        with LogTimer(f"EFetch {accession}", logger):
            try:
                with self.session.get(url, params=params, stream=True, timeout=timeout,
                                      headers={'User-Agent': self.xml_reader.user_agent}) as response:
                    if response.status_code != 200:
                        raise EutilsError(
                            f"EFetch HTTP {response.status_code} for {accession}",
                            status_code=response.status_code,
                            url=response.url,
                        )

                    with open(partial_path, 'wb') as f:
                        for chunk in response.iter_content(chunk_size=self.CHUNK_SIZE):
                            if chunk:
                                f.write(chunk)
                partial_path.replace(output_path)
            except EutilsError:
                raise
            except requests.RequestException as e:
                raise EutilsError(f"EFetch for {accession} failed: {e}", url=url) from e
            finally:
                # Only complete downloads reach output_path
                if partial_path.exists():
                    partial_path.unlink()

        logger.debug(f"Saved {accession} to {output_path}")
        return output_path
