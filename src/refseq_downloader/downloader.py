"""Run orchestration: gene mode and accession mode downloads."""

import logging
import re
from pathlib import Path
from typing import FrozenSet, Iterable, List, Optional

import requests

from .accession import extract_accession, record_type_of
from .config import DownloaderConfig
from .error_handler import ErrorHandler
from .eutils_client import EutilsClient
from .flatfile import describe_flat_file
from .input_parser import resolve_mode
from .logging_config import ProgressLogger
from .models import FetchRange, FetchResult, InputMode, RecordType, RunSummary
from .pacing import PacingPolicy

logger = logging.getLogger(__name__)

ACCESSIONS_DIR = "accessions"
GENBANK_SUFFIX = ".gb"
PATH_SEPARATORS = re.compile(r'[\\/]')


def filter_by_prefix(accessions: Iterable[str], record_type: RecordType) -> List[str]:
    """Keep accessions of one family, dropping duplicates but keeping order."""
    seen = {}
    for accession in accessions:
        accession = accession.strip()
        if accession.startswith(record_type.prefix):
            seen.setdefault(accession, None)
    return list(seen)


def select_accessions(tokens: Iterable[str], record_types: FrozenSet[RecordType]) -> List[str]:
    """
    Extract accessions from input tokens and keep the requested families.

    Tokens that are not accessions, and accessions outside NM_/NG_, are
    silently dropped.
    """
    selected = {}
    for token in tokens:
        accession = extract_accession(token)
        if not accession:
            continue
        accession = accession.strip()
        if record_type_of(accession) in record_types:
            selected.setdefault(accession, None)
    return list(selected)


def range_for(accession: str, fetch_range: Optional[FetchRange]) -> Optional[FetchRange]:
    """The sub-sequence range applies to NG_ records only."""
    if fetch_range is not None and record_type_of(accession) is RecordType.NG:
        return fetch_range
    return None


def gene_directory_name(symbol: str) -> str:
    """Directory name for a gene symbol, with path separators neutralised."""
    return PATH_SEPARATORS.sub('_', symbol)


def flat_file_name(accession: str) -> str:
    """File name for an accession, kept to a single path component."""
    return f"{PATH_SEPARATORS.sub('_', accession)}{GENBANK_SUFFIX}"


class Downloader:
    """Drives one download run over a normalized token list."""

    def __init__(self, config: DownloaderConfig,
                 client: Optional[EutilsClient] = None,
                 pacing: Optional[PacingPolicy] = None,
                 error_handler: Optional[ErrorHandler] = None,
                 check_files: bool = True):
        """
        Initialize the downloader.

        Args:
            config: Resolved run configuration
            client: E-utilities client (built from config.api if None)
            pacing: Pause policy applied after each fetch
            error_handler: Collects per-item failures
            check_files: Parse each downloaded file as GenBank and log a summary
        """
        self.config = config
        self.client = client or EutilsClient(config.api)
        self.pacing = pacing or PacingPolicy(has_api_key=config.api.has_api_key)
        self.error_handler = error_handler or ErrorHandler()
        self.check_files = check_files

    def run(self, tokens: List[str]) -> RunSummary:
        """
        Download every record reachable from the tokens.

        Args:
            tokens: Normalized gene symbols or accessions

        Returns:
            Summary of fetched files, unresolved symbols and failures
        """
        mode = resolve_mode(self.config.input_mode, tokens)
        record_types = self.config.effective_record_types()
        summary = RunSummary(mode=mode, record_types=record_types)

        self.config.output_dir.mkdir(parents=True, exist_ok=True)

        if mode is InputMode.ACCESSIONS:
            self._run_accession_mode(tokens, record_types, summary)
        else:
            self._run_gene_mode(tokens, record_types, summary)

        stats = self.pacing.get_stats()
        logger.debug(f"Paused {stats['total_pauses']} times, {stats['total_wait_time']:.1f}s in total")
        return summary

    def _run_gene_mode(self, symbols: List[str], record_types: FrozenSet[RecordType],
                       summary: RunSummary) -> None:
        logger.info(f"Input mode: GENES (symbols), taxid {self.config.tax_id}")
        progress = ProgressLogger(logger, len(symbols), "Genes")

        for symbol in symbols:
            logger.info(f"== {symbol} ==")
            try:
                results = self.process_gene(symbol, record_types, summary)
            except (requests.RequestException, OSError) as e:
                self.error_handler.handle_error(e, "process_gene", item_id=symbol)
                summary.failed_items.append(symbol)
                progress.update(success=False, item=symbol)
                continue

            summary.results[symbol] = results
            summary.failed_items.extend(r.accession for r in results if not r.ok)
            progress.update(success=all(r.ok for r in results), item=symbol)

        progress.complete()

    def process_gene(self, symbol: str, record_types: FrozenSet[RecordType],
                     summary: Optional[RunSummary] = None) -> List[FetchResult]:
        """
        Resolve one gene symbol and fetch its linked records.

        Raises:
            requests.RequestException: If ESearch or ELink fails
        """
        gene_dir = self.config.output_dir / gene_directory_name(symbol)
        gene_dir.mkdir(parents=True, exist_ok=True)

        gene_id = self.client.resolve_gene_id(symbol, self.config.tax_id)
        if gene_id is None:
            self.error_handler.record_miss("resolve_gene_id", symbol, "GeneID not found")
            if summary is not None:
                summary.unresolved.append(symbol)
            return []
        logger.info(f"  GeneID={gene_id}")

        results = []
        for record_type in RecordType:
            if record_type not in record_types:
                continue

            linked = self.client.traverse_links(gene_id, record_type.link_name)
            accessions = filter_by_prefix(linked, record_type)
            logger.info(f"  {record_type.prefix}={len(accessions)}")

            fetch_range = self.config.fetch_range if record_type is RecordType.NG else None
            for accession in accessions:
                results.append(self._fetch(accession, gene_dir, fetch_range))
        return results

    def _run_accession_mode(self, tokens: List[str], record_types: FrozenSet[RecordType],
                            summary: RunSummary) -> None:
        logger.info("Input mode: ACCESSIONS (ACC.V or NCBI URLs)")
        out_dir = self.config.output_dir / ACCESSIONS_DIR
        out_dir.mkdir(parents=True, exist_ok=True)

        accessions = select_accessions(tokens, record_types)
        logger.info(f"Accessions to download: {len(accessions)}")
        progress = ProgressLogger(logger, len(accessions), "Accessions")

        results = []
        for accession in accessions:
            result = self._fetch(accession, out_dir, range_for(accession, self.config.fetch_range))
            results.append(result)
            if not result.ok:
                summary.failed_items.append(accession)
            progress.update(success=result.ok, item=accession)

        summary.results[ACCESSIONS_DIR] = results
        progress.complete()

    def _fetch(self, accession: str, directory: Path,
               fetch_range: Optional[FetchRange]) -> FetchResult:
        """Fetch one accession into directory, then pause."""
        path = directory / flat_file_name(accession)
        record_type = record_type_of(accession)
        try:
            self.client.fetch_flat_file(accession, path, fetch_range)
        except (requests.RequestException, OSError) as e:
            context = self.error_handler.handle_error(e, "fetch_flat_file", item_id=accession)
            return FetchResult(accession, path, record_type, fetch_range, ok=False, error=context.message)
        finally:
            self.pacing.pause()

        if self.check_files:
            file_summary = describe_flat_file(path)
            if file_summary is not None:
                logger.info(f"    {file_summary.record_id}: {file_summary.length} bp, "
                            f"{file_summary.description}")
        else:
            logger.info(f"    {accession}")

        return FetchResult(accession, path, record_type, fetch_range)
