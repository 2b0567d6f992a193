"""Data models for the RefSeq GenBank downloader."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional


class InputMode(Enum):
    """How the tokens of an input file are interpreted."""
    AUTO = "auto"
    GENES = "genes"
    ACCESSIONS = "accessions"


class RecordType(Enum):
    """RefSeq record families handled by the downloader."""
    NM = "NM"  # mRNA / transcript records
    NG = "NG"  # RefSeqGene genomic records

    @property
    def prefix(self) -> str:
        """Accession prefix of this family, e.g. ``NM_``."""
        return f"{self.value}_"

    @property
    def link_name(self) -> str:
        """ELink relation from gene to nuccore selecting this family."""
        return _LINK_NAMES[self]


_LINK_NAMES = {
    RecordType.NM: "gene_nuccore_refseqrna",
    RecordType.NG: "gene_nuccore_refseqgene",
}

ALL_RECORD_TYPES: FrozenSet[RecordType] = frozenset(RecordType)


@dataclass(frozen=True)
class GeneQuery:
    """Organism-scoped gene symbol search."""

    symbol: str
    tax_id: str

    @property
    def term(self) -> str:
        """ESearch term for this query."""
        return f"{self.symbol}[Gene Name] AND txid{self.tax_id}[Organism]"


@dataclass(frozen=True)
class FetchRange:
    """1-based, inclusive sub-sequence window applied to NG_ fetches."""

    start: int
    stop: int

    def __str__(self) -> str:
        return f"{self.start}..{self.stop}"


@dataclass(frozen=True)
class FetchResult:
    """Outcome of fetching a single accession."""

    accession: str
    path: Path
    record_type: Optional[RecordType] = None
    fetch_range: Optional[FetchRange] = None
    ok: bool = True
    error: Optional[str] = None


@dataclass
class RunSummary:
    """What happened during one downloader run."""

    mode: InputMode
    record_types: FrozenSet[RecordType]
    results: Dict[str, List[FetchResult]] = field(default_factory=dict)
    unresolved: List[str] = field(default_factory=list)
    failed_items: List[str] = field(default_factory=list)

    @property
    def fetched(self) -> List[FetchResult]:
        return [r for results in self.results.values() for r in results if r.ok]

    @property
    def failed_fetches(self) -> List[FetchResult]:
        return [r for results in self.results.values() for r in results if not r.ok]
