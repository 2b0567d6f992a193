"""Quick sanity check of downloaded GenBank flat files."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from Bio import SeqIO

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlatFileSummary:
    """First record of a GenBank file."""
    record_id: str
    length: int
    description: str


def describe_flat_file(path: Path) -> Optional[FlatFileSummary]:
    """
    Parse the first record of a GenBank file.

    NCBI occasionally answers EFetch with status 200 and an error message
    instead of a record; such files are reported but left in place.

    Args:
        path: Downloaded .gb file

    Returns:
        Summary of the first record, or None if the file is not GenBank
    """
    try:
        with open(path, 'r') as handle:
            record = next(SeqIO.parse(handle, "genbank"), None)
    except (ValueError, OSError) as e:
        logger.warning(f"{path.name} does not look like a GenBank file: {e}")
        return None

    if record is None:
        logger.warning(f"{path.name} contains no GenBank record")
        return None

    return FlatFileSummary(
        record_id=record.id,
        length=len(record.seq),
        description=record.description,
    )
