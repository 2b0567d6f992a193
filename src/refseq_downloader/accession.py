"""Accession extraction from bare tokens and NCBI URLs."""

import re
from typing import Optional

from .models import RecordType

NUCCORE_PATH_PATTERN = re.compile(r'/nuccore/', re.IGNORECASE)
ACCESSION_PATTERN = re.compile(r'(NM|NG)_\d+(\.\d+)?')
ID_PARAM_PATTERN = re.compile(r'id=', re.IGNORECASE)


def extract_accession(raw: Optional[str]) -> Optional[str]:
    """Extract an accession.version from a raw token.

    Accepts bare accessions (``NG_008847.2``), nuccore record URLs
    (``https://www.ncbi.nlm.nih.gov/nuccore/NG_008847.2?report=genbank``) and
    links carrying an ``id=`` parameter.

    Args:
        raw: Token from the input file

    Returns:
        Uppercased accession, or None if the token is not an accession
    """
    if raw is None:
        return None
    token = raw.strip()
    if not token:
        return None

    # Path segment following /nuccore/ is taken as is
    match = NUCCORE_PATH_PATTERN.search(token)
    if match:
        tail = token[match.end():].split('?', 1)[0].split('/', 1)[0].strip()
        if tail:
            return tail.upper()

    match = ID_PARAM_PATTERN.search(token)
    if match:
        tail = token[match.end():].split('&', 1)[0].strip()
        if tail:
            return tail.upper()

    candidate = token.upper()
    if ACCESSION_PATTERN.fullmatch(candidate):
        return candidate
    return None


def record_type_of(accession: str) -> Optional[RecordType]:
    """Get the record family of an accession from its literal prefix."""
    for record_type in RecordType:
        if accession.startswith(record_type.prefix):
            return record_type
    return None
