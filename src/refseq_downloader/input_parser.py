"""Input list parsing and input mode detection."""

import logging
import re
from pathlib import Path
from typing import Iterable, List, Union

from .accession import extract_accession
from .error_handler import EmptyInputError
from .models import InputMode, RecordType

logger = logging.getLogger(__name__)

# Whitespace, comma or semicolon separate tokens on a line
TOKEN_SEPARATORS = re.compile(r'[,;\s]+')


def normalize_tokens(lines: Iterable[str]) -> List[str]:
    """
    Turn raw input lines into uppercase tokens.

    Blank lines and lines starting with ``#`` are skipped. Later duplicates
    are dropped, first-seen order is kept.

    Args:
        lines: Raw lines of an input file

    Returns:
        Ordered, duplicate-free list of tokens
    """
    tokens = {}
    for line in lines:
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        for part in TOKEN_SEPARATORS.split(line):
            part = part.strip()
            if part:
                tokens.setdefault(part.upper(), None)
    return list(tokens)


def read_list_file(file_path: Union[str, Path]) -> List[str]:
    """
    Read and normalize a gene symbol / accession list file.

    Raises:
        FileNotFoundError: If file doesn't exist
        EmptyInputError: If the file has no tokens
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {file_path}")

    with open(path, 'r', encoding='utf-8') as f:
        tokens = normalize_tokens(f)

    if not tokens:
        raise EmptyInputError(f"Input file is empty: {file_path}")

    logger.debug(f"Read {len(tokens)} tokens from {path}")
    return tokens


def infer_mode(tokens: Iterable[str]) -> InputMode:
    """Classify tokens as accessions if any of them extracts to NM_/NG_."""
    prefixes = tuple(t.prefix for t in RecordType)
    for token in tokens:
        accession = extract_accession(token)
        if accession is None:
            continue
        if accession.startswith(prefixes):
            return InputMode.ACCESSIONS
    return InputMode.GENES


def resolve_mode(mode: InputMode, tokens: List[str]) -> InputMode:
    """Resolve AUTO to a concrete input mode."""
    if mode is InputMode.AUTO:
        resolved = infer_mode(tokens)
        logger.debug(f"Input mode auto-detected as {resolved.value}")
        return resolved
    return mode
