"""Configuration management for the RefSeq downloader."""

import json
import logging
import os
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import FrozenSet, Mapping, Optional

from .error_handler import ConfigurationError
from .models import ALL_RECORD_TYPES, FetchRange, InputMode, RecordType

logger = logging.getLogger(__name__)

DEFAULT_TAX_ID = "9606"  # Homo sapiens

INPUT_MODE_ALIASES = {
    'auto': InputMode.AUTO,
    'genes': InputMode.GENES,
    'gene': InputMode.GENES,
    'symbols': InputMode.GENES,
    'acc': InputMode.ACCESSIONS,
    'accession': InputMode.ACCESSIONS,
    'accessions': InputMode.ACCESSIONS,
}


@dataclass(frozen=True)
class APIConfig:
    """NCBI E-utilities identification and transport settings."""
    tool: str = "refseq_downloader"
    email: str = "user@example.com"
    api_key: Optional[str] = None
    connect_timeout_seconds: float = 20.0
    xml_timeout_seconds: float = 30.0
    fetch_timeout_seconds: float = 120.0

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key and self.api_key.strip())


@dataclass(frozen=True)
class DownloaderConfig:
    """Resolved settings of one downloader run."""
    input_mode: InputMode = InputMode.AUTO
    record_types: FrozenSet[RecordType] = frozenset()  # empty means defaults
    tax_id: str = DEFAULT_TAX_ID
    fetch_range: Optional[FetchRange] = None
    output_dir: Path = Path("out")
    api: APIConfig = field(default_factory=APIConfig)

    @classmethod
    def default(cls) -> 'DownloaderConfig':
        """Create default configuration."""
        return cls()

    @classmethod
    def from_file(cls, path: Path) -> 'DownloaderConfig':
        """Load configuration from JSON file.

        Raises:
            ConfigurationError: If the file is not valid JSON or has unknown settings
        """
        if not path.exists():
            return cls.default()

        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid config file {path}: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get('api', {}), dict):
            raise ConfigurationError(f"Invalid config file {path}: expected a JSON object")

        try:
            api = APIConfig(**data.get('api', {}))
        except TypeError as e:
            raise ConfigurationError(f"Invalid 'api' settings in {path}: {e}") from e

        config = cls(api=api)
        return config.with_cli_args(
            input_mode=data.get('input_mode'),
            record_types=data.get('record_types'),
            tax_id=data.get('tax_id'),
            ng_from=data.get('ng_from'),
            ng_to=data.get('ng_to'),
            output_dir=data.get('output_dir'),
        )

    def with_env_vars(self, environ: Optional[Mapping[str, str]] = None) -> 'DownloaderConfig':
        """Return a copy with NCBI_TOOL / NCBI_EMAIL / NCBI_API_KEY applied."""
        env = os.environ if environ is None else environ
        api = self.api
        if env.get('NCBI_TOOL'):
            api = replace(api, tool=env['NCBI_TOOL'])
        if env.get('NCBI_EMAIL'):
            api = replace(api, email=env['NCBI_EMAIL'])
        if env.get('NCBI_API_KEY'):
            api = replace(api, api_key=env['NCBI_API_KEY'])
        return replace(self, api=api)

    def with_cli_args(self, **kwargs) -> 'DownloaderConfig':
        """Return a copy with the given (non-None) command-line values applied.

        Raises:
            ConfigurationError: If a value cannot be parsed
        """
        changes = {}
        api_changes = {}

        if kwargs.get('input_mode') is not None:
            changes['input_mode'] = parse_input_mode(kwargs['input_mode'])
        if kwargs.get('record_types') is not None:
            changes['record_types'] = parse_record_types(kwargs['record_types'])
        if kwargs.get('tax_id') is not None:
            changes['tax_id'] = str(kwargs['tax_id']).strip()
        if kwargs.get('output_dir') is not None:
            changes['output_dir'] = Path(kwargs['output_dir'])

        if 'ng_from' in kwargs or 'ng_to' in kwargs:
            start = kwargs.get('ng_from')
            stop = kwargs.get('ng_to')
            if start is not None or stop is not None:
                changes['fetch_range'] = build_fetch_range(start, stop)

        for key in ('tool', 'email', 'api_key'):
            if kwargs.get(key):
                api_changes[key] = kwargs[key]
        if api_changes:
            changes['api'] = replace(self.api, **api_changes)

        return replace(self, **changes)

    def effective_record_types(self) -> FrozenSet[RecordType]:
        """Requested record types, both families when none were requested."""
        return self.record_types or ALL_RECORD_TYPES


def parse_input_mode(value) -> InputMode:
    """Parse an input mode name (auto, genes, acc and their aliases)."""
    if isinstance(value, InputMode):
        return value
    mode = INPUT_MODE_ALIASES.get(str(value).strip().lower())
    if mode is None:
        raise ConfigurationError(f"Unknown input mode: {value} (use auto|genes|acc)")
    return mode


def parse_record_types(value) -> FrozenSet[RecordType]:
    """Parse a record type list such as ``NM,NG``."""
    if isinstance(value, (set, frozenset, list, tuple)):
        value = ','.join(v.value if isinstance(v, RecordType) else str(v) for v in value)

    types = set()
    for token in re.split(r'[,;\s]+', str(value)):
        name = token.strip().upper()
        if not name:
            continue
        try:
            types.add(RecordType[name])
        except KeyError:
            raise ConfigurationError(f"Unknown type: {token} (use NM, NG, or NM,NG)") from None
    return frozenset(types)


def build_fetch_range(start, stop) -> Optional[FetchRange]:
    """
    Build the NG_ sub-sequence range from its two bounds.

    Args:
        start: 1-based first position, or None
        stop: 1-based last position (inclusive), or None

    Returns:
        FetchRange when both bounds are given, None otherwise

    Raises:
        ConfigurationError: If a bound is not a positive integer or stop < start
    """
    if start is None and stop is None:
        return None
    if start is None or stop is None:
        logger.warning("Both --ng-from and --ng-to must be set. Ignoring range.")
        return None

    try:
        start, stop = int(start), int(stop)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid NG_ range: {start}..{stop}") from None

    if start < 1 or stop < start:
        raise ConfigurationError(f"Invalid NG_ range: {start}..{stop} (1-based, inclusive)")
    return FetchRange(start, stop)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    locations = [
        Path.home() / '.refseq_downloader' / 'config.json',
        Path('.refseq_downloader.json'),
    ]

    for path in locations:
        if path.exists():
            return path

    return locations[0]
