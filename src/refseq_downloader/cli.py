"""Command-line interface for the RefSeq GenBank downloader."""

import sys
from dataclasses import replace
from pathlib import Path
from typing import Dict, Sequence

import click

from .config import DownloaderConfig, get_default_config_path
from .cli_utils import echo, echo_run_header, echo_summary, set_quiet_mode
from .downloader import Downloader
from .error_handler import ConfigurationError, EmptyInputError, ErrorHandler
from .input_parser import read_list_file, resolve_mode
from .logging_config import setup_logging


def parse_legacy_args(args: Sequence[str]) -> Dict[str, str]:
    """
    Map old-style positional arguments: FILE [TAXID [NG_FROM [NG_TO]]].

    Raises:
        click.UsageError: If an extra argument is not numeric
    """
    values = {}
    if not args:
        return values

    values['input_file'] = args[0]
    for name, value in zip(('tax_id', 'ng_from', 'ng_to'), args[1:]):
        if not value.isdigit():
            raise click.UsageError(f"Unexpected argument: {value}")
        values[name] = value
    if len(args) > 4:
        raise click.UsageError(f"Unexpected argument: {args[4]}")
    return values


@click.command(context_settings={'help_option_names': ['-h', '--help']})
@click.argument('legacy_args', nargs=-1, metavar='[FILE [TAXID [NG_FROM NG_TO]]]')
@click.option('--in', '-i', 'input_file', type=click.Path(dir_okay=False), help='Input file of gene symbols or accessions')
@click.option('--input', '-m', 'input_mode', help='Input mode: auto|genes|acc (default: auto)')
@click.option('--types', '-t', 'record_types', help='Record types to download: NM, NG or NM,NG (default: both)')
@click.option('--taxid', 'tax_id', help='NCBI taxonomy id for gene search (default: 9606)')
@click.option('--ng-from', type=int, help='First position of NG_ range (1-based)')
@click.option('--ng-to', type=int, help='Last position of NG_ range (inclusive)')
@click.option('--out', '-o', 'output_dir', type=click.Path(file_okay=False), help='Output directory (default: out)')
@click.option('--tool', help='Tool name sent to NCBI [env: NCBI_TOOL]')
@click.option('--email', help='Contact email sent to NCBI [env: NCBI_EMAIL]')
@click.option('--api-key', help='NCBI API key for higher rate limits [env: NCBI_API_KEY]')
@click.option('--config', 'config_file', type=click.Path(exists=True, dir_okay=False), help='Configuration file path')
@click.option('--log-file', type=click.Path(dir_okay=False), help='Also write logs to this file')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress all output except errors')
def main(legacy_args, input_file, input_mode, record_types, tax_id, ng_from, ng_to,
         output_dir, tool, email, api_key, config_file, log_file, verbose, quiet):
    """NCBI RefSeq GenBank Downloader.

    Download GenBank files of RefSeq transcripts (NM_) and RefSeqGene
    records (NG_) for gene symbols or accessions listed in a file.

    The input file holds one or more tokens per line, separated by
    whitespace, commas or semicolons; lines starting with # are comments.

    Examples:
        refseq-downloader --in genes.txt --input genes --types NM,NG
        refseq-downloader --in acc.txt --input acc --types NG --ng-from 13732 --ng-to 58896
    """
    if quiet and verbose:
        echo("Error: Cannot use both --quiet and --verbose", err=True)
        sys.exit(1)

    set_quiet_mode(quiet)
    setup_logging(log_level="DEBUG" if verbose else "INFO", log_file=log_file, quiet=quiet)

    legacy = parse_legacy_args(legacy_args)
    input_file = input_file or legacy.get('input_file')
    if not input_file:
        raise click.UsageError("Input file is required. Use --in <file> or -i <file>.")

    config_path = Path(config_file) if config_file else get_default_config_path()
    try:
        cfg = DownloaderConfig.from_file(config_path).with_env_vars().with_cli_args(
            input_mode=input_mode,
            record_types=record_types,
            tax_id=tax_id or legacy.get('tax_id'),
            ng_from=ng_from if ng_from is not None else legacy.get('ng_from'),
            ng_to=ng_to if ng_to is not None else legacy.get('ng_to'),
            output_dir=output_dir,
            tool=tool,
            email=email,
            api_key=api_key,
        )
    except ConfigurationError as e:
        raise click.UsageError(str(e))

    try:
        tokens = read_list_file(input_file)
    except (FileNotFoundError, EmptyInputError) as e:
        echo(f"ERROR: {e}", err=True)
        sys.exit(1)

    mode = resolve_mode(cfg.input_mode, tokens)
    cfg = replace(cfg, input_mode=mode)
    echo_run_header(mode, cfg.effective_record_types(), cfg.tax_id, cfg.fetch_range)

    error_handler = ErrorHandler()
    summary = Downloader(cfg, error_handler=error_handler).run(tokens)
    echo_summary(summary, error_handler.get_error_summary())


if __name__ == '__main__':
    main()
