import sys
from pathlib import Path

import click

from src.commands.batch_deposit import FAILED_DEPOSITS_EXIT_CODE
from src.common.utils import greenify, redify
from src.config.networks import AVAILABLE_NETWORKS
from src.config.settings import DEFAULT_NETWORK
from src.deposits.commitment import (
    build_commitment,
    commitment_to_hex,
    verify_deposit_data_root,
)
from src.deposits.exceptions import DepositDataFileError, MalformedRecordError
from src.deposits.loader import load_deposit_data


@click.option(
    '--deposit-data-file',
    required=True,
    envvar='DEPOSIT_DATA_FILE',
    help='Path to the deposit data file generated by the staking deposit CLI.',
    type=click.Path(exists=True, file_okay=True, dir_okay=False),
)
@click.option(
    '--network',
    default=DEFAULT_NETWORK,
    envvar='NETWORK',
    help=f'The network of the deposits. Default is {DEFAULT_NETWORK}.',
    type=click.Choice(
        AVAILABLE_NETWORKS,
        case_sensitive=False,
    ),
)
@click.command(
    help='Computes deposit data roots for the deposit data file '
    'and compares them with the roots stored in the file'
)
def compute_deposit_root(deposit_data_file: str, network: str) -> None:
    try:
        records = load_deposit_data(Path(deposit_data_file), network)
    except DepositDataFileError as e:
        raise click.ClickException(str(e)) from e

    has_errors = False
    for record in records:
        public_key = f'0x{record.public_key_hex}'
        try:
            commitment = build_commitment(record)
            verify_deposit_data_root(record, commitment)
        except MalformedRecordError as e:
            has_errors = True
            click.echo(f'{redify("invalid")} {public_key}: {e}')
            continue
        click.echo(f'{greenify("valid")}   {public_key} {commitment_to_hex(commitment)}')

    if has_errors:
        sys.exit(FAILED_DEPOSITS_EXIT_CODE)
