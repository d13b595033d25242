import asyncio
import logging
import sys
from pathlib import Path

import click
from eth_typing import ChecksumAddress
from web3 import Web3

import src
from src.common.clients import close_clients, setup_clients
from src.common.contracts import deposit_contract
from src.common.logging import LOG_LEVELS, setup_logging
from src.common.startup_check import startup_checks, validate_settings
from src.common.utils import get_build_version, greenify, log_verbose, redify
from src.common.validators import validate_eth_address, validate_positive_int
from src.config.networks import AVAILABLE_NETWORKS
from src.config.settings import (
    DEFAULT_NETWORK,
    LOG_FORMATS,
    LOG_PLAIN,
    LedgerType,
    settings,
)
from src.deposits.exceptions import (
    BatchAbortedError,
    DepositDataFileError,
    LedgerUnavailableError,
)
from src.deposits.ledger import (
    BaseCompletionLedger,
    DatabaseCompletionLedger,
    FileCompletionLedger,
)
from src.deposits.loader import load_deposit_data
from src.deposits.processor import BatchProcessor
from src.deposits.submitter import DepositTxConfig, Web3Submitter
from src.deposits.typings import (
    BatchReport,
    DepositRecord,
    RecordStatus,
    get_total_amount_wei,
)

logger = logging.getLogger(__name__)

# Standard python exit codes:
# 0 - success
# 1 - error
FAILED_DEPOSITS_EXIT_CODE = 2


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
@click.option(
    '--execution-endpoint',
    type=str,
    required=True,
    envvar='EXECUTION_ENDPOINT',
    help='API endpoint for the execution node.',
)
@click.option(
    '--deposit-contract',
    'deposit_contract_address',
    type=str,
    envvar='DEPOSIT_CONTRACT',
    callback=validate_eth_address,
    help='Address of the deposit contract. Default is the deposit contract of the network.',
)
@click.option(
    '--gas-limit',
    type=int,
    envvar='GAS_LIMIT',
    callback=validate_positive_int,
    help='Gas limit of each deposit transaction. Estimated by the node if not set.',
)
@click.option(
    '--gas-price-gwei',
    type=int,
    envvar='GAS_PRICE',
    callback=validate_positive_int,
    help='Gas price in Gwei. Sends legacy transactions when set.',
)
@click.option(
    '--max-fee-per-gas-gwei',
    type=int,
    envvar='MAX_FEE_PER_GAS_GWEI',
    callback=validate_positive_int,
    help='Maximum fee per gas in Gwei. Default is the network default.',
)
@click.option(
    '--wallet-file',
    type=click.Path(exists=True, file_okay=True, dir_okay=False),
    envvar='WALLET_FILE',
    help='Absolute path to the encrypted wallet keystore. '
    'Not needed when WALLET_PRIVATE_KEY is set.',
)
@click.option(
    '--wallet-password-file',
    type=click.Path(exists=True, file_okay=True, dir_okay=False),
    envvar='WALLET_PASSWORD_FILE',
    help='Absolute path to the wallet password file.',
)
@click.option(
    '--ledger',
    'ledger_type',
    default=LedgerType.FILE.value,
    envvar='LEDGER',
    help='Where completion markers are stored: one file per deposit or a sqlite database.',
    type=click.Choice(
        [t.value for t in LedgerType],
        case_sensitive=False,
    ),
)
@click.option(
    '--markers-dir',
    type=click.Path(exists=False, file_okay=False, dir_okay=True),
    envvar='MARKERS_DIR',
    help='Directory for completion markers. '
    'Default is "<deposit data file>-locks" next to the deposit data file.',
)
@click.option(
    '--log-format',
    type=click.Choice(
        LOG_FORMATS,
        case_sensitive=False,
    ),
    default=LOG_PLAIN,
    envvar='LOG_FORMAT',
    help='The log record format. Can be "plain" or "json".',
)
@click.option(
    '--log-level',
    type=click.Choice(
        LOG_LEVELS,
        case_sensitive=False,
    ),
    default='INFO',
    envvar='LOG_LEVEL',
    help='The log level.',
)
@click.option(
    '-v',
    '--verbose',
    help='Enable debug mode. Default is false.',
    envvar='VERBOSE',
    is_flag=True,
)
@click.option(
    '--no-confirm',
    is_flag=True,
    default=False,
    help='Skips confirmation messages when provided.',
)
@click.command(help='Sends deposit transactions for every deposit in the deposit data file')
# pylint: disable-next=too-many-arguments,too-many-locals
def batch_deposit(
    deposit_data_file: str,
    network: str,
    execution_endpoint: str,
    deposit_contract_address: ChecksumAddress | None,
    gas_limit: int | None,
    gas_price_gwei: int | None,
    max_fee_per_gas_gwei: int | None,
    wallet_file: str | None,
    wallet_password_file: str | None,
    ledger_type: str,
    markers_dir: str | None,
    log_format: str,
    log_level: str,
    verbose: bool,
    no_confirm: bool,
) -> None:
    settings.set(
        deposit_data_file=Path(deposit_data_file),
        network=network,
        execution_endpoint=execution_endpoint,
        deposit_contract_address=deposit_contract_address,
        gas_limit=gas_limit,
        gas_price_gwei=gas_price_gwei,
        max_fee_per_gas_gwei=max_fee_per_gas_gwei,
        wallet_file=wallet_file,
        wallet_password_file=wallet_password_file,
        ledger_type=LedgerType(ledger_type),
        markers_dir=markers_dir,
        verbose=verbose,
        log_level=log_level,
        log_format=log_format,
    )
    setup_logging()
    setup_sentry()
    validate_settings()
    log_start()

    try:
        records = load_deposit_data(settings.deposit_data_file, settings.network)
        ledger = load_ledger()
        ledger.setup()
        pending_records = [r for r in records if not ledger.is_complete(r.public_key_hex)]
    except (DepositDataFileError, LedgerUnavailableError) as e:
        log_verbose(e)
        sys.exit(1)

    if not pending_records:
        click.echo('All deposits from the deposit data file are already processed.')
        return

    if not no_confirm:
        click.confirm(
            f'Send {len(pending_records)} of {len(records)} deposits with total amount of '
            f'{_format_total(pending_records)} {settings.network_config.WALLET_BALANCE_SYMBOL} '
            f'to {settings.deposit_contract_address}?',
            abort=True,
        )

    try:
        report = asyncio.run(process_deposits(records, pending_records, ledger))
    except BatchAbortedError as e:
        print_report(e.report)
        log_verbose(e)
        sys.exit(1)
    except Exception as e:
        log_verbose(e)
        sys.exit(1)

    print_report(report)
    if not report.is_success:
        sys.exit(FAILED_DEPOSITS_EXIT_CODE)


async def process_deposits(
    records: list[DepositRecord],
    pending_records: list[DepositRecord],
    ledger: BaseCompletionLedger,
) -> BatchReport:
    await setup_clients()
    try:
        if not settings.skip_startup_checks:
            await startup_checks(pending_records)

        submitter = Web3Submitter(
            contract=deposit_contract,
            tx_config=DepositTxConfig(
                gas_limit=settings.gas_limit,
                gas_price_gwei=settings.gas_price_gwei,
                max_fee_per_gas_gwei=settings.max_fee_per_gas_gwei,
            ),
        )
        processor = BatchProcessor(
            ledger=ledger,
            submitter=submitter,
            min_deposit_amount_gwei=settings.network_config.MIN_DEPOSIT_AMOUNT_GWEI,
        )
        return await processor.process_batch(records)
    finally:
        await close_clients()


def load_ledger() -> BaseCompletionLedger:
    if settings.ledger_type == LedgerType.DATABASE:
        return DatabaseCompletionLedger(settings.markers_db)
    return FileCompletionLedger(settings.markers_dir)


def print_report(report: BatchReport) -> None:
    for result in report.results:
        if result.status == RecordStatus.SUBMITTED:
            click.echo(f'{greenify("submitted")} {result.public_key} tx {result.tx_hash}')
        elif result.status == RecordStatus.SKIPPED:
            click.echo(f'skipped   {result.public_key}')
        else:
            click.echo(f'{redify("failed")}    {result.public_key}: {result.error}')

    click.echo(
        f'Submitted: {len(report.submitted)}, '
        f'skipped: {len(report.skipped)}, '
        f'failed: {len(report.failed)}'
    )


def log_start() -> None:
    build = get_build_version()
    start_str = 'Starting batch deposit'

    if build:
        logger.info('%s, version %s, build %s', start_str, src.__version__, build)
    else:
        logger.info('%s, version %s', start_str, src.__version__)


def setup_sentry() -> None:
    if settings.sentry_dsn:
        # pylint: disable-next=import-outside-toplevel
        import sentry_sdk

        sentry_sdk.init(
            settings.sentry_dsn,
            traces_sample_rate=0.1,
            environment=settings.sentry_environment or settings.network,
        )
        sentry_sdk.set_tag('network', settings.network)
        sentry_sdk.set_tag('project_version', src.__version__)


def _format_total(records: list[DepositRecord]) -> str:
    return str(Web3.from_wei(get_total_amount_wei(records), 'ether'))
