import logging
from typing import Sequence

from click import ClickException
from web3 import Web3

from src.common.clients import execution_client
from src.common.contracts import deposit_contract
from src.common.wallet import wallet
from src.config.settings import settings
from src.deposits.typings import DepositRecord, get_total_amount_wei

logger = logging.getLogger(__name__)


async def startup_checks(records: Sequence[DepositRecord]) -> None:
    logger.info('Checking connection to execution node...')
    await _check_execution_node_network()

    logger.info('Checking deposit contract %s...', settings.deposit_contract_address)
    await _check_deposit_contract()

    logger.info('Checking wallet balance %s...', wallet.address)
    await check_wallet_balance(records)


def validate_settings() -> None:
    if not settings.execution_endpoint:
        raise ClickException('EXECUTION_ENDPOINT is missing')
    if settings.gas_price_gwei is not None and settings.gas_price_gwei <= 0:
        raise ClickException('Gas price must be positive')
    if settings.gas_limit is not None and settings.gas_limit <= 0:
        raise ClickException('Gas limit must be positive')
    try:
        wallet.account
    except ValueError as e:
        raise ClickException(str(e)) from e


async def _check_execution_node_network() -> None:
    chain_id = await execution_client.eth.chain_id
    expected_chain_id = settings.network_config.CHAIN_ID
    if chain_id != expected_chain_id:
        raise ClickException(
            f'Execution node chain id {chain_id} does not match '
            f'{settings.network} chain id {expected_chain_id}'
        )
    logger.info('Connected to execution node, chain id %s', chain_id)


async def _check_deposit_contract() -> None:
    code = await execution_client.eth.get_code(settings.deposit_contract_address)
    if not code:
        raise ClickException(
            f'No contract deployed at {settings.deposit_contract_address} on {settings.network}'
        )
    deposit_count = await deposit_contract.get_deposit_count()
    logger.info('Deposit contract has %d deposits', deposit_count)


async def check_wallet_balance(records: Sequence[DepositRecord]) -> None:
    symbol = settings.network_config.WALLET_BALANCE_SYMBOL
    required_balance = get_total_amount_wei(records)
    wallet_balance = await execution_client.eth.get_balance(wallet.address)

    if wallet_balance < required_balance:
        logger.warning(
            'Wallet %s balance %s %s is less than total deposit amount %s %s. '
            'Some deposits will fail.',
            wallet.address,
            Web3.from_wei(wallet_balance, 'ether'),
            symbol,
            Web3.from_wei(required_balance, 'ether'),
            symbol,
        )
