import json
import logging
from pathlib import Path

from web3 import Web3
from web3.types import Gwei

from src.config.networks import NETWORKS
from src.deposits.exceptions import DepositDataFileError
from src.deposits.typings import DepositRecord

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ('pubkey', 'withdrawal_credentials', 'amount', 'signature')


def load_deposit_data(path: Path, network: str) -> list[DepositRecord]:
    """
    Reads the deposit data file generated by the staking deposit CLI.
    Byte lengths are not validated here, malformed records are reported per record.
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            deposit_data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise DepositDataFileError(f"Can't read deposit data file {path}: {e}") from e

    if not isinstance(deposit_data, list):
        raise DepositDataFileError('Deposit data file must contain a list of deposits')

    records: list[DepositRecord] = []
    public_keys: set[bytes] = set()
    for index, item in enumerate(deposit_data):
        record = parse_deposit_record(item, index, network)
        if record.public_key in public_keys:
            raise DepositDataFileError(
                f'Duplicate public key {Web3.to_hex(record.public_key)} at index {index}'
            )
        public_keys.add(record.public_key)
        records.append(record)

    logger.info('Loaded %d deposits from %s', len(records), path)
    return records


def parse_deposit_record(item: dict, index: int, network: str) -> DepositRecord:
    if not isinstance(item, dict):
        raise DepositDataFileError(f'Deposit at index {index} is not an object')

    missing_fields = [field for field in REQUIRED_FIELDS if field not in item]
    if missing_fields:
        raise DepositDataFileError(
            f'Deposit at index {index} misses fields: {", ".join(missing_fields)}'
        )

    _check_network(item, index, network)

    deposit_data_root = None
    if item.get('deposit_data_root'):
        deposit_data_root = _parse_hex(item, 'deposit_data_root', index)

    return DepositRecord(
        public_key=_parse_hex(item, 'pubkey', index),
        withdrawal_credentials=_parse_hex(item, 'withdrawal_credentials', index),
        amount_gwei=_parse_amount(item['amount'], index),
        signature=_parse_hex(item, 'signature', index),
        deposit_data_root=deposit_data_root,
    )


def _parse_hex(item: dict, field: str, index: int) -> bytes:
    value = item[field]
    if not isinstance(value, str):
        raise DepositDataFileError(f'Field {field} at index {index} must be a hex string')
    try:
        return Web3.to_bytes(hexstr=value)
    except ValueError as e:
        raise DepositDataFileError(f'Field {field} at index {index} is not valid hex') from e


def _parse_amount(value: int | str, index: int) -> Gwei:
    # deposit CLI writes integers, some tools write decimal strings
    if isinstance(value, bool):
        raise DepositDataFileError(f'Invalid amount at index {index}')
    if isinstance(value, str) and value.isascii() and value.isdecimal():
        value = int(value)
    if not isinstance(value, int):
        raise DepositDataFileError(f'Invalid amount at index {index}: {value!r}')
    return Gwei(value)


def _check_network(item: dict, index: int, network: str) -> None:
    network_name = item.get('network_name')
    if network_name and network_name != network:
        raise DepositDataFileError(
            f'Deposit at index {index} is generated for {network_name} network, '
            f'expected {network}'
        )

    fork_version = item.get('fork_version')
    if fork_version and not isinstance(fork_version, str):
        raise DepositDataFileError(f'Field fork_version at index {index} must be a hex string')
    if fork_version:
        expected_fork_version = NETWORKS[network].genesis_fork_version_hex
        if fork_version.lower().removeprefix('0x') != expected_fork_version:
            raise DepositDataFileError(
                f'Deposit at index {index} has fork version {fork_version}, '
                f'expected {expected_fork_version} for {network}'
            )
