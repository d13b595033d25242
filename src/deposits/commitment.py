from eth_typing import HexStr
from ssz import Serializable
from ssz.sedes import bytes32, bytes48, bytes96, uint64
from web3 import Web3

from src.deposits.exceptions import MalformedRecordError
from src.deposits.typings import Bytes32, DepositRecord


class DepositData(Serializable):
    """SSZ container hashed by the deposit contract into `deposit_data_root`."""

    fields = [
        ('pubkey', bytes48),
        ('withdrawal_credentials', bytes32),
        ('amount', uint64),
        ('signature', bytes96),
    ]


def build_commitment(record: DepositRecord) -> Bytes32:
    """
    Returns the hash tree root of the record's `DepositData`.
    Raises `MalformedRecordError` for wrong field lengths or amount outside uint64.
    """
    record.validate()
    deposit_data = DepositData(
        pubkey=record.public_key,
        withdrawal_credentials=record.withdrawal_credentials,
        amount=record.amount_gwei,
        signature=record.signature,
    )
    return Bytes32(deposit_data.hash_tree_root)


def verify_deposit_data_root(record: DepositRecord, commitment: Bytes32) -> None:
    """Checks the computed root against the one stored in the deposit data file."""
    if record.deposit_data_root is None:
        return
    if record.deposit_data_root != commitment:
        raise MalformedRecordError(
            f'Deposit data root mismatch for {Web3.to_hex(record.public_key)}: '
            f'file has {Web3.to_hex(record.deposit_data_root)}, '
            f'computed {commitment_to_hex(commitment)}'
        )


def commitment_to_hex(commitment: Bytes32) -> HexStr:
    return Web3.to_hex(commitment)
