import os
import random

from eth_typing import HexStr
from web3 import Web3
from web3.types import Gwei

from src.config.networks import NETWORKS
from src.deposits.commitment import build_commitment
from src.deposits.ledger import BaseCompletionLedger
from src.deposits.submitter import BaseSubmitter
from src.deposits.typings import Bytes32, DepositRecord

DEFAULT_AMOUNT_GWEI = Gwei(32_000_000_000)


def create_deposit_record(
    public_key: bytes | None = None,
    withdrawal_credentials: bytes | None = None,
    amount_gwei: int = DEFAULT_AMOUNT_GWEI,
    signature: bytes | None = None,
) -> DepositRecord:
    return DepositRecord(
        public_key=public_key if public_key is not None else os.urandom(48),
        withdrawal_credentials=(
            withdrawal_credentials
            if withdrawal_credentials is not None
            else b'\x01' + b'\x00' * 11 + os.urandom(20)
        ),
        amount_gwei=Gwei(amount_gwei),
        signature=signature if signature is not None else os.urandom(96),
    )


def record_to_json(
    record: DepositRecord, network: str | None = None, with_root: bool = True
) -> dict:
    """Deposit data entry in the staking deposit CLI format."""
    data = {
        'pubkey': record.public_key.hex(),
        'withdrawal_credentials': record.withdrawal_credentials.hex(),
        'amount': record.amount_gwei,
        'signature': record.signature.hex(),
    }
    if with_root:
        data['deposit_data_root'] = build_commitment(record).hex()
    if network:
        data['network_name'] = network
        data['fork_version'] = NETWORKS[network].genesis_fork_version_hex
    return data


class FakeSubmitter(BaseSubmitter):
    """Records calls and fails for the given public keys."""

    def __init__(self, failures: dict[bytes, Exception] | None = None):
        self.failures = failures or {}
        self.calls: list[tuple[DepositRecord, Bytes32]] = []

    async def submit(self, record: DepositRecord, commitment: Bytes32) -> HexStr:
        self.calls.append((record, commitment))
        if record.public_key in self.failures:
            raise self.failures[record.public_key]
        return Web3.to_hex(random.randbytes(32))

    @property
    def submitted_public_keys(self) -> list[bytes]:
        return [record.public_key for record, _ in self.calls]


class InMemoryLedger(BaseCompletionLedger):
    def __init__(self) -> None:
        self.markers: set[str] = set()
        self.claims: set[str] = set()

    def setup(self) -> None:
        pass

    def is_complete(self, public_key: str) -> bool:
        return public_key in self.markers

    def mark_complete(self, public_key: str) -> bool:
        if public_key in self.markers:
            return False
        self.markers.add(public_key)
        return True

    def claim(self, public_key: str) -> bool:
        if public_key in self.claims:
            return False
        self.claims.add(public_key)
        return True

    def release(self, public_key: str) -> None:
        self.claims.discard(public_key)
