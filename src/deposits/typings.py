from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, NewType

from eth_typing import HexStr
from web3 import Web3
from web3.types import Gwei, Wei

from src.deposits.exceptions import MalformedRecordError

PUBLIC_KEY_LENGTH = 48
WITHDRAWAL_CREDENTIALS_LENGTH = 32
SIGNATURE_LENGTH = 96
DEPOSIT_DATA_ROOT_LENGTH = 32
MAX_UINT64 = 2**64 - 1

Bytes32 = NewType('Bytes32', bytes)


@dataclass(frozen=True)
class DepositRecord:
    public_key: bytes
    withdrawal_credentials: bytes
    amount_gwei: Gwei
    signature: bytes

    # root stored in the deposit data file, if any
    deposit_data_root: bytes | None = None

    def validate(self) -> None:
        _check_length('public key', self.public_key, PUBLIC_KEY_LENGTH)
        _check_length(
            'withdrawal credentials', self.withdrawal_credentials, WITHDRAWAL_CREDENTIALS_LENGTH
        )
        _check_length('signature', self.signature, SIGNATURE_LENGTH)
        if self.deposit_data_root is not None:
            _check_length('deposit data root', self.deposit_data_root, DEPOSIT_DATA_ROOT_LENGTH)

        if isinstance(self.amount_gwei, bool) or not isinstance(self.amount_gwei, int):
            raise MalformedRecordError(f'Invalid deposit amount type: {type(self.amount_gwei)}')
        if not 0 <= self.amount_gwei <= MAX_UINT64:
            raise MalformedRecordError(
                f'Deposit amount {self.amount_gwei} does not fit into uint64'
            )

    @property
    def public_key_hex(self) -> str:
        """Lowercase hex without prefix, as written by the staking deposit CLI."""
        return self.public_key.hex()

    @property
    def amount_wei(self) -> Wei:
        return Web3.to_wei(self.amount_gwei, 'gwei')


class RecordStatus(Enum):
    SKIPPED = 'skipped'
    SUBMITTED = 'submitted'
    FAILED = 'failed'


@dataclass
class RecordResult:
    record: DepositRecord
    status: RecordStatus
    tx_hash: HexStr | None = None
    error: Exception | None = None

    @property
    def public_key(self) -> HexStr:
        return Web3.to_hex(self.record.public_key)


@dataclass
class BatchReport:
    results: list[RecordResult] = field(default_factory=list)

    def add(self, result: RecordResult) -> None:
        self.results.append(result)

    @property
    def submitted(self) -> list[RecordResult]:
        return [r for r in self.results if r.status == RecordStatus.SUBMITTED]

    @property
    def skipped(self) -> list[RecordResult]:
        return [r for r in self.results if r.status == RecordStatus.SKIPPED]

    @property
    def failed(self) -> list[RecordResult]:
        return [r for r in self.results if r.status == RecordStatus.FAILED]

    @property
    def is_success(self) -> bool:
        return not self.failed

    def __len__(self) -> int:
        return len(self.results)


def _check_length(name: str, value: bytes, length: int) -> None:
    if not isinstance(value, (bytes, bytearray)):
        raise MalformedRecordError(f'Invalid {name} type: {type(value)}')
    if len(value) != length:
        raise MalformedRecordError(
            f'Invalid {name} length: expected {length} bytes, got {len(value)}'
        )


def get_total_amount_wei(records: Iterable[DepositRecord]) -> Wei:
    """Total amount of the records passing validation."""
    total = 0
    for record in records:
        try:
            record.validate()
        except MalformedRecordError:
            continue
        total += record.amount_wei
    return Wei(total)
