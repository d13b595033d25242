from enum import Enum
from typing import TYPE_CHECKING

from eth_typing import HexStr

if TYPE_CHECKING:
    from src.deposits.typings import BatchReport

MANUAL_RECONCILIATION = 'manual reconciliation required'


class MalformedRecordError(ValueError): ...


class DepositDataFileError(ValueError): ...


class LedgerUnavailableError(Exception): ...


class RecordInFlightError(Exception):
    def __init__(self, public_key: HexStr) -> None:
        super().__init__(
            f'Deposit for {public_key} is claimed by another run or an interrupted one, '
            f'{MANUAL_RECONCILIATION}'
        )
        self.public_key = public_key


class SubmissionFailureReason(Enum):
    NETWORK_ERROR = 'network error'
    CONTRACT_REVERT = 'contract revert'
    INSUFFICIENT_FUNDS = 'insufficient funds'


class SubmissionFailedError(Exception):
    def __init__(self, reason: SubmissionFailureReason, message: str) -> None:
        super().__init__(f'{reason.value}: {message}')
        self.reason = reason


class PostSubmitRecordingFailedError(Exception):
    def __init__(self, public_key: HexStr, tx_hash: HexStr) -> None:
        super().__init__(
            f'Deposit transaction {tx_hash} for {public_key} was sent '
            f'but could not be recorded, {MANUAL_RECONCILIATION}'
        )
        self.public_key = public_key
        self.tx_hash = tx_hash


class BatchAbortedError(Exception):
    def __init__(self, report: 'BatchReport', message: str) -> None:
        super().__init__(message)
        self.report = report


class SubmissionOutcomeUnknownError(Exception):
    def __init__(self, public_key: HexStr, error: Exception) -> None:
        super().__init__(
            f'Unexpected error while sending deposit for {public_key}: {error!r}, '
            f'the transaction may have been sent, {MANUAL_RECONCILIATION}'
        )
        self.public_key = public_key
