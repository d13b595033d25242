import logging
from typing import Sequence

from eth_typing import HexStr
from web3 import Web3
from web3.types import Gwei

from src.deposits.commitment import build_commitment, verify_deposit_data_root
from src.deposits.exceptions import (
    BatchAbortedError,
    LedgerUnavailableError,
    MalformedRecordError,
    PostSubmitRecordingFailedError,
    RecordInFlightError,
    SubmissionFailedError,
    SubmissionOutcomeUnknownError,
)
from src.deposits.ledger import BaseCompletionLedger
from src.deposits.submitter import BaseSubmitter
from src.deposits.typings import BatchReport, DepositRecord, RecordResult, RecordStatus

logger = logging.getLogger(__name__)


class BatchProcessor:
    """
    Submits deposit records one at a time in input order.
    A record is skipped when its completion marker exists. Per record failures are
    collected in the report, ledger failures abort the whole batch.
    """

    def __init__(
        self,
        ledger: BaseCompletionLedger,
        submitter: BaseSubmitter,
        min_deposit_amount_gwei: Gwei = Gwei(0),
    ):
        self.ledger = ledger
        self.submitter = submitter
        self.min_deposit_amount_gwei = min_deposit_amount_gwei

    async def process_batch(self, records: Sequence[DepositRecord]) -> BatchReport:
        report = BatchReport()
        for index, record in enumerate(records):
            try:
                result = await self.process_record(record)
            except LedgerUnavailableError as e:
                logger.error('Completion ledger is unavailable, aborting batch: %s', e)
                raise BatchAbortedError(
                    report, f'Batch aborted at record {index}: {e}'
                ) from e
            except PostSubmitRecordingFailedError as e:
                logger.critical(str(e))
                report.add(
                    RecordResult(
                        record=record, status=RecordStatus.FAILED, tx_hash=e.tx_hash, error=e
                    )
                )
                raise BatchAbortedError(report, str(e)) from e
            except SubmissionOutcomeUnknownError as e:
                logger.critical(str(e))
                report.add(RecordResult(record=record, status=RecordStatus.FAILED, error=e))
                raise BatchAbortedError(report, str(e)) from e
            report.add(result)

        logger.info(
            'Batch processed: %d submitted, %d skipped, %d failed',
            len(report.submitted),
            len(report.skipped),
            len(report.failed),
        )
        return report

    async def process_record(self, record: DepositRecord) -> RecordResult:
        public_key = _format_public_key(record)
        ledger_key = record.public_key_hex

        if self.ledger.is_complete(ledger_key):
            logger.info('Deposit for %s already processed. Skipping.', public_key)
            return RecordResult(record=record, status=RecordStatus.SKIPPED)

        try:
            commitment = build_commitment(record)
            verify_deposit_data_root(record, commitment)
            self._check_amount(record)
        except MalformedRecordError as e:
            logger.error('Invalid deposit for %s: %s', public_key, e)
            return RecordResult(record=record, status=RecordStatus.FAILED, error=e)

        if not self.ledger.claim(ledger_key):
            e = RecordInFlightError(public_key)
            logger.error(str(e))
            return RecordResult(record=record, status=RecordStatus.FAILED, error=e)

        # another process may have completed the deposit before the claim was taken
        if self.ledger.is_complete(ledger_key):
            self.ledger.release(ledger_key)
            logger.info('Deposit for %s already processed. Skipping.', public_key)
            return RecordResult(record=record, status=RecordStatus.SKIPPED)

        try:
            tx_hash = await self.submitter.submit(record, commitment)
        except SubmissionFailedError as e:
            logger.error('Failed to send deposit for %s: %s', public_key, e)
            self.ledger.release(ledger_key)
            return RecordResult(record=record, status=RecordStatus.FAILED, error=e)
        except Exception as e:
            # the claim stays in place, the transaction may have been sent
            raise SubmissionOutcomeUnknownError(public_key, e) from e

        logger.info('Deposit for %s sent. Transaction hash: %s', public_key, tx_hash)
        self._record_completion(ledger_key, public_key, tx_hash)
        return RecordResult(record=record, status=RecordStatus.SUBMITTED, tx_hash=tx_hash)

    def _record_completion(self, ledger_key: str, public_key: HexStr, tx_hash: HexStr) -> None:
        try:
            if not self.ledger.mark_complete(ledger_key):
                logger.warning('Completion marker for %s already exists', public_key)
        except LedgerUnavailableError as e:
            # the claim stays in place so that later runs never resend this deposit
            raise PostSubmitRecordingFailedError(public_key, tx_hash) from e

        try:
            self.ledger.release(ledger_key)
        except LedgerUnavailableError as e:
            logger.warning('Failed to release claim for %s: %s', public_key, e)

    def _check_amount(self, record: DepositRecord) -> None:
        if record.amount_gwei < self.min_deposit_amount_gwei:
            raise MalformedRecordError(
                f'Deposit amount {record.amount_gwei} Gwei is less than '
                f'minimum {self.min_deposit_amount_gwei} Gwei'
            )


def _format_public_key(record: DepositRecord) -> HexStr:
    return Web3.to_hex(record.public_key)
