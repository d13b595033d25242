import abc
import asyncio
import logging
from dataclasses import dataclass

import aiohttp
from eth_typing import HexStr
from web3 import Web3
from web3.exceptions import ContractLogicError, Web3Exception
from web3.types import Gwei, TxParams, Wei

from src.common.contracts import DepositContract
from src.common.utils import format_error
from src.deposits.exceptions import SubmissionFailedError, SubmissionFailureReason
from src.deposits.typings import Bytes32, DepositRecord

logger = logging.getLogger(__name__)

INSUFFICIENT_FUNDS_MESSAGE = 'insufficient funds'


@dataclass
class DepositTxConfig:
    """
    Fee parameters of deposit transactions.
    `gas_price_gwei` sends legacy transactions and takes precedence over `max_fee_per_gas_gwei`.
    Gas is estimated by the node when `gas_limit` is not set.
    """

    gas_limit: int | None = None
    gas_price_gwei: Gwei | None = None
    max_fee_per_gas_gwei: Gwei | None = None

    def get_tx_params(self, value: Wei) -> TxParams:
        tx_params: TxParams = {'value': value}
        if self.gas_limit:
            tx_params['gas'] = self.gas_limit
        if self.gas_price_gwei is not None:
            tx_params['gasPrice'] = Web3.to_wei(self.gas_price_gwei, 'gwei')
        elif self.max_fee_per_gas_gwei is not None:
            tx_params['maxFeePerGas'] = Web3.to_wei(self.max_fee_per_gas_gwei, 'gwei')
        return tx_params


class BaseSubmitter(abc.ABC):
    @abc.abstractmethod
    async def submit(self, record: DepositRecord, commitment: Bytes32) -> HexStr:
        """
        Sends one deposit transaction and returns its hash without waiting for inclusion.
        Raises `SubmissionFailedError` on any failure.
        """
        raise NotImplementedError


class Web3Submitter(BaseSubmitter):
    def __init__(self, contract: DepositContract, tx_config: DepositTxConfig):
        self.contract = contract
        self.tx_config = tx_config

    async def submit(self, record: DepositRecord, commitment: Bytes32) -> HexStr:
        tx_function = self.contract.functions.deposit(
            record.public_key,
            record.withdrawal_credentials,
            record.signature,
            commitment,
        )
        tx_params = self.tx_config.get_tx_params(record.amount_wei)
        logger.debug(
            'Sending deposit for %s with params %s', Web3.to_hex(record.public_key), tx_params
        )
        try:
            tx_hash = await tx_function.transact(tx_params)
        except ContractLogicError as e:
            raise SubmissionFailedError(SubmissionFailureReason.CONTRACT_REVERT, repr(e)) from e
        except (Web3Exception, ValueError) as e:
            if _is_insufficient_funds_error(e):
                raise SubmissionFailedError(
                    SubmissionFailureReason.INSUFFICIENT_FUNDS, str(e)
                ) from e
            raise SubmissionFailedError(
                SubmissionFailureReason.NETWORK_ERROR, format_error(e)
            ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            raise SubmissionFailedError(
                SubmissionFailureReason.NETWORK_ERROR, format_error(e)
            ) from e

        return Web3.to_hex(tx_hash)


def _is_insufficient_funds_error(e: Exception) -> bool:
    return INSUFFICIENT_FUNDS_MESSAGE in str(e).lower()
