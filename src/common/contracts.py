import json
import os
from functools import cached_property

from web3.contract import AsyncContract
from web3.contract.async_contract import AsyncContractFunctions
from web3.types import ChecksumAddress

from src.common.clients import execution_client
from src.config.settings import settings


class ContractWrapper:
    abi_path: str = ''

    @property
    def contract_address(self) -> ChecksumAddress:
        raise NotImplementedError

    @cached_property
    def contract(self) -> AsyncContract:
        current_dir = os.path.dirname(__file__)
        with open(os.path.join(current_dir, self.abi_path), encoding='utf-8') as f:
            abi = json.load(f)
        return execution_client.eth.contract(abi=abi, address=self.contract_address)

    @property
    def address(self) -> ChecksumAddress:
        return self.contract.address

    @property
    def functions(self) -> AsyncContractFunctions:
        return self.contract.functions


class DepositContract(ContractWrapper):
    abi_path = 'abi/IDepositContract.json'

    @property
    def contract_address(self) -> ChecksumAddress:
        return settings.deposit_contract_address

    async def get_deposit_count(self) -> int:
        # little-endian uint64 encoded as bytes
        count = await self.contract.functions.get_deposit_count().call()
        return int.from_bytes(count, byteorder='little')


deposit_contract = DepositContract()
