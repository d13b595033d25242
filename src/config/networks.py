from dataclasses import dataclass

from eth_typing import ChecksumAddress
from web3 import Web3
from web3.types import Gwei

MAINNET = 'mainnet'
HOODI = 'hoodi'

AVAILABLE_NETWORKS = [MAINNET, HOODI]


@dataclass
class NetworkConfig:
    CHAIN_ID: int
    DEPOSIT_CONTRACT_ADDRESS: ChecksumAddress
    GENESIS_FORK_VERSION: bytes
    MAX_FEE_PER_GAS_GWEI: Gwei
    MIN_DEPOSIT_AMOUNT_GWEI: Gwei
    WALLET_BALANCE_SYMBOL: str

    @property
    def genesis_fork_version_hex(self) -> str:
        return self.GENESIS_FORK_VERSION.hex()


NETWORKS: dict[str, NetworkConfig] = {
    MAINNET: NetworkConfig(
        CHAIN_ID=1,
        DEPOSIT_CONTRACT_ADDRESS=Web3.to_checksum_address(
            '0x00000000219ab540356cBB839Cbe05303d7705Fa'
        ),
        GENESIS_FORK_VERSION=Web3.to_bytes(hexstr='0x00000000'),
        MAX_FEE_PER_GAS_GWEI=Gwei(10),
        MIN_DEPOSIT_AMOUNT_GWEI=Gwei(int(Web3.from_wei(Web3.to_wei(1, 'ether'), 'gwei'))),
        WALLET_BALANCE_SYMBOL='ETH',
    ),
    HOODI: NetworkConfig(
        CHAIN_ID=560048,
        DEPOSIT_CONTRACT_ADDRESS=Web3.to_checksum_address(
            '0x00000000219ab540356cBB839Cbe05303d7705Fa'
        ),
        GENESIS_FORK_VERSION=Web3.to_bytes(hexstr='0x10000910'),
        MAX_FEE_PER_GAS_GWEI=Gwei(100),
        MIN_DEPOSIT_AMOUNT_GWEI=Gwei(int(Web3.from_wei(Web3.to_wei(1, 'ether'), 'gwei'))),
        WALLET_BALANCE_SYMBOL='HoodiETH',
    ),
}
