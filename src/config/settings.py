from enum import Enum
from pathlib import Path

from decouple import config as decouple_config
from eth_typing import ChecksumAddress
from web3.types import Gwei

from src.common.typings import Singleton
from src.config.networks import MAINNET, NETWORKS, NetworkConfig

LOCKS_DIR_SUFFIX = '-locks'
LOCKS_DB_SUFFIX = '-locks.db'


class LedgerType(Enum):
    """
    FILE: one marker file per public key next to the deposit data file.
    DATABASE: sqlite database with one row per public key.
    """

    FILE = 'file'
    DATABASE = 'database'


# pylint: disable-next=too-many-instance-attributes
class Settings(metaclass=Singleton):
    network: str
    deposit_data_file: Path
    execution_endpoint: str
    execution_timeout: int
    deposit_contract_address: ChecksumAddress

    gas_limit: int | None
    gas_price_gwei: Gwei | None
    max_fee_per_gas_gwei: Gwei

    wallet_private_key: str | None
    wallet_file: Path | None
    wallet_password_file: Path | None

    ledger_type: LedgerType
    markers_dir: Path
    markers_db: Path

    verbose: bool
    log_level: str
    log_format: str
    web3_log_level: str

    sentry_dsn: str
    sentry_environment: str
    skip_startup_checks: bool

    # pylint: disable-next=too-many-arguments,too-many-locals
    def set(
        self,
        deposit_data_file: Path,
        network: str = MAINNET,
        execution_endpoint: str = '',
        deposit_contract_address: ChecksumAddress | None = None,
        gas_limit: int | None = None,
        gas_price_gwei: int | None = None,
        max_fee_per_gas_gwei: int | None = None,
        wallet_file: str | None = None,
        wallet_password_file: str | None = None,
        ledger_type: LedgerType = LedgerType.FILE,
        markers_dir: str | None = None,
        verbose: bool = False,
        log_level: str | None = None,
        log_format: str | None = None,
    ) -> None:
        self.network = network
        self.deposit_data_file = Path(deposit_data_file)
        self.execution_endpoint = execution_endpoint.strip()
        self.deposit_contract_address = (
            deposit_contract_address or self.network_config.DEPOSIT_CONTRACT_ADDRESS
        )

        self.gas_limit = gas_limit
        self.gas_price_gwei = Gwei(gas_price_gwei) if gas_price_gwei is not None else None
        if max_fee_per_gas_gwei is None:
            max_fee_per_gas_gwei = self.network_config.MAX_FEE_PER_GAS_GWEI
        self.max_fee_per_gas_gwei = Gwei(max_fee_per_gas_gwei)

        # wallet
        self.wallet_private_key = decouple_config('WALLET_PRIVATE_KEY', default=None)
        self.wallet_file = Path(wallet_file) if wallet_file else None
        self.wallet_password_file = Path(wallet_password_file) if wallet_password_file else None

        # completion markers are scoped to the deposit data file
        self.ledger_type = ledger_type
        batch_name = self.deposit_data_file.name
        batch_dir = self.deposit_data_file.parent
        self.markers_dir = (
            Path(markers_dir) if markers_dir else batch_dir / f'{batch_name}{LOCKS_DIR_SUFFIX}'
        )
        self.markers_db = (
            Path(markers_dir) / 'markers.db'
            if markers_dir
            else batch_dir / f'{batch_name}{LOCKS_DB_SUFFIX}'
        )

        self.verbose = verbose
        self.log_level = log_level or 'INFO'
        self.log_format = log_format or LOG_PLAIN
        self.web3_log_level = decouple_config('WEB3_LOG_LEVEL', default='INFO')

        self.execution_timeout = decouple_config('EXECUTION_TIMEOUT', default=30, cast=int)

        self.sentry_dsn = decouple_config('SENTRY_DSN', default='')
        self.sentry_environment = decouple_config('SENTRY_ENVIRONMENT', default='')
        self.skip_startup_checks = decouple_config('SKIP_STARTUP_CHECKS', default=False, cast=bool)

    @property
    def network_config(self) -> NetworkConfig:
        return NETWORKS[self.network]


settings = Settings()

DEFAULT_NETWORK = MAINNET

# logging
LOG_PLAIN = 'plain'
LOG_JSON = 'json'
LOG_FORMATS = [LOG_PLAIN, LOG_JSON]
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
LOG_WHITELISTED_DOMAINS = ['localhost', '127.0.0.1']
