import json
from functools import cached_property
from pathlib import Path

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_typing import ChecksumAddress

from src.config.settings import settings


class Wallet:
    """
    Account paying for deposit transactions.
    Loaded from WALLET_PRIVATE_KEY or from an encrypted keystore and its password file.
    Raises ValueError when neither is available.
    """

    def can_load(self) -> bool:
        try:
            self.account
        except ValueError:
            return False
        return True

    @cached_property
    def account(self) -> LocalAccount:
        if settings.wallet_private_key:
            # pylint: disable-next=no-value-for-parameter
            return Account.from_key(settings.wallet_private_key)
        return _load_keystore(settings.wallet_file, settings.wallet_password_file)

    @property
    def address(self) -> ChecksumAddress:
        return self.account.address


def _load_keystore(keystore_file: Path | None, password_file: Path | None) -> LocalAccount:
    if keystore_file is None or not keystore_file.is_file():
        raise ValueError(
            "Can't open wallet key file. "
            'Set WALLET_PRIVATE_KEY or provide --wallet-file. '
            f'Path: {keystore_file}'
        )
    if password_file is None or not password_file.is_file():
        raise ValueError(f"Can't open wallet password file. Path: {password_file}")

    with open(keystore_file, 'r', encoding='utf-8') as f:
        keyfile_json = json.load(f)
    with open(password_file, 'r', encoding='utf-8') as f:
        password = f.read().strip()
    try:
        private_key = Account.decrypt(keyfile_json, password)
    except ValueError as e:
        raise ValueError(f"Can't decrypt wallet key file {keystore_file}: {e}") from e
    # pylint: disable-next=no-value-for-parameter
    return Account.from_key(private_key)


wallet = Wallet()
