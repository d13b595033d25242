import logging
from typing import cast

from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.middleware import SignAndSendRawMiddlewareBuilder

import src
from src.common.wallet import wallet
from src.config.settings import settings

logger = logging.getLogger(__name__)

USER_AGENT = f'Batch Deposit {src.__version__}'


class ExecutionClient:
    client: AsyncWeb3
    is_set_up = False

    async def setup(self) -> None:
        if not settings.execution_endpoint:
            return

        w3 = AsyncWeb3(
            AsyncHTTPProvider(
                settings.execution_endpoint,
                request_kwargs={
                    'timeout': settings.execution_timeout,
                    'headers': {'User-Agent': USER_AGENT},
                },
            )
        )
        # Account is required when emitting transactions.
        # For read-only queries account may be omitted.
        if wallet.can_load():
            w3.middleware_onion.inject(
                # pylint: disable-next=no-value-for-parameter
                SignAndSendRawMiddlewareBuilder.build(wallet.account),
                layer=0,
            )
            w3.eth.default_account = wallet.address

        self.client = w3
        self.is_set_up = True

    def __getattr__(self, item):  # type: ignore
        if not self.is_set_up:
            raise RuntimeError('Execution client is not ready. You need to call setup() method')
        return getattr(self.client, item)


execution_client = cast(AsyncWeb3, ExecutionClient())


async def setup_clients() -> None:
    await execution_client.setup()  # type: ignore


async def close_clients() -> None:
    if execution_client.is_set_up:  # type: ignore
        await execution_client.provider.disconnect()
