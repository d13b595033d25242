# pylint: disable=unused-argument
import click
from eth_typing import ChecksumAddress
from eth_utils import is_address, to_checksum_address


def validate_eth_address(
    ctx: click.Context, param: click.Parameter, value: str | None
) -> ChecksumAddress | None:
    if not value:
        return None
    try:
        if is_address(value):
            return to_checksum_address(value)
    except ValueError:
        pass

    raise click.BadParameter('Invalid Ethereum address')


def validate_positive_int(
    ctx: click.Context, param: click.Parameter, value: int | None
) -> int | None:
    if value is None:
        return None
    if value <= 0:
        raise click.BadParameter('Value must be positive')
    return value
