import sys
import warnings

import click

import src
from src.commands.batch_deposit import batch_deposit
from src.commands.compute_deposit_root import compute_deposit_root
from src.common.utils import get_build_version

build = get_build_version()
version = src.__version__
if build:
    version += f'-{build}'


@click.version_option(version=version, prog_name='Batch deposit')
@click.group()
def cli() -> None:
    pass


cli.add_command(batch_deposit)
cli.add_command(compute_deposit_root)


def main() -> None:
    if not sys.warnoptions:
        warnings.filterwarnings('ignore', category=DeprecationWarning)
    cli()


if __name__ == '__main__':
    main()
