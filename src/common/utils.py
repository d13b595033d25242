import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import click
from pythonjsonlogger import jsonlogger
from web3.exceptions import Web3Exception

from src.config.settings import LOG_DATE_FORMAT, settings

logger = logging.getLogger(__name__)


def get_build_version() -> str | None:
    path = Path(__file__).parents[1].joinpath('GIT_SHA')
    if not path.exists():
        return None

    with path.open(encoding='utf-8') as fh:
        return fh.read().strip()


def log_verbose(e: Exception) -> None:
    if settings.verbose:
        logger.exception(e)
    else:
        logger.error(format_error(e))


def format_error(e: BaseException) -> str:
    if isinstance(e, asyncio.TimeoutError):
        # str(e) returns empty string
        return repr(e)

    if isinstance(e, Web3Exception) and not str(e):
        return e.__class__.__name__

    return str(e)


def greenify(value: Any) -> str:
    return click.style(value, bold=True, fg='green')


def redify(value: Any) -> str:
    return click.style(value, bold=True, fg='red')


class JsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record, record, message_dict):  # type: ignore
        super().add_fields(log_record, record, message_dict)
        if not log_record.get('timestamp'):
            date = datetime.fromtimestamp(record.created, tz=timezone.utc)
            log_record['timestamp'] = date.strftime(LOG_DATE_FORMAT)
        if log_record.get('level'):
            log_record['level'] = log_record['level'].upper()
        else:
            log_record['level'] = record.levelname
