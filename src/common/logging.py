import logging
import warnings
from urllib.parse import urlparse, urlunparse

from src.common.utils import JsonFormatter
from src.config.settings import (
    LOG_DATE_FORMAT,
    LOG_JSON,
    LOG_WHITELISTED_DOMAINS,
    settings,
)

LOG_LEVELS = [
    'FATAL',
    'ERROR',
    'WARNING',
    'INFO',
    'DEBUG',
]


class TokenPlainFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return hide_tokens(super().format(record))


class TokenJsonFormatter(JsonFormatter):
    def format(self, record: logging.LogRecord) -> str:
        return hide_tokens(super().format(record))


def setup_logging() -> None:
    formatter: TokenJsonFormatter | TokenPlainFormatter
    if settings.log_format == LOG_JSON:
        formatter = TokenJsonFormatter('%(timestamp)s %(level)s %(name)s %(message)s')
        logHandler = logging.StreamHandler()
        logHandler.setFormatter(formatter)
        logging.basicConfig(
            level=settings.log_level,
            handlers=[logHandler],
        )
    else:
        formatter = TokenPlainFormatter(
            fmt='%(asctime)s %(levelname)-8s %(message)s', datefmt=LOG_DATE_FORMAT
        )
        logHandler = logging.StreamHandler()
        logHandler.setFormatter(formatter)
        logging.basicConfig(
            level=settings.log_level,
            handlers=[logHandler],
        )
    if not settings.verbose:
        # Logging config does not affect messages issued by `warnings` module
        warnings.simplefilter('ignore')

    logging.getLogger('web3').setLevel(settings.web3_log_level)


def hide_tokens(msg: str) -> str:
    endpoint = settings.execution_endpoint
    if not endpoint or endpoint not in msg:
        return msg
    return msg.replace(endpoint, hide_endpoint_token(endpoint))


def hide_endpoint_token(endpoint: str) -> str:
    if any(e in endpoint for e in LOG_WHITELISTED_DOMAINS):
        return endpoint
    parsed_endpoint = urlparse(endpoint)
    if not parsed_endpoint.path.strip('/') and not parsed_endpoint.query:
        return endpoint
    # Reconstruct the URL with the token hidden
    return urlunparse(
        (
            parsed_endpoint.scheme,
            parsed_endpoint.hostname,  # Only keep the hostname
            '<hidden>',  # Replace the path with '<hidden>'
            '',
            '',
            '',  # Clear params, query, and fragment
        )
    )
