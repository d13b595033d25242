import json
from pathlib import Path
from tempfile import TemporaryDirectory
from typing import Generator

import pytest
from click.testing import CliRunner

from src.config.networks import HOODI
from src.config.settings import settings
from src.deposits.tests.factories import create_deposit_record, record_to_json


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def markers_dir(temp_dir: Path) -> Path:
    return temp_dir / 'deposit_data.json-locks'


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def execution_endpoint() -> str:
    return 'http://execution'


@pytest.fixture
def deposit_data_file(temp_dir: Path) -> Path:
    records = [create_deposit_record() for _ in range(3)]
    file_path = temp_dir / 'deposit_data.json'
    with open(file_path, 'w', encoding='utf-8') as f:
        json.dump([record_to_json(r, network=HOODI) for r in records], f)
    return file_path


@pytest.fixture
def fake_settings(deposit_data_file: Path, execution_endpoint: str) -> None:
    settings.set(
        deposit_data_file=deposit_data_file,
        network=HOODI,
        execution_endpoint=execution_endpoint,
    )
