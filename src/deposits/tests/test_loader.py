import json
from pathlib import Path

import pytest

from src.config.networks import HOODI, MAINNET
from src.deposits.commitment import build_commitment
from src.deposits.exceptions import DepositDataFileError
from src.deposits.loader import load_deposit_data, parse_deposit_record
from src.deposits.tests.factories import create_deposit_record, record_to_json


def _write(path: Path, data: object) -> Path:
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f)
    return path


class TestLoadDepositData:
    def test_load(self, temp_dir: Path):
        records = [create_deposit_record() for _ in range(3)]
        path = _write(
            temp_dir / 'deposit_data.json', [record_to_json(r, network=HOODI) for r in records]
        )

        loaded = load_deposit_data(path, HOODI)

        assert [r.public_key for r in loaded] == [r.public_key for r in records]
        assert [r.withdrawal_credentials for r in loaded] == [
            r.withdrawal_credentials for r in records
        ]
        assert [r.signature for r in loaded] == [r.signature for r in records]
        assert [r.amount_gwei for r in loaded] == [r.amount_gwei for r in records]
        assert [r.deposit_data_root for r in loaded] == [build_commitment(r) for r in records]

    def test_load_fixture(self, deposit_data_file: Path):
        assert len(load_deposit_data(deposit_data_file, HOODI)) == 3

    def test_empty_list(self, temp_dir: Path):
        path = _write(temp_dir / 'deposit_data.json', [])
        assert load_deposit_data(path, HOODI) == []

    def test_missing_file(self, temp_dir: Path):
        with pytest.raises(DepositDataFileError, match="Can't read deposit data file"):
            load_deposit_data(temp_dir / 'missing.json', HOODI)

    def test_invalid_json(self, temp_dir: Path):
        path = temp_dir / 'deposit_data.json'
        path.write_text('[{"pubkey": ', encoding='utf-8')

        with pytest.raises(DepositDataFileError, match="Can't read deposit data file"):
            load_deposit_data(path, HOODI)

    def test_not_a_list(self, temp_dir: Path):
        record = record_to_json(create_deposit_record())
        path = _write(temp_dir / 'deposit_data.json', record)

        with pytest.raises(DepositDataFileError, match='must contain a list'):
            load_deposit_data(path, HOODI)

    def test_duplicate_public_key(self, temp_dir: Path):
        record = create_deposit_record()
        path = _write(
            temp_dir / 'deposit_data.json', [record_to_json(record), record_to_json(record)]
        )

        with pytest.raises(DepositDataFileError, match='Duplicate public key .* at index 1'):
            load_deposit_data(path, HOODI)

    def test_wrong_network(self, temp_dir: Path):
        path = _write(
            temp_dir / 'deposit_data.json',
            [record_to_json(create_deposit_record(), network=MAINNET)],
        )

        with pytest.raises(DepositDataFileError, match='generated for mainnet network'):
            load_deposit_data(path, HOODI)


class TestParseDepositRecord:
    def test_prefixed_hex(self):
        record = create_deposit_record()
        item = record_to_json(record, with_root=False)
        for field in ('pubkey', 'withdrawal_credentials', 'signature'):
            item[field] = '0x' + item[field]

        parsed = parse_deposit_record(item, 0, HOODI)

        assert parsed.public_key == record.public_key
        assert parsed.withdrawal_credentials == record.withdrawal_credentials
        assert parsed.signature == record.signature
        assert parsed.deposit_data_root is None

    def test_string_amount(self):
        item = record_to_json(create_deposit_record())
        item['amount'] = '32000000000'

        assert parse_deposit_record(item, 0, HOODI).amount_gwei == 32_000_000_000

    @pytest.mark.parametrize('amount', ['32 ETH', '-1', '²', '٣2', 32.0, None, True])
    def test_invalid_amount(self, amount):
        item = record_to_json(create_deposit_record())
        item['amount'] = amount

        with pytest.raises(DepositDataFileError, match='Invalid amount at index 4'):
            parse_deposit_record(item, 4, HOODI)

    def test_missing_fields(self):
        item = record_to_json(create_deposit_record())
        del item['signature']
        del item['amount']

        with pytest.raises(DepositDataFileError, match='misses fields: amount, signature'):
            parse_deposit_record(item, 0, HOODI)

    def test_not_an_object(self):
        with pytest.raises(DepositDataFileError, match='is not an object'):
            parse_deposit_record(['pubkey'], 0, HOODI)  # type: ignore[arg-type]

    @pytest.mark.parametrize('value', ['zz' * 48, 123])
    def test_invalid_hex(self, value):
        item = record_to_json(create_deposit_record())
        item['pubkey'] = value

        with pytest.raises(DepositDataFileError, match='Field pubkey at index 0'):
            parse_deposit_record(item, 0, HOODI)

    def test_short_public_key_is_loaded(self):
        # lengths are checked when the record is processed
        item = record_to_json(create_deposit_record(public_key=b'\x01' * 47), with_root=False)

        assert len(parse_deposit_record(item, 0, HOODI).public_key) == 47

    def test_fork_version_mismatch(self):
        item = record_to_json(create_deposit_record(), network=HOODI)
        item['fork_version'] = '00000000'

        with pytest.raises(DepositDataFileError, match='has fork version 00000000'):
            parse_deposit_record(item, 0, HOODI)

    def test_fork_version_prefixed(self):
        item = record_to_json(create_deposit_record(), network=HOODI)
        item['fork_version'] = '0x' + item['fork_version']

        parse_deposit_record(item, 0, HOODI)

    @pytest.mark.parametrize('fork_version', [123, ['10000910']])
    def test_fork_version_not_a_string(self, fork_version):
        item = record_to_json(create_deposit_record(), network=HOODI)
        item['fork_version'] = fork_version

        with pytest.raises(DepositDataFileError, match='Field fork_version at index 2'):
            parse_deposit_record(item, 2, HOODI)

    def test_negative_amount_is_loaded(self):
        # amount range is checked when the record is processed
        item = record_to_json(create_deposit_record(), with_root=False)
        item['amount'] = -1

        assert parse_deposit_record(item, 0, HOODI).amount_gwei == -1
