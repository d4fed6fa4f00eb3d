# tests/xml_importer/test_importer.py
import json
from pathlib import Path

import pytest
from diskcache import Cache

from services.xml_importer import importer
from services.xml_importer.importer import _iter_sms, import_backup, main
from smsparser.models import get_md5_hash
from smsparser.storage import ParsingContext

PURCHASE = "Purchase of SAR 45.00 at JARIR BOOKSTORE on 12/02/2024"
OTP = "Your OTP is 4821"

BACKUP_XML = f"""<?xml version='1.0' encoding='UTF-8' standalone='yes' ?>
<smses count="4">
  <sms protocol="0" address="AlRajhi" date="1707900464673" type="1" body="{PURCHASE}" />
  <sms protocol="0" address="AlRajhi" date="1707900464673" type="1" body="{OTP}" />
  <sms protocol="0" address="+966500000000" date="1707900464673" type="2" body="Sent SAR 100 to Ali" />
  <sms protocol="0" address="AlRajhi" date="1707900464673" type="1" body="" />
</smses>
"""


@pytest.fixture
def backup(tmp_path: Path) -> Path:
    path = tmp_path / "sms-20240214.xml"
    path.write_text(BACKUP_XML, encoding="utf-8")
    return path


def test_iter_sms_skips_sent_and_empty(backup: Path):
    messages = list(_iter_sms(backup))

    assert [m.body for m in messages] == [PURCHASE, OTP]
    first = messages[0]
    assert first.source == "xml"
    assert first.sender == "AlRajhi"
    assert first.msg_id == get_md5_hash(PURCHASE)
    assert first.date.startswith("2024-02-14")


def test_import_backup_is_idempotent(backup: Path, tmp_path: Path):
    with Cache(str(tmp_path / "cache")) as cache:
        stats = import_backup(backup, cache=cache)
        assert stats == {"imported": 1, "not_financial": 1, "skipped": 0, "failed": 0}

        stored = cache[get_md5_hash(PURCHASE)]
        assert stored["amount"] == "-45.00"
        assert stored["currency"] == "SAR"
        assert stored["category"] == "Shopping"
        assert stored["sender"] == "AlRajhi"

        again = import_backup(backup, cache=cache)
        assert again == {"imported": 0, "not_financial": 1, "skipped": 1, "failed": 0}


def test_import_backup_uses_context(backup: Path, tmp_path: Path):
    ctx = ParsingContext(category_rules=(), hierarchy={"Shopping": ("Books",)})
    with Cache(str(tmp_path / "cache")) as cache:
        import_backup(backup, cache=cache, context=ctx)
        assert cache[get_md5_hash(PURCHASE)]["subcategory"] == "Books"


def test_parser_errors_are_reported(backup: Path, tmp_path: Path, mocker):
    mocker.patch.object(importer, "parse_sms_message", side_effect=RuntimeError("boom"))
    capture = mocker.patch.object(importer, "sentry_capture")

    with Cache(str(tmp_path / "cache")) as cache:
        stats = import_backup(backup, cache=cache)

    assert stats["failed"] == 2
    assert capture.call_count == 2
    assert capture.call_args.kwargs["extras"]["file"] == str(backup)


# ─ CLI ─────────────────────────────────────────────────────────────


def test_main_imports_files(backup: Path, tmp_path: Path):
    cache_dir = tmp_path / "cli-cache"
    storage = tmp_path / "storage.json"
    storage.write_text(
        json.dumps(
            {
                "xpensia_custom_parsing_rules": json.dumps(
                    [{"id": "1", "keywords": ["jarir"], "type": "expense", "category": "Books"}]
                )
            }
        ),
        encoding="utf-8",
    )

    assert main([str(backup), "--cache-dir", str(cache_dir), "--storage", str(storage)]) == 0

    with Cache(str(cache_dir)) as cache:
        assert cache[get_md5_hash(PURCHASE)]["category"] == "Books"


def test_main_reports_broken_xml(tmp_path: Path, mocker):
    broken = tmp_path / "broken.xml"
    broken.write_text("<smses><sms body='x'", encoding="utf-8")
    capture = mocker.patch.object(importer, "sentry_capture")

    assert main([str(broken), "--cache-dir", str(tmp_path / "c")]) == 1
    capture.assert_called_once()


def test_main_without_files(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("BACKUP_DIR", str(tmp_path / "empty"))
    assert main(["--cache-dir", str(tmp_path / "c")]) == 0


def test_bad_date_attribute_does_not_abort_import(tmp_path: Path):
    salary = "Salary of SAR 9,000.00 credited to your account"
    path = tmp_path / "bad-date.xml"
    path.write_text(
        f"""<?xml version='1.0' encoding='UTF-8' standalone='yes' ?>
<smses count="2">
  <sms protocol="0" address="AlRajhi" date="bad" type="1" body="{PURCHASE}" />
  <sms protocol="0" address="AlRajhi" date="1707900464673" type="1" body="{salary}" />
</smses>
""",
        encoding="utf-8",
    )

    with Cache(str(tmp_path / "cache")) as cache:
        stats = import_backup(path, cache=cache)
        assert stats == {"imported": 2, "not_financial": 0, "skipped": 0, "failed": 0}
        assert cache[get_md5_hash(salary)]["amount"] == "9000.00"
