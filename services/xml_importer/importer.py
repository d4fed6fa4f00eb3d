# services/xml_importer/importer.py
"""
XML Importer
============

Дочитываем backup-XML приложения «SMS Backup & Restore», прогоняем каждое
входящее сообщение через парсер и складываем транзакции в DiskCache
(ключ – MD5 тела сообщения, поэтому повторный импорт того же файла ничего
не дублирует).

Запуск::

    python -m services.xml_importer.importer sms-20250613.xml --storage rules.json

Без аргументов обрабатываются все ``*.xml`` из ``settings.backup_dir``.
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence

import xml.etree.ElementTree as ET
from diskcache import Cache

from smsparser.config import get_settings
from smsparser.models import RawSMS, get_md5_hash
from smsparser.parser import parse_sms_message
from smsparser.sentry import init_sentry, sentry_capture
from smsparser.storage import ParsingContext, load_storage

logger = logging.getLogger(__name__)

RELEASE = "xml_importer@0.1.0"
SENT_TYPE = "2"  # <sms type="2"> – исходящие, не банковские уведомления

# ────────────────────────── XML helpers ──────────────────────────────


def _sms_date(raw: Optional[str]) -> datetime:
    """``date`` – миллисекунды epoch; битое значение → время импорта."""
    try:
        return datetime.fromtimestamp(int(raw or "0") / 1_000, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        logger.warning("Bad date attribute %r, using import time", raw)
        return datetime.now(timezone.utc)


def _iter_sms(xml_path: Path) -> Iterator[RawSMS]:
    """Генерирует RawSMS из XML-дампа (только входящие, непустые)."""
    tree = ET.parse(xml_path)
    root = tree.getroot()

    for elem in root.findall("sms"):
        body = (elem.get("body") or "").strip()
        if not body or elem.get("type") == SENT_TYPE:
            continue
        date_dt = _sms_date(elem.get("date"))

        yield RawSMS(
            source="xml",
            device_id="xml_backup",
            msg_id=get_md5_hash(body),
            sender=elem.get("address") or "unknown",
            date=date_dt.isoformat(),
            body=body,
        )


# ───────────────────────── обработка ────────────────────────────────


def import_backup(
    xml_path: Path,
    *,
    cache: Cache,
    context: Optional[ParsingContext] = None,
) -> dict[str, int]:
    """Parse every SMS of *xml_path* into *cache*; returns counters."""
    stats = {"imported": 0, "not_financial": 0, "skipped": 0, "failed": 0}
    logger.info("Processing %s", xml_path)

    for sms in _iter_sms(xml_path):
        if sms.msg_id in cache:
            stats["skipped"] += 1
            continue
        try:
            parsed = parse_sms_message(
                sms.body,
                sms.sender,
                context=context,
                received_at=datetime.fromisoformat(sms.date),
            )
        except Exception as exc:  # noqa: BLE001
            sentry_capture(exc, extras={"sms_body": sms.body, "file": str(xml_path)})
            logger.exception("Failed to parse message %s", sms.msg_id)
            stats["failed"] += 1
            continue

        if parsed is None:
            stats["not_financial"] += 1
            continue

        cache.set(sms.msg_id, parsed.model_dump(mode="json"))
        stats["imported"] += 1

    logger.info(
        "Done %s. Imported: %d, non-financial: %d, already cached: %d, failed: %d",
        xml_path.name, stats["imported"], stats["not_financial"], stats["skipped"], stats["failed"],
    )
    return stats


def _collect_files(paths: Sequence[Path], backup_dir: Path) -> list[Path]:
    if paths:
        return list(paths)
    return sorted(backup_dir.glob("*.xml"))


def _build_context(storage_path: Optional[Path]) -> ParsingContext:
    if storage_path is None:
        return ParsingContext.empty()
    return ParsingContext.from_storage(load_storage(storage_path))


# ───────────────────────────── main ──────────────────────────────────


def _parse_args(argv: Optional[Iterable[str]]) -> argparse.Namespace:
    settings = get_settings()
    p = argparse.ArgumentParser(description="Import bank SMS from an XML backup")
    p.add_argument("xml", nargs="*", type=Path, help="backup files (default: all *.xml in BACKUP_DIR)")
    p.add_argument("--storage", type=Path, default=settings.storage_path,
                   help="JSON dump of the app storage with rule tables")
    p.add_argument("--cache-dir", type=Path, default=settings.cache_dir,
                   help="DiskCache directory for parsed transactions")
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return p.parse_args(None if argv is None else list(argv))


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    init_sentry(release=RELEASE)

    files = _collect_files(args.xml, Path(get_settings().backup_dir).resolve())
    if not files:
        logger.warning("No XML backups to import")
        return 0

    context = _build_context(args.storage)
    exit_code = 0
    with Cache(str(args.cache_dir)) as cache:
        for xml_path in files:
            try:
                import_backup(xml_path, cache=cache, context=context)
            except (OSError, ET.ParseError) as exc:
                sentry_capture(exc, extras={"file": str(xml_path)})
                logger.error("Cannot read %s: %s", xml_path, exc)
                exit_code = 1
        logger.info("Cache %s holds %d transaction(s)", args.cache_dir, len(cache))
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
