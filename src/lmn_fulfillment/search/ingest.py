"""Load coded reference data and upsert it into a knowledge index."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from lmn_fulfillment.search.protocols import IKnowledgeIndex, ReferenceRecord

log = logging.getLogger(__name__)


def load_reference_records(path: Path) -> list[ReferenceRecord]:
    """Parse ``{"icd10_codes": [{"code", "description", "condition"}, ...]}``.

    Entries without a code or description are skipped with a warning.
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    entries = data.get("icd10_codes") if isinstance(data, dict) else data
    if not isinstance(entries, list):
        raise ValueError(f"{path}: expected an 'icd10_codes' list")

    records: list[ReferenceRecord] = []
    for i, entry in enumerate(entries):
        code = str(entry.get("code") or "").strip()
        description = str(entry.get("description") or "").strip()
        if not code or not description:
            log.warning("Skipping entry %d in %s: missing code or description", i, path)
            continue
        records.append(
            ReferenceRecord(
                code=code,
                description=description,
                condition=str(entry.get("condition") or "").strip(),
            )
        )
    return records


async def ingest_records(
    index: IKnowledgeIndex,
    records: list[ReferenceRecord],
    *,
    batch_size: int = 96,
) -> int:
    """Upsert *records* in batches. Returns the total written."""
    total = 0
    for start in range(0, len(records), batch_size):
        batch = records[start : start + batch_size]
        total += await index.upsert_records(batch)
        log.info(
            "Ingested batch %d (%d records, %d/%d total)",
            start // batch_size + 1, len(batch), total, len(records),
        )
    return total
