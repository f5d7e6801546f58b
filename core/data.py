from __future__ import annotations

import json
import logging
import os
import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from core import config
from core.models import (
    Advisor,
    IsoStandard,
    Quotation,
    advisor_from_dict,
    iso_standard_from_dict,
    quotation_from_dict,
    quotation_to_dict,
)

logger = logging.getLogger(__name__)


class QuotationNotFoundError(KeyError):
    """Raised when a quotation id is not present in the store."""

    def __init__(self, quotation_id: str):
        super().__init__(quotation_id)
        self.quotation_id = quotation_id

    def __str__(self) -> str:
        return f"Quotation not found: {self.quotation_id}"


def file_signature(path: Path) -> Tuple[str, int, int]:
    if not path.exists():
        return (str(path), 0, 0)
    stat = path.stat()
    return (str(path), stat.st_mtime_ns, stat.st_size)


@lru_cache(maxsize=4)
def _load_raw_cached(signature: Tuple[str, int, int]) -> Dict[str, Any]:
    path = Path(signature[0])
    if not path.exists():
        return {"advisors": [], "iso_standards": [], "quotations": []}
    with path.open("r", encoding="utf-8") as fh:
        raw = json.load(fh)
    return {
        "advisors": raw.get("advisors") or [],
        "iso_standards": raw.get("iso_standards") or [],
        "quotations": raw.get("quotations") or [],
    }


class QuotationStore:
    """JSON-file backed store for advisors, ISO standards and quotations."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else config.DATA_PATH

    def _raw(self) -> Dict[str, Any]:
        return _load_raw_cached(file_signature(self.path))

    def load_advisors(self) -> List[Advisor]:
        return [advisor_from_dict(a) for a in self._raw()["advisors"]]

    def load_iso_standards(self) -> List[IsoStandard]:
        return [iso_standard_from_dict(s) for s in self._raw()["iso_standards"]]

    def load_quotations(self) -> List[Quotation]:
        return [quotation_from_dict(q) for q in self._raw()["quotations"]]

    def get_quotation(self, quotation_id: str) -> Quotation:
        for q in self.load_quotations():
            if q.id == quotation_id:
                return q
        raise QuotationNotFoundError(quotation_id)

    def update_quotation(self, quotation: Quotation) -> Quotation:
        raw = self._raw()
        records = list(raw["quotations"])
        for idx, record in enumerate(records):
            if str(record.get("id")) == quotation.id:
                records[idx] = quotation_to_dict(quotation)
                break
        else:
            raise QuotationNotFoundError(quotation.id)
        self._write({**raw, "quotations": records})
        logger.info("updated quotation %s (total=%.2f)", quotation.code or quotation.id, quotation.total)
        return quotation

    def delete_quotation(self, quotation_id: str) -> None:
        raw = self._raw()
        records = [r for r in raw["quotations"] if str(r.get("id")) != quotation_id]
        if len(records) == len(raw["quotations"]):
            raise QuotationNotFoundError(quotation_id)
        self._write({**raw, "quotations": records})
        logger.info("deleted quotation %s", quotation_id)

    def _write(self, payload: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=str(self.path.parent), prefix=".quotations-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except Exception:
            if os.path.exists(tmp_name):
                os.remove(tmp_name)
            raise
        _load_raw_cached.cache_clear()


def get_store() -> QuotationStore:
    return QuotationStore(config.DATA_PATH)
