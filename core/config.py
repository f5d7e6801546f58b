from __future__ import annotations

import os
from pathlib import Path
from typing import List


BASE_DIR = Path(__file__).resolve().parents[1]

DATA_PATH = Path(os.environ.get("QUOTES_DATA_PATH", str(BASE_DIR / "data" / "quotations.json")))

# Shared secret that gates destructive actions.
DELETE_CODE = os.environ.get("QUOTES_DELETE_CODE", "CcD2027@ok@2")

IGV_RATE = float(os.environ.get("QUOTES_IGV_RATE", "0.18"))

CURRENCY_SYMBOL = "S/"
CHART_CURRENCY_SYMBOL = "S/."


def cors_origins() -> List[str]:
    raw = os.environ.get("QUOTES_CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
    return [o.strip() for o in raw.split(",") if o.strip()]
