from __future__ import annotations

import os
from pathlib import Path


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[2]


def _csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


REPO_ROOT = _repo_root()

DEFAULT_SETTINGS_PATH = Path(
    os.getenv("MD2PDF_SETTINGS_PATH", str(REPO_ROOT / "backend" / "default_settings.json"))
)
OUTPUT_DIR = Path(os.getenv("MD2PDF_OUTPUT_DIR", str(REPO_ROOT / "output")))

FETCH_TIMEOUT_S = float(os.getenv("MD2PDF_FETCH_TIMEOUT_S", "5.0"))
FETCH_MAX_BYTES = int(os.getenv("MD2PDF_FETCH_MAX_BYTES", "2000000"))

RENDER_TIMEOUT_MS = int(os.getenv("MD2PDF_RENDER_TIMEOUT_MS", "10000"))
SAFE_MARGIN_PX = int(os.getenv("MD2PDF_SAFE_MARGIN_PX", "100"))
SETTLE_DELAY_S = float(os.getenv("MD2PDF_SETTLE_DELAY_S", "1.5"))

CHROMIUM_ARGS = _csv(
    os.getenv(
        "MD2PDF_CHROMIUM_ARGS",
        "--no-sandbox,--disable-setuid-sandbox,--disable-dev-shm-usage,--disable-gpu",
    )
)

LOG_LEVEL = (os.getenv("MD2PDF_LOG_LEVEL") or "INFO").upper()

# Admission limit for concurrent headless renders; each request still gets its own host.
MAX_CONCURRENT_RENDERS = max(1, int(os.getenv("MD2PDF_MAX_CONCURRENT_RENDERS", "4")))
