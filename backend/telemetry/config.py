from __future__ import annotations

import os
from pathlib import Path


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[2]


def telemetry_path() -> Path:
    return Path(
        os.getenv("PTMAP_TELEMETRY_PATH")
        or (_repo_root() / "data" / "telemetry" / "viewport.duckdb")
    )


def telemetry_enabled() -> bool:
    # Off unless asked for; the core runs embedded in hosts that may not want a db file.
    v = (os.getenv("PTMAP_TELEMETRY") or "0").strip().lower()
    return v in {"1", "true", "yes", "on"}
