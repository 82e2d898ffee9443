"""Backup the database.

Note: This script needs `mongodump` (MongoDB Database Tools) on the PATH.
"""

from __future__ import annotations

import importlib
import subprocess
import sys
from datetime import datetime
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    mongo = settings.MONGO_CONFIG

    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    out_file = REPO_ROOT / "backups" / f"{mongo['database']}_{ts}.archive.gz"
    out_file.parent.mkdir(parents=True, exist_ok=True)

    cmd = [
        "mongodump",
        f"--uri={mongo['uri']}",
        f"--db={mongo['database']}",
        f"--archive={out_file}",
        "--gzip",
    ]

    try:
        subprocess.run(cmd, stderr=subprocess.PIPE, check=True)
        print(f"OK: Backup created: {out_file}")
    except FileNotFoundError:
        raise SystemExit("`mongodump` not found. Install the MongoDB Database Tools first.")


if __name__ == "__main__":
    main()
