from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for path in (REPO_ROOT, REPO_ROOT / "src" / "hcms"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from config import get_settings_module

from hcms.database.bootstrap import ensure_admin_user
from hcms.database.connection import DatabaseConnection, MongoConfig
from hcms.database.mongo_store import MongoDocumentStore


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    mongo_config = dict(settings.MONGO_CONFIG)
    username = getattr(settings, "ADMIN_USERNAME", "admin")
    password = getattr(settings, "ADMIN_PASSWORD", "")
    if not password:
        raise SystemExit("ADMIN_PASSWORD is not set.")

    conn = DatabaseConnection.get_instance(MongoConfig(uri=mongo_config["uri"], database=mongo_config["database"]))
    try:
        user = ensure_admin_user(MongoDocumentStore(conn), username=username, password=password)
        print(f"OK: Admin account '{user['username']}' ready -> {mongo_config['database']}")
    finally:
        conn.close()


if __name__ == "__main__":
    main()
