from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for path in (REPO_ROOT, REPO_ROOT / "src" / "hcms"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from config import get_settings_module

from hcms.database.bootstrap import ensure_indexes, list_collections
from hcms.database.connection import DatabaseConnection, MongoConfig


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    mongo_config = dict(settings.MONGO_CONFIG)

    conn = DatabaseConnection.get_instance(MongoConfig(uri=mongo_config["uri"], database=mongo_config["database"]))
    try:
        db = conn.get_database()
        created = ensure_indexes(db)
        print(f"OK: Ensured {created} indexes -> {mongo_config['database']} (collections={len(list_collections(db))})")
    finally:
        conn.close()


if __name__ == "__main__":
    main()
