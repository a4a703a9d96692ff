from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.daycare_attendance.daycare_attendance.database.bootstrap import (
    apply_procedures,
    apply_schema,
    apply_seed_sql,
    list_tables,
)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Create the daycare tables and pickup procedures.")
    parser.add_argument(
        "--skip-procedures",
        action="store_true",
        help="leave the pickup procedures out (PICKUP_PROCEDURES=auto then uses local lookups)",
    )
    parser.add_argument("--seed", action="store_true", help="also load database/seed.sql demo data")
    args = parser.parse_args(argv)

    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)
    database_dir = REPO_ROOT / "database"

    apply_schema(db_config, schema_path=database_dir / "schema.sql")
    applied = ["schema.sql"]
    if not args.skip_procedures:
        apply_procedures(db_config, procedures_path=database_dir / "procedures.sql")
        applied.append("procedures.sql")
    if args.seed:
        apply_seed_sql(db_config, seed_path=database_dir / "seed.sql")
        applied.append("seed.sql")

    tables = list_tables(db_config)
    print(
        f"OK: Applied {' + '.join(applied)} -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')} "
        f"(tables={len(tables)})"
    )


if __name__ == "__main__":
    main()
