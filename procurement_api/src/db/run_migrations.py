"""
Programmatic Alembic migration runner.

Allows running migrations without an alembic.ini by configuring the script location
to this package's migrations directory. The database URL comes from
src.db.config.Settings (DATABASE_URL or POSTGRES_*).

Usage examples:
    python -m src.db.run_migrations upgrade head
    python -m src.db.run_migrations downgrade -1
    python -m src.db.run_migrations current
"""

import sys
from pathlib import Path
from typing import List

from alembic import command
from alembic.config import Config

_DEFAULT_ARGS = {"upgrade": ["head"], "downgrade": ["-1"]}
_COMMANDS = {
    "upgrade": command.upgrade,
    "downgrade": command.downgrade,
    "history": command.history,
    "current": command.current,
    "heads": command.heads,
    "stamp": command.stamp,
    "revision": command.revision,
}


def build_config() -> Config:
    """Alembic Config pointing at the migrations folder next to this file."""
    from src.db.config import get_settings

    cfg = Config()
    cfg.set_main_option("script_location", str(Path(__file__).resolve().parent / "migrations"))
    # Offline mode uses this URL; env.py builds its own async engine online.
    cfg.set_main_option("sqlalchemy.url", get_settings().sync_database_url)
    return cfg


# PUBLIC_INTERFACE
def main(argv: List[str] | None = None) -> None:
    """Run Alembic command with programmatic configuration."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print("No Alembic arguments provided. Example: upgrade head")
        sys.exit(1)

    cmd, other = args[0], args[1:]
    if cmd == "show":
        if not other:
            print("Usage: show <revision>")
            sys.exit(2)
        command.show(build_config(), other[0])
        return
    func = _COMMANDS.get(cmd)
    if func is None:
        print(f"Unsupported Alembic command: {cmd}")
        sys.exit(2)
    func(build_config(), *(other or _DEFAULT_ARGS.get(cmd, [])))


if __name__ == "__main__":
    main()
