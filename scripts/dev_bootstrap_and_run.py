#!/usr/bin/env python3
"""Prep and launch the forum with one command.

The script mirrors `manage.py` by loading `.env`, (optionally) removing the
local SQLite database, running migrations, seeding a demo forum, and finally
starting the Django development server.

Examples
--------
python scripts/dev_bootstrap_and_run.py
python scripts/dev_bootstrap_and_run.py --keep-db --posts 120
python scripts/dev_bootstrap_and_run.py --no-server
"""
from __future__ import annotations

import argparse
import os
import subprocess
import sys
from pathlib import Path
from typing import Iterable, List

from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parents[1]
MANAGE_DIR = ROOT / "jcommune"
PYTHON = sys.executable
DB_PATH = MANAGE_DIR / "db.sqlite3"

DEFAULT_RESET = os.getenv("FORUM_RESET", "1").lower() not in {"0", "false", "no"}
DEFAULT_RUNSERVER_ADDR = os.getenv("RUNSERVER_ADDR")


def load_env_file() -> None:
    """Load environment variables from `.env` if it exists."""
    env_path = ROOT / ".env"
    if env_path.exists():
        load_dotenv(env_path)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Reset, migrate, seed a demo forum, and launch the dev server."
    )
    parser.add_argument(
        "--keep-db",
        action="store_true",
        help="Reuse the existing database instead of wiping it (env FORUM_RESET=0).",
    )
    parser.add_argument(
        "--force-reset",
        action="store_true",
        help="Force a reset even if --keep-db was supplied earlier.",
    )
    parser.add_argument(
        "--posts",
        type=int,
        default=45,
        help="Posts to seed into the demo topic (default: 45).",
    )
    parser.add_argument(
        "--no-server",
        action="store_true",
        help="Perform setup tasks but do not launch the Django development server.",
    )
    parser.add_argument(
        "--runserver-addr",
        default=DEFAULT_RUNSERVER_ADDR,
        help="Host:port passed to runserver (defaults to Django's 127.0.0.1:8000).",
    )
    return parser.parse_args()


def build_commands(args: argparse.Namespace) -> List[List[str]]:
    commands: List[List[str]] = [
        [PYTHON, "manage.py", "migrate"],
        [PYTHON, "manage.py", "bootstrap_forum", "--posts", str(max(args.posts, 1))],
    ]
    if not args.no_server:
        runserver: List[str] = [PYTHON, "manage.py", "runserver"]
        if args.runserver_addr:
            runserver.append(args.runserver_addr)
        commands.append(runserver)
    return commands


def run_command(cmd: Iterable[str]) -> None:
    command_list = list(cmd)
    print(f"\n=== Running: {' '.join(command_list)}\n", flush=True)
    subprocess.run(command_list, cwd=MANAGE_DIR, check=True)


def reset_datastore() -> None:
    if DB_PATH.exists():
        print(f"\n=== Removing {DB_PATH} for a clean reset\n", flush=True)
        DB_PATH.unlink()
    else:
        print(">>> No SQLite file found; nothing to reset.", flush=True)


def main() -> None:
    load_env_file()

    if not MANAGE_DIR.exists():
        raise SystemExit(f"Expected manage.py directory at {MANAGE_DIR}")

    args = parse_args()
    if args.force_reset:
        reset_db = True
    elif args.keep_db:
        reset_db = False
    else:
        reset_db = DEFAULT_RESET

    if reset_db:
        reset_datastore()
    else:
        print(">>> Keeping existing database (--keep-db).", flush=True)

    for cmd in build_commands(args):
        try:
            run_command(cmd)
        except subprocess.CalledProcessError as exc:
            print(
                f"Command failed (exit {exc.returncode}): {' '.join(cmd)}",
                file=sys.stderr,
                flush=True,
            )
            raise SystemExit(exc.returncode) from exc


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\nAborted by user.\n", flush=True)
