"""Command line for running and maintaining a kotoba server.

  python -m kotoba [serve] [--port PORT] [--host HOST] [--no-auto-import]
  python -m kotoba stop | restart | status
  python -m kotoba import | seed | stats
"""
from __future__ import annotations

import argparse
import os
import signal
import time
from pathlib import Path

PID_FILE = Path(__file__).resolve().parent.parent / ".server.pid"
STOP_TIMEOUT = 10.0


def _server_pid() -> int | None:
    """PID of the live server recorded in PID_FILE; clears a stale file."""
    try:
        pid = int(PID_FILE.read_text().strip())
        os.kill(pid, 0)
    except FileNotFoundError:
        return None
    except (ValueError, ProcessLookupError, PermissionError):
        PID_FILE.unlink(missing_ok=True)
        return None
    return pid


def _alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    return True


def cmd_status(args):
    pid = _server_pid()
    print("Server is not running." if pid is None else f"Server is running (PID {pid}).")


def cmd_stop(args) -> bool:
    pid = _server_pid()
    if pid is None:
        print("Server is not running.")
        return False
    try:
        os.kill(pid, signal.SIGTERM)
    except ProcessLookupError:
        pass
    deadline = time.monotonic() + STOP_TIMEOUT
    while _alive(pid) and time.monotonic() < deadline:
        time.sleep(0.1)
    PID_FILE.unlink(missing_ok=True)
    print(f"Stopped server (PID {pid}).")
    return True


def cmd_serve(args):
    import uvicorn

    pid = _server_pid()
    if pid is not None:
        raise SystemExit(f"Server already running (PID {pid}). Use 'restart' or 'stop' first.")
    if args.no_auto_import:
        os.environ["KOTOBA_NO_AUTO_IMPORT"] = "1"

    PID_FILE.write_text(str(os.getpid()))
    print(f"Kotoba API on http://{args.host}:{args.port} (Ctrl+C to stop)")
    try:
        uvicorn.run("kotoba.app:app", host=args.host, port=args.port, timeout_graceful_shutdown=5)
    finally:
        PID_FILE.unlink(missing_ok=True)
        os.environ.pop("KOTOBA_NO_AUTO_IMPORT", None)


def cmd_restart(args):
    cmd_stop(args)
    cmd_serve(args)


def _open_db():
    from kotoba.config import load_settings
    from kotoba.db import Database

    settings = load_settings()
    return settings, Database(settings.db_full_path)


def cmd_import(args):
    from kotoba.parsers.jlpt_csv_parser import import_jlpt_files

    settings, db = _open_db()
    try:
        missing = [p for p in settings.jlpt_csv_files().values() if not p.exists()]
        for path in missing:
            print(f"  not found: {path}")
        for level, n in import_jlpt_files(db, settings, only_changed=False).items():
            print(f"  {level}: {n} new words")
        print(f"JLPT words in database: {db.count_all_jlpt_words()}")
    finally:
        db.close()


def cmd_seed(args):
    from kotoba.seed import seed_dev_data

    _, db = _open_db()
    try:
        created = seed_dev_data(db)
    finally:
        db.close()
    print(", ".join(f"{n} {kind}" for kind, n in created.items()) + " created")


def cmd_stats(args):
    _, db = _open_db()
    try:
        stats = db.get_stats()
    finally:
        db.close()
    rows = [(f"JLPT {level}", n) for level, n in stats["jlpt_words"].items()]
    rows += [
        ("Quiz words", stats["total_quiz_words"]),
        ("Users", stats["total_users"]),
        ("Diaries", stats["total_diaries"]),
        ("Vocabulary", stats["total_vocabularies"]),
    ]
    for label, n in rows:
        print(f"{label:<12}{n:>8}")


def _add_server_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--port", type=int, default=8080)
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--no-auto-import", action="store_true",
                   help="skip importing changed JLPT CSV files at startup")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="kotoba", description="Kotoba API server and maintenance tasks")
    _add_server_options(parser)
    parser.set_defaults(func=cmd_serve)
    sub = parser.add_subparsers(title="commands")

    for name, func, help_text in [
        ("serve", cmd_serve, "run the API server"),
        ("restart", cmd_restart, "stop the running server and start a new one"),
    ]:
        p = sub.add_parser(name, help=help_text)
        _add_server_options(p)
        p.set_defaults(func=func)

    for name, func, help_text in [
        ("stop", cmd_stop, "stop the running server"),
        ("status", cmd_status, "show whether the server is running"),
        ("import", cmd_import, "re-read every JLPT CSV file"),
        ("seed", cmd_seed, "create development users, diaries and vocabulary"),
        ("stats", cmd_stats, "print row counts"),
    ]:
        sub.add_parser(name, help=help_text).set_defaults(func=func)
    return parser


def main(argv: list[str] | None = None):
    args = build_parser().parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
