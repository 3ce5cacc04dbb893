#!/usr/bin/env python3
"""
Staff Directory -- operator command line.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080
  python main.py list
  python main.py bootstrap-director --password 'S3cure!pass'

Environment variables are read through core.config (SECRET_KEY, DEBUG,
DATABASE_URL, ...). See core/config.py for the full list.
"""

import argparse
import sys

from core.config import get_settings
from core.errors import DirectoryError
from directory.service import EmployeeService
from directory.store import EmployeeStore


def _open_store() -> EmployeeStore:
    settings = get_settings()
    return EmployeeStore(settings.database_url) if settings.database_url else EmployeeStore()


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("api.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def _cmd_list(args: argparse.Namespace) -> int:
    store = _open_store()
    try:
        employees = EmployeeService(store).list_all()
    finally:
        store.close()

    if not employees:
        print("  No employees registered.")
        return 0

    print(f"\n  {'Name':<30} {'Role':<10} {'Document':<14} {'Email':<32} Phones")
    print("  " + "─" * 96)
    for e in employees:
        phones = ", ".join(f"{p.number} ({p.type.value})" for p in e.phones)
        print(f"  {e.full_name:<30} {e.role.value:<10} {e.doc_number:<14} {e.email:<32} {phones}")
    print(f"\n  {len(employees)} employee(s).\n")
    return 0


def _cmd_bootstrap(args: argparse.Namespace) -> int:
    store = _open_store()
    try:
        director = EmployeeService(store).bootstrap_director(
            password=args.password,
            email=args.email,
            doc_number=args.doc_number,
        )
    except DirectoryError as exc:
        print(f"  [!] {exc.message}")
        return 1
    finally:
        store.close()

    if director is None:
        print("  A Director already exists. Nothing to do.")
    else:
        print(f"  Created System Director {director.id} (document {director.doc_number}).")
    return 0


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="staff-directory",
        description="Operator tools for the staff directory API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve --reload
  python main.py list
  python main.py bootstrap-director --password 'S3cure!pass' --email boss@company.com
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    serve.set_defaults(handler=_cmd_serve)

    lister = sub.add_parser("list", help="Print the employee roster")
    lister.set_defaults(handler=_cmd_list)

    boot = sub.add_parser("bootstrap-director", help="Seed the first Director if none exists")
    boot.add_argument("--password", required=True, help="Password for the new Director")
    boot.add_argument("--email", default=settings.bootstrap_director_email, help="Director email")
    boot.add_argument(
        "--doc-number",
        default=settings.bootstrap_director_doc_number,
        help="Director document number (used to log in)",
    )
    boot.set_defaults(handler=_cmd_bootstrap)

    args = parser.parse_args(argv)
    if not getattr(args, "handler", None):
        parser.print_help()
        return 0
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
