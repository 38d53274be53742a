"""Command-line interface for the coworking booking service."""

from __future__ import annotations
import argparse
import logging
import sys
from getpass import getpass
from typing import Sequence

from coworking.api import build_services
from coworking.config import Settings, load_settings, with_overrides
from coworking.database import Database
from coworking.errors import BookingServiceError, ConfigurationError

logger = logging.getLogger("coworking.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Coworking booking service utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    subparsers.add_parser("init-db", help="Initialise the booking database")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP booking service")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: COWORKING_HOST or 127.0.0.1)")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for the HTTP API (default: COWORKING_PORT or 5000)",
    )

    create_parser = subparsers.add_parser("create-user", help="Register a user from the command line")
    create_parser.add_argument("email", help="Unique email address for login")
    create_parser.add_argument("--name", default=None, help="Optional display name")

    list_parser = subparsers.add_parser("list-bookings", help="Print the bookings of a user")
    list_parser.add_argument("user_id", help="Identifier of the user whose bookings to list")

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "init-db", "create-user", "list-bookings"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _initialise_database(settings: Settings) -> Database:
    database = Database(settings.database_path)
    database.initialize()
    logger.info("Database initialised at %s", settings.database_path)
    return database


def _serve(settings: Settings, database: Database) -> None:
    from coworking.api import create_app
    import uvicorn

    logger.info("Starting booking API on http://%s:%s", settings.host, settings.port)
    app = create_app(database=database, settings=settings)
    try:
        uvicorn.run(app, host=settings.host, port=settings.port, log_level="info")
    finally:
        database.close()


def _prompt_for_password() -> str | None:
    for _ in range(3):
        password = getpass("Password: ")
        if not password:
            print("Password must not be empty. Please try again.")
            continue
        confirmation = getpass("Confirm password: ")
        if password != confirmation:
            print("Passwords do not match. Please try again.")
            continue
        return password
    return None


def _create_user(settings: Settings, database: Database, email: str, name: str | None) -> int:
    password = _prompt_for_password()
    if password is None:
        print("Aborted creating user.", file=sys.stderr)
        return 1

    identity, _ = build_services(database, settings)
    try:
        user, _token = identity.register(email, password, name)
    except BookingServiceError as exc:
        print(f"Failed to create user: {exc}", file=sys.stderr)
        return 1

    print(f"Created user {user.id}: {user.name or '<no name>'} <{user.email}>")
    return 0


def _list_bookings(settings: Settings, database: Database, user_id: str) -> int:
    _, ledger = build_services(database, settings)
    count = 0
    for booking in ledger.list_by_user(user_id):
        if count == 0:
            print(f"{'ID':<32}  {'Space':<28}  {'Start':<25}  {'End':<25}  Amount")
            print("-" * 124)
        space = f"{booking.space_type}/{booking.sub_type}"
        print(
            f"{booking.id:<32}  {space:<28}  {booking.start_date.isoformat():<25}  "
            f"{booking.end_date.isoformat():<25}  {booking.total_amount}"
        )
        count += 1

    if count == 0:
        print(f"No bookings found for user {user_id}.")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    args = _parse_args(argv)
    try:
        settings = load_settings()
    except ConfigurationError as exc:
        raise SystemExit(f"Configuration error: {exc}") from exc

    if args.command == "serve":
        settings = with_overrides(settings, host=args.host, port=args.port)

    database = _initialise_database(settings)

    if args.command == "serve":
        _serve(settings, database)
        return 0

    try:
        if args.command == "init-db":
            print("Database initialisation complete.")
            return 0
        if args.command == "create-user":
            return _create_user(settings, database, args.email, args.name)
        if args.command == "list-bookings":
            return _list_bookings(settings, database, args.user_id)
    finally:
        database.close()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
