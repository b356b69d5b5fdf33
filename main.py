"""Command-line interface for the POS back office API."""

from __future__ import annotations
import argparse
import logging
import os
import sys
from getpass import getpass
from typing import Sequence

from pos_api.auth import AuthService
from pos_api.config import Settings, load_settings, resolve_database_path
from pos_api.database import Database
from pos_api.errors import ConfigurationError, ServiceError
from pos_api.passwords import PasswordHasher
from pos_api.tokens import TokenIssuer

logger = logging.getLogger("pos.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="POS back office API utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    subparsers.add_parser("init-db", help="Initialise the database tables")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP API")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address for the API")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=3000,
        help="Port for the HTTP API (default: 3000)",
    )

    user_parser = subparsers.add_parser("create-user", help="Register a user account")
    user_parser.add_argument("email", help="Unique email address for login")

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "init-db", "create-user"}

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


def _load_settings_or_exit() -> Settings:
    try:
        return load_settings()
    except ConfigurationError as exc:
        raise SystemExit(f"Configuration error: {exc}") from exc


def _initialise_database() -> Database:
    db_path = resolve_database_path(os.getenv("POS_DB_PATH"))
    database = Database(db_path)
    database.initialize()
    logger.info("Database initialised at %s", db_path)
    return database


def _serve(*, settings: Settings, database: Database, host: str, port: int) -> None:
    from pos_api.service import create_app
    import uvicorn

    logger.info("Starting POS API on http://%s:%s", host, port)

    app = create_app(settings, database=database)
    uvicorn.run(app, host=host, port=port, log_level="info")


def _prompt_for_password(min_length: int) -> str | None:
    for _ in range(3):
        password = getpass(f"Password (min {min_length} characters): ")
        if len(password) < min_length:
            print("Password is too short. Please try again.")
            continue
        confirmation = getpass("Confirm password: ")
        if password != confirmation:
            print("Passwords do not match. Please try again.")
            continue
        return password
    return None


def _create_user(settings: Settings, database: Database, email: str) -> int:
    auth = AuthService(
        database,
        PasswordHasher(),
        TokenIssuer(settings.token_secret, ttl=settings.token_ttl),
        password_min_length=settings.password_min_length,
    )

    password = _prompt_for_password(settings.password_min_length)
    if password is None:
        print("Aborted creating user.", file=sys.stderr)
        return 1

    try:
        user = auth.register(email, password)
    except ServiceError as exc:
        print(f"Failed to create user: {exc.message}", file=sys.stderr)
        return 1

    print(f"Created user #{user.id}: <{user.email}>")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)

    if args.command == "init-db":
        _initialise_database()
        print("Database initialisation complete.")
        return 0

    settings = _load_settings_or_exit()
    database = Database(settings.database_path)
    database.initialize()

    if args.command == "serve":
        _serve(settings=settings, database=database, host=args.host, port=args.port)
    elif args.command == "create-user":
        return _create_user(settings, database, args.email)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
