#!/usr/bin/env python3
"""
Create or reset accounts in the credential store.

Each positional argument is a ``username=password`` pair. Passwords are
digested before they leave this process; existing accounts get the new
digest.
"""

import argparse
import asyncio
import sys
import os

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from shared.config import BaseConfig  # noqa: E402
from shared.errors import RecipesApiException  # noqa: E402
from shared.logging import configure_logging  # noqa: E402
from service_recipes.app.auth.passwords import digest_password  # noqa: E402
from service_recipes.app.persistence.postgres import PostgresPool, PostgresCredentialStore  # noqa: E402


def parse_pairs(pairs):
    """Split ``username=password`` arguments, rejecting blanks."""
    accounts = {}
    for pair in pairs:
        username, sep, password = pair.partition("=")
        if not sep or not username or not password:
            raise ValueError(f"expected username=password, got {pair!r}")
        accounts[username] = password
    return accounts


async def create_users(*, postgres_dsn: str, namespace: str, accounts: dict) -> list:
    pool = PostgresPool(postgres_dsn, namespace)
    credentials = PostgresCredentialStore(pool)

    await credentials.start()
    try:
        for username, password in accounts.items():
            await credentials.upsert(username, digest_password(password))
    finally:
        await credentials.stop()

    return sorted(accounts)


def _parse_args() -> argparse.Namespace:
    defaults = BaseConfig()
    parser = argparse.ArgumentParser(description="Create or reset accounts.")
    parser.add_argument("accounts", nargs="+", help="username=password pairs")
    parser.add_argument("--postgres-dsn", default=defaults.postgres_dsn, help="PostgreSQL DSN")
    parser.add_argument("--namespace", default=defaults.db_namespace, help="Schema holding the users table")
    return parser.parse_args()


def main() -> int:
    args = _parse_args()
    configure_logging("recipes-users", os.getenv("RECIPES_LOG_LEVEL", "info"))

    try:
        accounts = parse_pairs(args.accounts)
    except ValueError as exc:
        print(f"[users] {exc}", file=sys.stderr)
        return 2

    try:
        usernames = asyncio.run(
            create_users(postgres_dsn=args.postgres_dsn, namespace=args.namespace, accounts=accounts)
        )
    except KeyboardInterrupt:
        return 130
    except RecipesApiException as exc:
        print(f"[users] failed: {exc.message} {exc.details}", file=sys.stderr)
        return 1

    for username in usernames:
        print(f"[users] upserted {username}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
