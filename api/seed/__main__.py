"""
Seed CLI.

    python -m seed bootstrap-admin [--email E] [--password P] [--name N]
    python -m seed sample --admin-email E [--reset]

`bootstrap-admin` falls back to ADMIN_EMAIL / ADMIN_PASSWORD / ADMIN_NAME.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from core import db
from core.config import env_str
from core.log import configure_logging

from . import loader

logger = logging.getLogger("seed")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="python -m seed", description="Seed the portfolio database.")
    commands = parser.add_subparsers(dest="command", required=True)

    admin = commands.add_parser("bootstrap-admin", help="Create or promote the admin account")
    admin.add_argument("--email", default=None, help="Defaults to ADMIN_EMAIL")
    admin.add_argument("--password", default=None, help="Defaults to ADMIN_PASSWORD")
    admin.add_argument("--name", default=None, help="Defaults to ADMIN_NAME or 'Admin'")

    sample = commands.add_parser("sample", help="Load sample projects and blog posts")
    sample.add_argument("--admin-email", required=True, help="Owner of the sample content")
    sample.add_argument("--reset", action="store_true", help="Delete existing projects and posts first")
    return parser


async def run(args: argparse.Namespace) -> None:
    await db.init_pool()
    try:
        if args.command == "bootstrap-admin":
            result = await loader.bootstrap_admin(
                name=args.name or env_str("ADMIN_NAME", "Admin"),
                email=args.email or env_str("ADMIN_EMAIL"),
                password=args.password or env_str("ADMIN_PASSWORD"),
            )
            logger.info("Admin %s (id=%s, created=%s)", result["email"], result["id"], result["created"])
        else:
            counts = await loader.load_samples(admin_email=args.admin_email, reset=args.reset)
            logger.info("Seeded %d projects and %d posts", counts["projects"], counts["posts"])
    finally:
        await db.close_pool()


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    args = build_parser().parse_args(argv)
    try:
        asyncio.run(run(args))
    except loader.SeedError as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
