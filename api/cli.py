#!/usr/bin/env python3
"""CLI for Bookstore API management tasks.

Usage:
    python -m cli <command>

Commands:
    migrate [target]   Run database migrations (default: head)
    create-tables      Create tables from the models (local development only)
    seed               Insert a small sample catalogue into an empty database
"""

import argparse
import asyncio
import sys
from pathlib import Path

from core.logger import configure_logging, get_logger

logger = get_logger(__name__)

_ALEMBIC_INI = Path(__file__).parent / "alembic.ini"

SAMPLE_AUTHORS = [
    {"first_name": "Italo", "last_name": "Calvino", "bio": "Italian novelist."},
    {"first_name": "Natalia", "last_name": "Ginzburg", "bio": None},
]

SAMPLE_PUBLISHERS = [
    {"name": "Einaudi", "country": "Italy"},
    {"name": "Mondadori", "country": "Italy"},
]

# author/publisher given as indexes into the sample lists above
SAMPLE_BOOKS = [
    {
        "title": "Il barone rampante",
        "year": 1957,
        "isbn": "9788804668237",
        "price": 12.5,
        "author": 0,
        "publisher": 0,
    },
    {
        "title": "Le città invisibili",
        "year": 1972,
        "isbn": "9788804668060",
        "price": 11.0,
        "author": 0,
        "publisher": 1,
    },
    {
        "title": "Lessico famigliare",
        "year": 1963,
        "isbn": "9788806219352",
        "price": 13.0,
        "author": 1,
        "publisher": 0,
    },
]


def cmd_migrate(target: str) -> int:
    """Run database migrations."""
    from alembic import command
    from alembic.config import Config

    logger.info("migrations.started", target=target)
    cfg = Config(str(_ALEMBIC_INI))
    cfg.set_main_option("script_location", str(_ALEMBIC_INI.parent / "alembic"))
    command.upgrade(cfg, target)
    logger.info("migrations.complete", target=target)
    return 0


async def _create_tables() -> None:
    import models  # noqa: F401  (registers tables on Base.metadata)
    from core.database import create_engine, create_tables, dispose_engine

    engine = create_engine()
    try:
        await create_tables(engine)
    finally:
        await dispose_engine(engine)


def cmd_create_tables() -> int:
    """Create all tables directly from the models."""
    asyncio.run(_create_tables())
    return 0


async def _seed() -> bool:
    from core.database import create_engine, create_session_maker, dispose_engine
    from models import Author, Book, Publisher
    from repositories import AuthorRepository, BookRepository, PublisherRepository

    engine = create_engine()
    try:
        async with create_session_maker(engine)() as session:
            authors_repo = AuthorRepository(session)
            publishers_repo = PublisherRepository(session)
            books_repo = BookRepository(session)

            counts = [
                await repo.count()
                for repo in (authors_repo, publishers_repo, books_repo)
            ]
            if any(counts):
                logger.info("seed.skipped", reason="catalogue is not empty")
                return True

            authors = [Author(**values) for values in SAMPLE_AUTHORS]
            publishers = [Publisher(**values) for values in SAMPLE_PUBLISHERS]
            for author in authors:
                if not await authors_repo.create(author):
                    return False
            for publisher in publishers:
                if not await publishers_repo.create(publisher):
                    return False

            for values in SAMPLE_BOOKS:
                values = dict(values)
                book = Book(
                    author_id=authors[values.pop("author")].id,
                    publisher_id=publishers[values.pop("publisher")].id,
                    **values,
                )
                if not await books_repo.create(book):
                    return False

            logger.info(
                "seed.complete",
                authors=len(authors),
                publishers=len(publishers),
                books=len(SAMPLE_BOOKS),
            )
            return True
    finally:
        await dispose_engine(engine)


def cmd_seed() -> int:
    """Insert the sample catalogue unless the database already has data."""
    if not asyncio.run(_seed()):
        logger.error("seed.failed")
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Bookstore API CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    migrate = subparsers.add_parser("migrate", help="Run database migrations")
    migrate.add_argument(
        "target",
        nargs="?",
        default="head",
        help="Target revision (default: head)",
    )
    subparsers.add_parser(
        "create-tables",
        help="Create tables from the models (local development only)",
    )
    subparsers.add_parser(
        "seed",
        help="Insert a sample catalogue into an empty database",
    )

    args = parser.parse_args(argv)
    configure_logging()

    if args.command == "migrate":
        return cmd_migrate(args.target)
    elif args.command == "create-tables":
        return cmd_create_tables()
    elif args.command == "seed":
        return cmd_seed()
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
