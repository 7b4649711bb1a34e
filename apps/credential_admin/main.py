"""credential-admin entrypoint for operator-side credential maintenance."""

from __future__ import annotations

import argparse
import asyncio
import getpass
import logging
from collections.abc import Callable, Sequence

from digest_credentials.application.services.credential_service import CredentialService
from digest_credentials.config.settings import Settings, load_settings
from digest_credentials.domain.auth.algorithm import AlgorithmDescriptor
from digest_credentials.domain.auth.credentials import normalize_identity
from digest_credentials.infrastructure.db.credential_repository import (
    SqlAlchemyCredentialRepository,
)
from digest_credentials.infrastructure.db.session import create_session_factory
from digest_credentials.infrastructure.logging import configure_logging

logger = logging.getLogger(__name__)


def build_credential_service(
    database_url: str,
    *,
    preferred_algorithm: AlgorithmDescriptor,
) -> CredentialService:
    """Build credential service dependencies for one database URL."""

    session_factory = create_session_factory(database_url)
    return CredentialService(
        credentials=SqlAlchemyCredentialRepository(session_factory),
        preferred_algorithm=preferred_algorithm,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="credential-admin")
    commands = parser.add_subparsers(dest="command", required=True)

    register = commands.add_parser("register", help="Create a credential")
    register.add_argument("identity")
    register.add_argument(
        "--no-password",
        action="store_true",
        help="Create the credential without an initial password",
    )

    passwd = commands.add_parser("passwd", help="Change a password (migrates the algorithm)")
    passwd.add_argument("identity")

    status = commands.add_parser("status", help="Show algorithm migration status")
    status.add_argument("identity")
    return parser


async def run_command(
    args: argparse.Namespace,
    *,
    service: CredentialService,
    read_password: Callable[[str], str] | None = None,
) -> str:
    """Execute one parsed command and return the line to print."""

    prompt = read_password or getpass.getpass

    if args.command == "register":
        password = None if args.no_password else prompt("New password: ")
        record = await service.register(identity=args.identity, password=password)
        return f"registered {record.identity} algorithm={record.hash_algorithm}"

    if args.command == "passwd":
        record = await service.change_password(
            identity=args.identity,
            new_password=prompt("New password: "),
        )
        return f"password changed for {record.identity} algorithm={record.hash_algorithm}"

    identity = normalize_identity(identity=args.identity)
    status = await service.migration_status(identity=identity)
    return f"{identity} {status.value}"


async def _run_credential_admin(argv: Sequence[str] | None, settings: Settings) -> str:
    args = build_parser().parse_args(argv)
    service = build_credential_service(
        settings.database_url,
        preferred_algorithm=settings.preferred_algorithm,
    )
    return await run_command(args, service=service)


def main(argv: Sequence[str] | None = None) -> None:
    """Run one credential-admin command."""

    settings = load_settings()
    configure_logging(level=settings.log_level)
    logger.info("credential_admin_starting algorithm=%s", settings.password_hash_algorithm)
    print(asyncio.run(_run_credential_admin(argv, settings)))


if __name__ == "__main__":
    main()
