"""Maintenance commands for operators.

Wraps MaintenanceService and UserService for tasks that have no place in
the web UI (first admin, orphaned identities, email conflicts). Every
command runs with the service role key and refuses to start without it.
"""
from __future__ import annotations
import argparse
import json
import logging
import sys

from vinculo.core.config import get_settings
from vinculo.core.errors import VinculoError
from vinculo.core.identity import IdentityProvider
from vinculo.core.supabase_client import supabase_admin
from vinculo.repositories.note_repo import NoteRepository
from vinculo.repositories.teacher_repo import TeacherRepository
from vinculo.repositories.user_repo import ProfileRepository
from vinculo.services.maintenance_service import MaintenanceService
from vinculo.services.user_service import UserService

logger = logging.getLogger("vinculo.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vinculo-admin",
        description="Vinculo PEI maintenance commands",
    )
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")

    sub = parser.add_subparsers(dest="cmd")

    sb = sub.add_parser("bootstrap-admin", help="Create the first administrator")
    sb.add_argument("--email", required=True)
    sb.add_argument("--password", required=True)
    sb.add_argument("--name", default="Administrador Geral")

    sc = sub.add_parser("check-email", help="Show the profile holding an email")
    sc.add_argument("email")

    sub.add_parser("registered-emails", help="List emails with a profile")

    so = sub.add_parser("orphans", help="List auth identities without a profile")
    so.add_argument("--purge", action="store_true", help="Delete the orphaned identities")

    sd = sub.add_parser("delete-user", help="Delete a profile and its dependent rows")
    sd.add_argument("profile_id", type=int)

    return parser


def _print(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.cmd:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else get_settings().LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not get_settings().SUPABASE_SERVICE_ROLE_KEY:
        parser.error("SUPABASE_SERVICE_ROLE_KEY must be set to run maintenance commands")

    db = supabase_admin()
    profiles = ProfileRepository()
    identity = IdentityProvider()
    maintenance = MaintenanceService(profiles, identity)

    try:
        if args.cmd == "bootstrap-admin":
            profile = maintenance.bootstrap_admin(db, args.email, args.password, args.name)
            _print(profile.model_dump())

        elif args.cmd == "check-email":
            profile = maintenance.check_email(db, args.email)
            _print({"exists": profile is not None, "profile": profile.model_dump() if profile else None})

        elif args.cmd == "registered-emails":
            emails = maintenance.registered_emails(db)
            _print({"count": len(emails), "emails": emails})

        elif args.cmd == "orphans":
            found = maintenance.purge_orphans(db) if args.purge else maintenance.find_orphans(db)
            _print(
                {
                    "purged": args.purge,
                    "identities": [{"id": i.id, "email": i.email} for i in found],
                }
            )

        elif args.cmd == "delete-user":
            users = UserService(profiles, TeacherRepository(), NoteRepository(), identity)
            report = users.delete_user(db, args.profile_id)
            _print(report.model_dump())
            if report.partial:
                return 3

    except VinculoError as exc:
        logger.error("%s: %s", exc.kind, exc.detail)
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
