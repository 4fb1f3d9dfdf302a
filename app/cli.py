"""CLI commands for LINE Coach."""

import argparse
import asyncio
import json
import sys
import uuid

from sqlalchemy.orm import Session

from app.database import SessionLocal
from app.services.coaching_service import CoachingService
from app.services.driver_service import JOB_NAMES, DriverService
from app.services.notification_types import NotificationType


async def _run_job(db: Session, job: str, notification_type: NotificationType | None):
    coaching_service = CoachingService(db)
    try:
        return await DriverService(db, coaching_service).run_job(job, notification_type)
    finally:
        await coaching_service.messenger.close()


def run_job(job: str, type_name: str | None = None) -> None:
    """Run one batch driver and print its summary as JSON."""
    try:
        notification_type = NotificationType.parse(type_name) if type_name else None
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    db: Session = SessionLocal()

    try:
        try:
            summary = asyncio.run(_run_job(db, job, notification_type))
        except ValueError as e:
            print(f"Error: {e}")
            sys.exit(1)

        print(json.dumps({"type": summary.job, "stats": summary.to_dict()}))

    finally:
        db.close()


async def _send(
    db: Session, member_id: uuid.UUID, notification_type: NotificationType, dry_run: bool
):
    coaching_service = CoachingService(db)
    try:
        if dry_run:
            return await coaching_service.preview(member_id, notification_type)
        return await coaching_service.send_coaching_message(member_id, notification_type)
    finally:
        await coaching_service.messenger.close()


def send_message(member_id: str, type_name: str, dry_run: bool = False) -> None:
    """Send (or preview) one coaching notification for a member."""
    try:
        member_uuid = uuid.UUID(member_id)
        notification_type = NotificationType.parse(type_name)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    db: Session = SessionLocal()

    try:
        result = asyncio.run(_send(db, member_uuid, notification_type, dry_run))

        if dry_run:
            if result is None:
                print(f"Error: Member '{member_id}' not found.")
                sys.exit(1)
            print(result["message"])
        elif result:
            print(f"Sent {notification_type.value} coaching to member {member_id}")
        else:
            print(f"Not sent: {notification_type.value} coaching to member {member_id}")
            sys.exit(1)

    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="LINE Coach CLI")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # run command
    run_parser = subparsers.add_parser("run", help="Run a scheduled coaching job")
    run_parser.add_argument("job", choices=JOB_NAMES, help="Job to run")
    run_parser.add_argument(
        "--type", help="Notification type for the coaching job (morning, lunch, dinner, evening)"
    )

    # send command
    send_parser = subparsers.add_parser(
        "send", help="Send one coaching notification to a member"
    )
    send_parser.add_argument("--member-id", required=True, help="Member UUID")
    send_parser.add_argument("--type", required=True, help="Notification type")
    send_parser.add_argument(
        "--dry-run", action="store_true", help="Print the message without sending"
    )

    args = parser.parse_args()

    if args.command == "run":
        run_job(args.job, args.type)
    elif args.command == "send":
        send_message(args.member_id, args.type, args.dry_run)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
