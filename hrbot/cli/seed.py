"""CLI entry point for seeding demo personnel records and department channels.

Usage:
    python -m hrbot.cli.seed
    python -m hrbot.cli.seed --file employees.json

The JSON file has the shape {"employees": [...], "department_channels": [...]}
with the same keys as DEMO_EMPLOYEES / DEMO_DEPARTMENT_CHANNELS below.

Exit Codes:
    0 - Success: Database seeded
    1 - Failure: Error encountered; transaction rolled back
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from sqlalchemy import select
from sqlalchemy.orm import Session

from hrbot.models import Base, DepartmentChannel, Employee
from hrbot.services.logging import setup_server_logging

logger = logging.getLogger(__name__)

DEMO_EMPLOYEES = [
    {
        "last_name": "Иванов",
        "first_name": "Иван",
        "middle_name": "Иванович",
        "department_id": 10,
        "position_id": 101,
        "phone": "+7 900 111-22-33",
    },
    {
        "last_name": "Петров",
        "first_name": "Петр",
        "middle_name": "Петрович",
        "department_id": 20,
        "position_id": 201,
        "phone": "89002223344",
    },
    {
        "last_name": "Сидорова",
        "first_name": "Анна",
        "middle_name": "Сергеевна",
        "department_id": 30,
        "position_id": 301,
        "phone": "9003334455",
    },
    {
        "last_name": "Кузнецов",
        "first_name": "Дмитрий",
        "middle_name": None,
        "department_id": 10,
        "position_id": 102,
        "phone": "+79004445566",
    },
]

DEMO_DEPARTMENT_CHANNELS = [
    {"department": "10", "channel_id": "-1001000000010"},
    {"department": "20", "channel_id": "-1001000000020"},
    {"department": "30", "channel_id": "-1001000000030"},
]


def seed(db: Session, employees: list[dict], department_channels: list[dict]) -> tuple[int, int]:
    """Upsert employees (by name + department + position) and channel bindings.

    Returns:
        (employees upserted, bindings upserted)
    """
    for data in employees:
        employee = db.execute(
            select(Employee).where(
                Employee.last_name == data["last_name"],
                Employee.first_name == data["first_name"],
                Employee.department_id == data["department_id"],
                Employee.position_id == data["position_id"],
            )
        ).scalar_one_or_none()
        if employee is None:
            employee = Employee(**data)
            db.add(employee)
        else:
            employee.middle_name = data.get("middle_name")
            employee.phone = data.get("phone")

    for data in department_channels:
        binding = db.execute(
            select(DepartmentChannel).where(DepartmentChannel.department == str(data["department"]))
        ).scalar_one_or_none()
        if binding is None:
            db.add(DepartmentChannel(department=str(data["department"]), channel_id=str(data["channel_id"])))
        else:
            binding.channel_id = str(data["channel_id"])

    db.commit()
    return len(employees), len(department_channels)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Seed personnel records")
    parser.add_argument("--file", type=Path, default=None, help="JSON file with seed data")
    args = parser.parse_args(argv)

    load_dotenv()
    setup_server_logging(log_file="logs/seed.log")

    from hrbot.services import SessionLocal, engine

    try:
        if args.file:
            data = json.loads(args.file.read_text(encoding="utf-8"))
            employees = data.get("employees", [])
            department_channels = data.get("department_channels", [])
        else:
            employees, department_channels = DEMO_EMPLOYEES, DEMO_DEPARTMENT_CHANNELS

        Base.metadata.create_all(engine)
        db = SessionLocal()
        try:
            counts = seed(db, employees, department_channels)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

        logger.info("Seed completed: %d employee(s), %d department channel(s)", *counts)
        return 0

    except KeyboardInterrupt:
        logger.warning("Seed interrupted by user")
        return 1
    except Exception as e:
        logger.error("Seed failed: %s", e, exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
