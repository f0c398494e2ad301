"""Test seeding of personnel records and department bindings."""

import json
import logging

from sqlalchemy import func, select

from hrbot.cli.seed import DEMO_DEPARTMENT_CHANNELS, DEMO_EMPLOYEES, main, seed
from hrbot.models import DepartmentChannel, Employee
from hrbot.services.channel_service import ChannelService
from hrbot.services.employee_service import EmployeeService


def test_demo_data_loads(db_session):
    counts = seed(db_session, DEMO_EMPLOYEES, DEMO_DEPARTMENT_CHANNELS)

    assert counts == (len(DEMO_EMPLOYEES), len(DEMO_DEPARTMENT_CHANNELS))
    assert db_session.execute(select(func.count(Employee.id))).scalar() == len(DEMO_EMPLOYEES)
    assert ChannelService(db_session).resolve_department_channel(20) == "-1001000000020"


def test_seed_is_idempotent(db_session):
    seed(db_session, DEMO_EMPLOYEES, DEMO_DEPARTMENT_CHANNELS)
    seed(db_session, DEMO_EMPLOYEES, DEMO_DEPARTMENT_CHANNELS)

    assert db_session.execute(select(func.count(Employee.id))).scalar() == len(DEMO_EMPLOYEES)
    assert db_session.execute(select(func.count(DepartmentChannel.id))).scalar() == len(
        DEMO_DEPARTMENT_CHANNELS
    )


def test_seeded_employee_is_matchable(db_session):
    seed(db_session, DEMO_EMPLOYEES, [])

    employee = EmployeeService(db_session).find_by_identity(
        "Кузнецов", "Дмитрий", None, 10, 102, phone="9004445566"
    )

    assert employee is not None
    assert employee.middle_name is None


def test_main_rejects_broken_file(tmp_path, monkeypatch):
    root_logger = logging.getLogger()
    monkeypatch.setattr(root_logger, "handlers", list(root_logger.handlers))
    monkeypatch.chdir(tmp_path)
    broken = tmp_path / "seed.json"
    broken.write_text(json.dumps({"employees": [{"last_name": "Иванов"}]}), encoding="utf-8")

    assert main(["--file", str(broken)]) == 1
