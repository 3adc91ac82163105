import io
import os
import sqlite3
from datetime import datetime, timezone

import pytest

from pycbbmon.monitor.metrics.emitter import MetricEmitter

PLAN_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<BasePlan xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" xsi:type="BackupPlan">
  <ID>{plan_id}</ID>
  <Name>{name}</Name>
  <Schedule><Enabled>true</Enabled></Schedule>
</BasePlan>
"""

SESSION_HISTORY_DDL = """
    CREATE TABLE session_history (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        destination_id INTEGER,
        plan_id TEXT,
        date_start_utc TEXT,
        duration INTEGER,
        result INTEGER,
        uploaded_count INTEGER,
        uploaded_size REAL,
        scanned_count INTEGER,
        scanned_size REAL,
        purged_count INTEGER,
        total_count INTEGER,
        total_size REAL,
        failed_count INTEGER,
        error_message TEXT
    )
"""

HISTORY_DDL = """
    CREATE TABLE history (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        destination_id INTEGER,
        plan_id TEXT,
        local_path TEXT,
        operation INTEGER,
        duration INTEGER,
        date_finished_utc TEXT,
        size REAL,
        session_id INTEGER
    )
"""

HISTORY_NO_SESSION_DDL = """
    CREATE TABLE history (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        plan_id TEXT,
        local_path TEXT,
        operation INTEGER,
        date_finished_utc TEXT,
        size REAL
    )
"""

NOW = datetime(2024, 1, 1, 3, 0, 0, tzinfo=timezone.utc)


def write_plan(directory, filename, plan_id, name):
    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, filename)
    with open(path, "w", encoding="utf-8") as f:
        f.write(PLAN_TEMPLATE.format(plan_id=plan_id, name=name))
    return path


def create_history_db(path, with_session_id=True):
    conn = sqlite3.connect(path)
    conn.execute(SESSION_HISTORY_DDL)
    conn.execute(HISTORY_DDL if with_session_id else HISTORY_NO_SESSION_DDL)
    conn.commit()
    conn.close()
    return path


def add_session(db_path, plan_id, date_start_utc, duration=60, result=6, uploaded_count=0,
                uploaded_size=0, total_size=0, **extra):
    row = {
        "destination_id": 1,
        "plan_id": plan_id,
        "date_start_utc": date_start_utc,
        "duration": duration,
        "result": result,
        "uploaded_count": uploaded_count,
        "uploaded_size": uploaded_size,
        "scanned_count": 0,
        "scanned_size": 0,
        "purged_count": 0,
        "total_count": 0,
        "total_size": total_size,
        "failed_count": 0,
    }
    row.update(extra)
    cols = ", ".join(row)
    marks = ", ".join("?" for _ in row)
    conn = sqlite3.connect(db_path)
    cur = conn.execute(f"INSERT INTO session_history ({cols}) VALUES ({marks})", tuple(row.values()))
    conn.commit()
    session_id = cur.lastrowid
    conn.close()
    return session_id


def add_item(db_path, **row):
    cols = ", ".join(row)
    marks = ", ".join("?" for _ in row)
    conn = sqlite3.connect(db_path)
    conn.execute(f"INSERT INTO history ({cols}) VALUES ({marks})", tuple(row.values()))
    conn.commit()
    conn.close()


@pytest.fixture
def program_data(tmp_path):
    """ProgramData tree with two plans and an empty history database."""
    root = tmp_path / "CloudBerry Backup Enterprise Edition"
    write_plan(str(root / "config"), "nightly.cbb", "plan-nightly", "Nightly Backup")
    write_plan(str(root / "config"), "check.cbb", "plan-check", "Consistency Check — Volume1")
    db_dir = root / "data"
    db_dir.mkdir(parents=True)
    create_history_db(str(db_dir / "cbbackup.db"))
    return root


@pytest.fixture
def history_db(program_data):
    return str(program_data / "data" / "cbbackup.db")


@pytest.fixture
def sink():
    return io.StringIO()


@pytest.fixture
def emitter(sink):
    return MetricEmitter(stream=sink, hostname="testhost")
