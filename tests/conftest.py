"""Shared fixtures: soil datasets, a recording platform stub, a fake BETY connection."""

from __future__ import annotations

import pytest

from forte_ed.errors import ExternalServiceFailure
from forte_ed.types import WorkflowRecord


STUB_WORKFLOW_ID = 99000000123
STUB_MODEL_ID = 1000000014


class RecordingPlatform:
    """Platform stub that records every call and returns canned results."""

    def __init__(self, workflow_id=STUB_WORKFLOW_ID, model_id=STUB_MODEL_ID,
                 fail_on=None):
        self.workflow_id = workflow_id
        self.model_id = model_id
        self.fail_on = fail_on
        self.calls = []
        self.submitted = None

    @property
    def touched(self):
        return len(self.calls) > 0

    def _maybe_fail(self, name):
        if self.fail_on == name:
            raise ExternalServiceFailure(f"stub failure in {name}")

    def lookup_model(self, name, revision):
        self.calls.append(('lookup_model', name, revision))
        self._maybe_fail('lookup_model')
        return self.model_id

    def insert_workflow(self, site_id, model_id, start_date, end_date, notes):
        self.calls.append(('insert_workflow', site_id, model_id, start_date, end_date, notes))
        self._maybe_fail('insert_workflow')
        return WorkflowRecord(
            id=self.workflow_id,
            site_id=site_id,
            model_id=model_id,
            start_date=start_date,
            end_date=end_date,
            notes=notes,
            folder=f"/data/workflows/PEcAn_{self.workflow_id}",
        )

    def submit(self, settings):
        self.calls.append(('submit',))
        self._maybe_fail('submit')
        self.submitted = settings


class FakeDBError(Exception):
    pass


class FakeCursor:
    def __init__(self, connection):
        self.connection = connection
        self._rows = []
        self.closed = False

    def execute(self, sql, params=()):
        self.connection.executed.append((sql, params))
        if self.connection.raise_on and self.connection.raise_on in sql:
            raise FakeDBError(f"boom: {self.connection.raise_on}")
        if sql.startswith("SELECT id FROM models"):
            self._rows = [(i,) for i in self.connection.model_ids]
        elif sql.startswith("INSERT INTO workflows"):
            self._rows = [(self.connection.next_workflow_id,)]
        else:
            self._rows = []

    def fetchall(self):
        return list(self._rows)

    def close(self):
        self.closed = True


class FakeConnection:
    """Minimal DB-API 2.0 connection recording executed SQL."""

    Error = FakeDBError

    def __init__(self, model_ids=(STUB_MODEL_ID,), next_workflow_id=STUB_WORKFLOW_ID,
                 raise_on=None):
        self.model_ids = list(model_ids)
        self.next_workflow_id = next_workflow_id
        self.raise_on = raise_on
        self.executed = []
        self.commits = 0
        self.rollbacks = 0

    def cursor(self):
        return FakeCursor(self)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1


def write_soil_csv(path, rows, header="depth,slmstr"):
    lines = [header] + [",".join(str(v) for v in row) for row in rows]
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def soil_csv(tmp_path):
    """Two-layer soil dataset: 10 m / 0.2 and 30 m / 0.3."""
    return write_soil_csv(tmp_path / "soil-moisture.csv", [(10, 0.2), (30, 0.3)])


@pytest.fixture
def stub_platform():
    return RecordingPlatform()


@pytest.fixture
def fake_connection():
    return FakeConnection()


@pytest.fixture
def make_soil_csv(tmp_path):
    """Factory writing a soil CSV under tmp_path."""
    def _make(rows, header="depth,slmstr", name="soil-moisture.csv"):
        return write_soil_csv(tmp_path / name, rows, header=header)
    return _make


@pytest.fixture
def make_connection():
    """Factory for FakeConnection with custom model rows or failures."""
    return FakeConnection


@pytest.fixture
def make_platform():
    """Factory for RecordingPlatform, e.g. make_platform(fail_on='submit')."""
    return RecordingPlatform
