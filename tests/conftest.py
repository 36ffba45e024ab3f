"""Shared fixtures: a throwaway sqlite database plus fake store/transport."""
import json
import os
import tempfile

import pytest

# Force testing environment before reviewsync reads its settings
_tmpdir = tempfile.mkdtemp(prefix="reviewsync-tests-")
os.environ["APP_ENV"] = "testing"
os.environ["DB_URL"] = f"sqlite:///{os.path.join(_tmpdir, 'test.db')}"
os.environ["REDIS_URL"] = "redis://localhost:6379/15"
os.environ["ROOT_URL"] = "https://example.test/"
os.environ["TASK_RETRIES"] = "0"

from reviewsync.db import Base, ModuleRecord, SessionLocal, engine  # noqa: E402
from reviewsync.store import ModuleConfig  # noqa: E402
from reviewsync.transport import HttpResponse, TransportError  # noqa: E402


VALID_PARAMS = {
    "cid": "12345",
    "apikey": "AIzaSyExampleKey",
    "reviewsort": "newest",
    "secret": "s3cr3t",
}


class FakeStore:
    def __init__(self, records=None):
        self.records = dict(records or {})
        self.loads = []

    def load(self, module_id):
        self.loads.append(module_id)
        return self.records.get(module_id)


class FakeTransport:
    def __init__(self, body=None, error=None, status_code=200):
        self.body = body
        self.error = error
        self.status_code = status_code
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if self.error is not None:
            raise self.error
        return HttpResponse(status_code=self.status_code, body=self.body)


@pytest.fixture(autouse=True)
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def valid_config():
    return ModuleConfig(kind="mod_prettyreviews", params=dict(VALID_PARAMS))


@pytest.fixture
def ok_transport():
    return FakeTransport(body=json.dumps({"success": True, "data": True}))


@pytest.fixture
def failing_transport():
    return FakeTransport(error=TransportError("Connection refused"))


@pytest.fixture
def module_row():
    """Insert a Pretty Reviews module and return its id as a string."""
    def _create(params=None, kind="mod_prettyreviews"):
        session = SessionLocal()
        try:
            record = ModuleRecord(
                title="Reviews",
                module=kind,
                params=json.dumps(VALID_PARAMS if params is None else params),
            )
            session.add(record)
            session.commit()
            return str(record.id)
        finally:
            session.close()
    return _create
