import pytest
from fastapi.testclient import TestClient

from app.services.submission_service import SubmissionService
from tests.fakes import FakeEmailService, FakeRecordStore, FakeStorage


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def records():
    return FakeRecordStore()


@pytest.fixture
def email_service():
    return FakeEmailService()


@pytest.fixture
def service(storage, records, email_service):
    return SubmissionService(storage, records, email_service)


@pytest.fixture
def client(service):
    from main import app

    app.state.submission_service = service
    yield TestClient(app)
    app.state.submission_service = None
