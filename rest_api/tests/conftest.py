import pytest
from fastapi.testclient import TestClient

from rest_api.app import create_app
from rest_api.settings import ServerSettings
from rest_api.storage import CheckInRegistry, StudentRecord


def make_registry() -> CheckInRegistry:
    registry = CheckInRegistry()
    registry.add_student(
        StudentRecord(
            student_id="6512345",
            name="Ada Lovelace",
            tshirt_size="M",
            meal_preference="Vegetarian",
            organization_details="Club: Robotics, Involvement: Member; Club: Chess, Involvement: Captain",
        )
    )
    registry.add_student(StudentRecord(student_id="6500001", name="Alan Turing"))
    return registry


@pytest.fixture
def registry():
    return make_registry()


@pytest.fixture
def client(registry):
    app = create_app(ServerSettings(), registry)
    with TestClient(app) as test_client:
        yield test_client
