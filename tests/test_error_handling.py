"""Tests for error handling across the API.

Service errors are rendered as JSON with the exception's status code.
"""

import json
import logging

import pytest
from fastapi.testclient import TestClient

from src.api.exceptions import (
    InteractionStoreError,
    MarketRecException,
    ModelNotLoadedError,
    ModelSaveError,
    TrainingInProgressError,
    TrainingTimeoutError,
)
from src.api.logging_config import JSONFormatter
from src.api.main import app
from src.api.routes import recommend


@pytest.fixture
def client(service):
    app.dependency_overrides[recommend.get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.mark.parametrize(
    "error, status_code",
    [
        (TrainingInProgressError(started_at="2024-05-01T02:00:00+00:00"), 409),
        (ModelSaveError("models/recommendation", OSError("disk full")), 500),
        (TrainingTimeoutError(1800, 3), 504),
        (InteractionStoreError("interactions.csv", ConnectionError("refused")), 502),
    ],
)
def test_training_errors_map_to_status_codes(client, service, monkeypatch, error, status_code):
    def failing_train():
        raise error

    monkeypatch.setattr(service, "train", failing_train)

    response = client.post("/recommend/train")

    assert response.status_code == status_code
    body = response.json()
    assert body["error"] == type(error).__name__
    assert body["message"] == error.message
    assert body["details"] == json.loads(json.dumps(error.details))


def test_concurrent_train_request_gets_409(client, service):
    """Test that a request while the guard is held is rejected, not queued."""
    service.trainer._guard.acquire()
    try:
        response = client.post("/recommend/train")
    finally:
        service.trainer._guard.release()

    assert response.status_code == 409
    assert response.json()["error"] == "TrainingInProgressError"


def test_exception_defaults():
    error = MarketRecException("boom")

    assert error.status_code == 500
    assert error.details == {}
    assert str(error) == "boom"


def test_model_not_loaded_error():
    error = ModelNotLoadedError("models/x")

    assert error.status_code == 503
    assert error.details == {"model_dir": "models/x"}


def test_save_error_details():
    error = ModelSaveError("models/x", PermissionError("denied"))

    assert error.details["error_type"] == "PermissionError"
    assert "denied" in error.message


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord(
        name="src.test", level=logging.WARNING, pathname=__file__, lineno=1,
        msg="cache read failed", args=(), exc_info=None,
    )
    record.user_id = "alice"

    data = json.loads(JSONFormatter().format(record))

    assert data["message"] == "cache read failed"
    assert data["level"] == "WARNING"
    assert data["service"] == "recommendation-service"
    assert data["user_id"] == "alice"
    assert "args" not in data


def test_api_exceptions_are_the_core_classes():
    """Test that the API handler catches what the recommender raises."""
    from src.recommender import exceptions as core

    assert TrainingInProgressError is core.TrainingInProgressError
    assert issubclass(core.ModelSaveError, MarketRecException)
