"""Pytest configuration and shared fixtures for cost estimator tests."""

import os
import sys
import pytest
from unittest.mock import AsyncMock, MagicMock
from typing import Dict, Any


# ============================================================================
# Ensure local imports work (models/, services/, config/)
# ============================================================================
#
# On some Windows/Python/pytest combinations (especially with importlib import mode),
# the repository root may not reliably be on sys.path during collection.
# Our codebase uses absolute imports like `from models...` / `from services...`.
#
# This guarantees that `functions/` is importable as the top-level module root.
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from tests.fixtures.mock_estimate_data import make_doc  # noqa: E402


# ============================================================================
# Firebase Mocks
# ============================================================================

@pytest.fixture
def mock_firestore_client():
    """Mock Firestore client."""
    client = MagicMock()

    # Mock collection and document methods
    collection_mock = MagicMock()
    document_mock = MagicMock()

    # Set up chain: client.collection().document()
    client.collection.return_value = collection_mock
    collection_mock.document.return_value = document_mock
    document_mock.id = "generated-id"

    # Mock async methods
    document_mock.get = AsyncMock(return_value=make_doc("generated-id", {}, exists=False))
    document_mock.set = AsyncMock()
    document_mock.update = AsyncMock()
    document_mock.delete = AsyncMock()

    # Set up chain: client.collection().where().stream()
    collection_mock.where.return_value = collection_mock
    collection_mock.stream.return_value = []

    return client


@pytest.fixture
def mock_firestore_service(mock_firestore_client):
    """FirestoreService with mocked client."""
    from services.firestore_service import FirestoreService

    service = FirestoreService(db=mock_firestore_client)
    return service


# ============================================================================
# Sample Data Fixtures
# ============================================================================

@pytest.fixture
def sample_inputs():
    """Default calculator inputs: 25,000 RSF on one floor in New York."""
    from models.calculator import ProjectInput

    return ProjectInput(
        project_name="HQ Build-Out",
        project_size=25000,
        floors=1,
        location="New York, NY",
    )


@pytest.fixture
def sample_inputs_with_ti():
    """Calculator inputs with a $50/RSF TI allowance."""
    from models.calculator import ProjectInput

    return ProjectInput(
        project_name="HQ Build-Out",
        project_size=25000,
        floors=1,
        location="New York, NY",
        ti_allowance_per_sf=50,
    )


@pytest.fixture
def default_config():
    """Standard configuration tables."""
    from models.cost_config import get_default_configuration

    return get_default_configuration()


@pytest.fixture
def sample_output(sample_inputs):
    """Engine output for the sample inputs at default sliders."""
    from services.cost_engine import compute_project_costs

    return compute_project_costs(sample_inputs)


@pytest.fixture
def sample_estimate_payload() -> Dict[str, Any]:
    """Raw saved estimate payload as sent by the client."""
    return {
        "name": "Option A",
        "description": "Baseline finishes",
        "inputs": {
            "projectName": "HQ Build-Out",
            "projectSize": 25000,
            "floors": 1,
            "location": "New York, NY",
        },
        "sliderValues": {"levelOfFinish": 50, "programRequirements": 50},
    }
