"""Unit tests for Firestore service."""

import pytest
from unittest.mock import AsyncMock

from config.errors import ErrorCode, NotFoundError, StorageError, ValidationError
from models.project import (
    EstimateCreateRequest,
    EstimateUpdateRequest,
    ProjectCreateRequest,
    ProjectUpdateRequest,
)
from tests.fixtures.mock_estimate_data import (
    PROJECT_DOCUMENT,
    PROJECT_ID,
    STANDARD_ESTIMATE,
    estimate_document,
    make_doc,
)


def _set_get(service, doc):
    service.db.collection.return_value.document.return_value.get = AsyncMock(return_value=doc)


def _set_stream(service, docs):
    service.db.collection.return_value.stream.return_value = docs


class TestProjects:
    """Tests for project operations."""

    @pytest.mark.asyncio
    async def test_get_project_exists(self, mock_firestore_service):
        """Test getting an existing project."""
        _set_get(mock_firestore_service, make_doc(PROJECT_ID, PROJECT_DOCUMENT))

        result = await mock_firestore_service.get_project(PROJECT_ID)

        assert result is not None
        assert result["id"] == PROJECT_ID
        assert result["clientName"] == "Acme Corp"
        mock_firestore_service.db.collection.assert_called_with("projects")

    @pytest.mark.asyncio
    async def test_get_project_not_exists(self, mock_firestore_service):
        """Test getting a non-existent project."""
        _set_get(mock_firestore_service, make_doc("missing", {}, exists=False))

        result = await mock_firestore_service.get_project("missing")

        assert result is None

    @pytest.mark.asyncio
    async def test_list_projects_newest_first(self, mock_firestore_service):
        """Test listing projects filters archived and sorts by createdAt."""
        _set_stream(mock_firestore_service, [
            make_doc("old", {"name": "Old", "createdAt": "2024-01-01T00:00:00"}),
            make_doc("new", {"name": "New", "createdAt": "2025-06-01T00:00:00"}),
        ])

        result = await mock_firestore_service.list_projects()

        assert [p["id"] for p in result] == ["new", "old"]
        mock_firestore_service.db.collection.return_value.where.assert_called_once_with(
            "isArchived", "==", False
        )

    @pytest.mark.asyncio
    async def test_list_projects_including_archived(self, mock_firestore_service):
        _set_stream(mock_firestore_service, [])

        await mock_firestore_service.list_projects(include_archived=True)

        mock_firestore_service.db.collection.return_value.where.assert_not_called()

    @pytest.mark.asyncio
    async def test_list_projects_failure(self, mock_firestore_service):
        """Test Firestore errors are wrapped."""
        mock_firestore_service.db.collection.side_effect = RuntimeError("unavailable")

        with pytest.raises(StorageError) as exc_info:
            await mock_firestore_service.list_projects()

        assert exc_info.value.code == ErrorCode.FIRESTORE_ERROR

    @pytest.mark.asyncio
    async def test_create_project(self, mock_firestore_service):
        """Test creating a project with a generated ID."""
        request = ProjectCreateRequest(name="HQ Relocation", client_name="Acme Corp")

        result = await mock_firestore_service.create_project(request)

        assert result["id"] == "generated-id"
        assert result["name"] == "HQ Relocation"
        assert result["isArchived"] is False

        doc_ref = mock_firestore_service.db.collection.return_value.document.return_value
        written = doc_ref.set.call_args[0][0]
        assert written["clientName"] == "Acme Corp"
        assert "createdAt" in written
        assert "updatedAt" in written

    @pytest.mark.asyncio
    async def test_update_project(self, mock_firestore_service):
        """Test updating only supplied project fields."""
        _set_get(mock_firestore_service, make_doc(PROJECT_ID, PROJECT_DOCUMENT))
        request = ProjectUpdateRequest.model_validate({"clientName": "Globex"})

        result = await mock_firestore_service.update_project(PROJECT_ID, request)

        assert result["clientName"] == "Globex"
        assert result["name"] == "HQ Relocation"
        doc_ref = mock_firestore_service.db.collection.return_value.document.return_value
        written = doc_ref.update.call_args[0][0]
        assert set(written) == {"clientName", "updatedAt"}

    @pytest.mark.asyncio
    async def test_archive_project_not_found(self, mock_firestore_service):
        _set_get(mock_firestore_service, make_doc("missing", {}, exists=False))

        result = await mock_firestore_service.archive_project("missing")

        assert result is None
        mock_firestore_service.db.collection.return_value.document.return_value.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_archive_project(self, mock_firestore_service):
        _set_get(mock_firestore_service, make_doc(PROJECT_ID, PROJECT_DOCUMENT))

        result = await mock_firestore_service.archive_project(PROJECT_ID)

        assert result["isArchived"] is True

    @pytest.mark.asyncio
    async def test_delete_project_cascades(self, mock_firestore_service):
        """Test deleting a project deletes its estimates."""
        _set_get(mock_firestore_service, make_doc(PROJECT_ID, PROJECT_DOCUMENT))
        estimates = [make_doc("est-1", {}), make_doc("est-2", {})]
        _set_stream(mock_firestore_service, estimates)

        result = await mock_firestore_service.delete_project(PROJECT_ID)

        assert result is True
        for estimate in estimates:
            estimate.reference.delete.assert_awaited_once()
        mock_firestore_service.db.collection.return_value.where.assert_called_with(
            "projectId", "==", PROJECT_ID
        )
        mock_firestore_service.db.collection.return_value.document.return_value.delete.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_delete_project_not_found(self, mock_firestore_service):
        _set_get(mock_firestore_service, make_doc("missing", {}, exists=False))

        assert await mock_firestore_service.delete_project("missing") is False

    @pytest.mark.asyncio
    async def test_get_project_with_estimates(self, mock_firestore_service):
        _set_get(mock_firestore_service, make_doc(PROJECT_ID, PROJECT_DOCUMENT))
        _set_stream(mock_firestore_service, [
            make_doc("est-1", {"name": "A", "isArchived": False}),
            make_doc("est-2", {"name": "B", "isArchived": True}),
        ])

        result = await mock_firestore_service.get_project_with_estimates(PROJECT_ID)

        assert result["name"] == "HQ Relocation"
        assert [e["id"] for e in result["estimates"]] == ["est-1"]


class TestEstimates:
    """Tests for saved estimate operations."""

    @pytest.mark.asyncio
    async def test_get_estimate_exists(self, mock_firestore_service):
        """Test getting an existing estimate."""
        _set_get(mock_firestore_service, make_doc("est-123", estimate_document(STANDARD_ESTIMATE)))

        result = await mock_firestore_service.get_estimate("est-123")

        assert result is not None
        assert result["id"] == "est-123"
        assert result["grandTotal"] == STANDARD_ESTIMATE.grand_total
        mock_firestore_service.db.collection.assert_called_with("savedEstimates")

    @pytest.mark.asyncio
    async def test_get_estimate_not_exists(self, mock_firestore_service):
        """Test getting a non-existent estimate."""
        _set_get(mock_firestore_service, make_doc("est-nonexistent", {}, exists=False))

        result = await mock_firestore_service.get_estimate("est-nonexistent")

        assert result is None

    @pytest.mark.asyncio
    async def test_get_estimates_preserves_order(self, mock_firestore_service):
        """Test batch fetch keeps request order and skips missing IDs."""
        records = {"b": {"id": "b"}, "a": {"id": "a"}}
        mock_firestore_service.get_estimate = AsyncMock(side_effect=lambda i: records.get(i))

        result = await mock_firestore_service.get_estimates(["b", "missing", "a", ""])

        assert [r["id"] for r in result] == ["b", "a"]

    @pytest.mark.asyncio
    async def test_list_estimates_excludes_archived(self, mock_firestore_service):
        _set_stream(mock_firestore_service, [
            make_doc("est-1", {"isArchived": False, "createdAt": "2025-01-01"}),
            make_doc("est-2", {"isArchived": True, "createdAt": "2025-02-01"}),
            make_doc("est-3", {"isArchived": False, "createdAt": "2025-03-01"}),
        ])

        active = await mock_firestore_service.list_estimates_by_project(PROJECT_ID)
        everything = await mock_firestore_service.list_estimates_by_project(PROJECT_ID, include_archived=True)

        assert [e["id"] for e in active] == ["est-3", "est-1"]
        assert [e["id"] for e in everything] == ["est-3", "est-2", "est-1"]

    @pytest.mark.asyncio
    async def test_create_estimate_project_missing(self, mock_firestore_service, sample_estimate_payload):
        """Test saving under a missing project fails."""
        _set_get(mock_firestore_service, make_doc(PROJECT_ID, {}, exists=False))
        request = EstimateCreateRequest.model_validate(sample_estimate_payload)

        with pytest.raises(NotFoundError) as exc_info:
            await mock_firestore_service.create_estimate(PROJECT_ID, request)

        assert exc_info.value.code == ErrorCode.PROJECT_NOT_FOUND
        mock_firestore_service.db.collection.return_value.document.return_value.set.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_estimate_calculates_output(self, mock_firestore_service, sample_estimate_payload):
        """Test the output is calculated when not supplied."""
        _set_get(mock_firestore_service, make_doc(PROJECT_ID, PROJECT_DOCUMENT))
        request = EstimateCreateRequest.model_validate(sample_estimate_payload)

        result = await mock_firestore_service.create_estimate(PROJECT_ID, request)

        assert result["id"] == "generated-id"
        assert result["projectId"] == PROJECT_ID
        assert result["grandTotal"] == pytest.approx(STANDARD_ESTIMATE.grand_total)
        assert result["baseValues"]["constructionCosts"] == 260.75
        assert len(result["computedOutput"]["categories"]) == 6

    @pytest.mark.asyncio
    async def test_create_estimate_keeps_supplied_output(
        self, mock_firestore_service, sample_estimate_payload, sample_inputs_with_ti
    ):
        """Test a supplied computedOutput is stored verbatim."""
        from services.cost_engine import compute_project_costs

        _set_get(mock_firestore_service, make_doc(PROJECT_ID, PROJECT_DOCUMENT))
        supplied = compute_project_costs(sample_inputs_with_ti)
        request = EstimateCreateRequest.model_validate({
            **sample_estimate_payload,
            "computedOutput": supplied.to_dict(),
        })

        result = await mock_firestore_service.create_estimate(PROJECT_ID, request)

        assert result["computedOutput"] == supplied.to_dict()
        assert result["clientTotal"] == round(supplied.client_total, 2)

    @pytest.mark.asyncio
    async def test_update_estimate_rename_only(self, mock_firestore_service):
        """Test renaming does not recalculate."""
        _set_get(mock_firestore_service, make_doc("est-1", estimate_document(STANDARD_ESTIMATE)))
        request = EstimateUpdateRequest.model_validate({"name": "Renamed"})

        result = await mock_firestore_service.update_estimate("est-1", request)

        assert result["name"] == "Renamed"
        doc_ref = mock_firestore_service.db.collection.return_value.document.return_value
        assert set(doc_ref.update.call_args[0][0]) == {"name", "updatedAt"}

    @pytest.mark.asyncio
    async def test_update_estimate_recalculates(self, mock_firestore_service):
        """Test changing sliders recalculates the stored totals."""
        _set_get(mock_firestore_service, make_doc("est-1", estimate_document(STANDARD_ESTIMATE)))
        request = EstimateUpdateRequest.model_validate({"sliderValues": {"levelOfFinish": 100}})

        result = await mock_firestore_service.update_estimate("est-1", request)

        assert result["grandTotal"] > STANDARD_ESTIMATE.grand_total
        assert result["sliderValues"] == {"levelOfFinish": 100}
        assert result["name"] == "Standard"
        written = mock_firestore_service.db.collection.return_value.document.return_value.update.call_args[0][0]
        assert "computedOutput" in written
        assert "projectId" not in written

    @pytest.mark.asyncio
    async def test_update_estimate_not_found(self, mock_firestore_service):
        _set_get(mock_firestore_service, make_doc("missing", {}, exists=False))

        result = await mock_firestore_service.update_estimate(
            "missing", EstimateUpdateRequest(name="x")
        )

        assert result is None

    @pytest.mark.asyncio
    async def test_archive_estimate(self, mock_firestore_service):
        _set_get(mock_firestore_service, make_doc("est-1", estimate_document(STANDARD_ESTIMATE)))

        result = await mock_firestore_service.archive_estimate("est-1")

        assert result["isArchived"] is True
        doc_ref = mock_firestore_service.db.collection.return_value.document.return_value
        assert doc_ref.update.call_args[0][0]["isArchived"] is True

    @pytest.mark.asyncio
    async def test_update_failure_wrapped(self, mock_firestore_service):
        _set_get(mock_firestore_service, make_doc("est-1", estimate_document(STANDARD_ESTIMATE)))
        doc_ref = mock_firestore_service.db.collection.return_value.document.return_value
        doc_ref.update = AsyncMock(side_effect=RuntimeError("deadline exceeded"))

        with pytest.raises(StorageError) as exc_info:
            await mock_firestore_service.archive_estimate("est-1")

        assert exc_info.value.code == ErrorCode.FIRESTORE_WRITE_FAILED


class TestCreateProjectWithEstimate:
    """Tests for the combined create."""

    @pytest.mark.asyncio
    async def test_creates_both(self, mock_firestore_service, sample_estimate_payload):
        _set_get(mock_firestore_service, make_doc("generated-id", PROJECT_DOCUMENT))

        result = await mock_firestore_service.create_project_with_estimate(
            ProjectCreateRequest(name="HQ Relocation"),
            sample_estimate_payload
        )

        assert result["project"]["id"] == "generated-id"
        assert result["estimate"]["projectId"] == "generated-id"

    @pytest.mark.asyncio
    async def test_invalid_estimate_writes_nothing(self, mock_firestore_service):
        """Test an invalid estimate is rejected before the project is written."""
        mock_firestore_service.create_project = AsyncMock()
        mock_firestore_service.delete_project = AsyncMock(return_value=True)

        with pytest.raises(ValidationError) as exc_info:
            await mock_firestore_service.create_project_with_estimate(
                ProjectCreateRequest(name="HQ Relocation"),
                {"name": "Option A", "inputs": {"projectSize": -1, "floors": 1, "location": "LA"}}
            )

        assert exc_info.value.field == "estimate"
        mock_firestore_service.create_project.assert_not_called()
        mock_firestore_service.delete_project.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_estimate_write_rolls_back(self, mock_firestore_service, sample_estimate_payload):
        mock_firestore_service.delete_project = AsyncMock(return_value=True)
        mock_firestore_service.create_estimate = AsyncMock(
            side_effect=StorageError(message="write failed")
        )

        with pytest.raises(StorageError):
            await mock_firestore_service.create_project_with_estimate(
                ProjectCreateRequest(name="HQ Relocation"),
                sample_estimate_payload
            )

        mock_firestore_service.delete_project.assert_awaited_once_with("generated-id")
