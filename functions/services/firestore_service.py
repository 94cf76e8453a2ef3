"""Firestore service for the build-out cost estimator.

Provides CRUD operations for projects and saved estimates.
"""

from typing import Dict, Any, Optional, List
import inspect
import structlog

from firebase_admin import firestore
from pydantic import ValidationError as PydanticValidationError

from config.errors import (
    EstimatorError,
    ErrorCode,
    NotFoundError,
    StorageError,
    ValidationError,
)
from models.calculator import ProjectOutput
from models.cost_config import CostConfiguration, get_default_configuration
from models.project import (
    EstimateCreateRequest,
    EstimateUpdateRequest,
    ProjectCreateRequest,
    ProjectUpdateRequest,
    SavedEstimate,
)
from services.cost_engine import compute_project_costs

logger = structlog.get_logger()


def _newest_first(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Sort documents by createdAt, newest first (missing timestamps last)."""
    return sorted(records, key=lambda r: str(r.get("createdAt") or ""), reverse=True)


class FirestoreService:
    """Service for Firestore operations.

    Handles all database operations for projects and saved estimates.
    Archiving is a soft delete (``isArchived``); deleting a project
    cascades to its estimates.

    Note: Firebase Admin SDK for Python is synchronous. Methods are
    marked async for interface compatibility but operations are sync.
    """

    COLLECTION_PROJECTS = "projects"
    COLLECTION_ESTIMATES = "savedEstimates"

    def __init__(self, db=None, config: Optional[CostConfiguration] = None):
        """Initialize FirestoreService.

        Args:
            db: Optional Firestore client. If not provided, uses default.
            config: Cost configuration used when an estimate must be
                (re)calculated before saving.
        """
        self._db = db
        self._config = config or get_default_configuration()

    @property
    def db(self):
        """Get Firestore client (lazy initialization)."""
        if self._db is None:
            self._db = firestore.client()
        return self._db

    async def _maybe_await(self, result: Any) -> Any:
        """Await result if it is awaitable (supports AsyncMock in unit tests)."""
        if inspect.isawaitable(result):
            return await result
        return result

    async def _get_document(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        doc_ref = self.db.collection(collection).document(doc_id)
        doc = await self._maybe_await(doc_ref.get())
        if doc.exists:
            return {"id": doc.id, **(doc.to_dict() or {})}
        return None

    def _stream(self, query) -> List[Dict[str, Any]]:
        return [{"id": doc.id, **(doc.to_dict() or {})} for doc in query.stream()]

    # -------------------------------------------------------------------------
    # Projects
    # -------------------------------------------------------------------------

    async def list_projects(self, include_archived: bool = False) -> List[Dict[str, Any]]:
        """List projects, newest first.

        Args:
            include_archived: Include soft-deleted projects.

        Returns:
            List of project documents (each includes "id").

        Raises:
            StorageError: If Firestore operation fails.
        """
        try:
            query = self.db.collection(self.COLLECTION_PROJECTS)
            if not include_archived:
                query = query.where("isArchived", "==", False)
            return _newest_first(self._stream(query))
        except Exception as e:
            logger.error("projects_list_failed", error=str(e))
            raise StorageError(message=f"Failed to list projects: {str(e)}")

    async def get_project(self, project_id: str) -> Optional[Dict[str, Any]]:
        """Fetch project document by ID.

        Returns:
            Project data or None if not found.

        Raises:
            StorageError: If Firestore operation fails.
        """
        try:
            return await self._get_document(self.COLLECTION_PROJECTS, project_id)
        except Exception as e:
            logger.error("project_get_failed", project_id=project_id, error=str(e))
            raise StorageError(
                message=f"Failed to get project: {str(e)}",
                details={"project_id": project_id}
            )

    async def get_project_with_estimates(self, project_id: str) -> Optional[Dict[str, Any]]:
        """Fetch a project together with its active estimates (newest first)."""
        project = await self.get_project(project_id)
        if project is None:
            return None
        estimates = await self.list_estimates_by_project(project_id)
        return {**project, "estimates": estimates}

    async def create_project(self, request: ProjectCreateRequest) -> Dict[str, Any]:
        """Create a new project document with a generated ID.

        Args:
            request: Validated project fields.

        Returns:
            The created project data (includes "id").

        Raises:
            StorageError: If Firestore operation fails.
        """
        try:
            doc_ref = self.db.collection(self.COLLECTION_PROJECTS).document()
            record = {**request.model_dump(by_alias=True, exclude_none=True), "isArchived": False}

            await self._maybe_await(doc_ref.set({
                **record,
                "createdAt": firestore.SERVER_TIMESTAMP,
                "updatedAt": firestore.SERVER_TIMESTAMP,
            }))
            logger.info("project_created", project_id=doc_ref.id, name=request.name)

            return {"id": doc_ref.id, **record}

        except Exception as e:
            logger.error("project_create_failed", error=str(e))
            raise StorageError(
                code=ErrorCode.FIRESTORE_WRITE_FAILED,
                message=f"Failed to create project: {str(e)}"
            )

    async def _update_project_fields(
        self,
        project_id: str,
        data: Dict[str, Any],
        event: str
    ) -> Optional[Dict[str, Any]]:
        try:
            existing = await self._get_document(self.COLLECTION_PROJECTS, project_id)
            if existing is None:
                return None

            doc_ref = self.db.collection(self.COLLECTION_PROJECTS).document(project_id)
            await self._maybe_await(doc_ref.update({
                **data,
                "updatedAt": firestore.SERVER_TIMESTAMP,
            }))
            logger.info(event, project_id=project_id, fields=list(data.keys()))

            return {**existing, **data}

        except Exception as e:
            logger.error("project_update_failed", project_id=project_id, error=str(e))
            raise StorageError(
                code=ErrorCode.FIRESTORE_WRITE_FAILED,
                message=f"Failed to update project: {str(e)}",
                details={"project_id": project_id}
            )

    async def update_project(
        self,
        project_id: str,
        request: ProjectUpdateRequest
    ) -> Optional[Dict[str, Any]]:
        """Update project fields.

        Returns:
            Updated project data or None if not found.
        """
        return await self._update_project_fields(project_id, request.to_update_dict(), "project_updated")

    async def archive_project(self, project_id: str) -> Optional[Dict[str, Any]]:
        """Soft-delete a project.

        Returns:
            Archived project data or None if not found.
        """
        return await self._update_project_fields(project_id, {"isArchived": True}, "project_archived")

    async def delete_project(self, project_id: str) -> bool:
        """Delete a project and all of its estimates.

        Returns:
            True if the project existed and was deleted.

        Raises:
            StorageError: If Firestore operation fails.
        """
        try:
            project_ref = self.db.collection(self.COLLECTION_PROJECTS).document(project_id)
            doc = await self._maybe_await(project_ref.get())
            if not doc.exists:
                return False

            estimates = (
                self.db
                .collection(self.COLLECTION_ESTIMATES)
                .where("projectId", "==", project_id)
                .stream()
            )
            for estimate in estimates:
                await self._maybe_await(estimate.reference.delete())

            await self._maybe_await(project_ref.delete())
            logger.info("project_deleted", project_id=project_id)
            return True

        except Exception as e:
            logger.error("project_delete_failed", project_id=project_id, error=str(e))
            raise StorageError(
                message=f"Failed to delete project: {str(e)}",
                details={"project_id": project_id}
            )

    # -------------------------------------------------------------------------
    # Saved Estimates
    # -------------------------------------------------------------------------

    async def list_estimates_by_project(
        self,
        project_id: str,
        include_archived: bool = False
    ) -> List[Dict[str, Any]]:
        """List a project's estimates, newest first.

        Raises:
            StorageError: If Firestore operation fails.
        """
        try:
            query = (
                self.db
                .collection(self.COLLECTION_ESTIMATES)
                .where("projectId", "==", project_id)
            )
            records = self._stream(query)
            if not include_archived:
                records = [r for r in records if not r.get("isArchived")]
            return _newest_first(records)
        except Exception as e:
            logger.error("estimates_list_failed", project_id=project_id, error=str(e))
            raise StorageError(
                message=f"Failed to list estimates: {str(e)}",
                details={"project_id": project_id}
            )

    async def get_estimate(self, estimate_id: str) -> Optional[Dict[str, Any]]:
        """Fetch saved estimate by ID.

        Returns:
            Estimate data or None if not found.

        Raises:
            StorageError: If Firestore operation fails.
        """
        try:
            return await self._get_document(self.COLLECTION_ESTIMATES, estimate_id)
        except Exception as e:
            logger.error("estimate_get_failed", estimate_id=estimate_id, error=str(e))
            raise StorageError(
                message=f"Failed to get estimate: {str(e)}",
                details={"estimate_id": estimate_id}
            )

    async def get_estimates(self, estimate_ids: List[str]) -> List[Dict[str, Any]]:
        """Fetch several estimates, preserving order and skipping missing IDs."""
        results = []
        for estimate_id in [i for i in estimate_ids if i]:
            estimate = await self.get_estimate(estimate_id)
            if estimate is not None:
                results.append(estimate)
        return results

    def _build_snapshot(self, project_id: str, request: EstimateCreateRequest) -> SavedEstimate:
        base_values = request.base_values or self._config.base_values
        output = request.computed_output or compute_project_costs(
            request.inputs,
            request.slider_values,
            base_values,
            config=self._config,
        )
        return SavedEstimate.from_calculation(
            name=request.name,
            project_id=project_id,
            inputs=request.inputs,
            slider_values=request.slider_values,
            base_values=base_values,
            output=output,
            description=request.description,
            created_by_id=request.created_by_id,
        )

    async def create_estimate(
        self,
        project_id: str,
        request: EstimateCreateRequest
    ) -> Dict[str, Any]:
        """Save an estimate snapshot under a project.

        A supplied ``computedOutput`` is stored verbatim; otherwise the
        output is calculated from the request.

        Args:
            project_id: Parent project ID.
            request: Validated estimate fields.

        Returns:
            The created estimate data (includes "id").

        Raises:
            NotFoundError: If the project does not exist.
            StorageError: If Firestore operation fails.
        """
        project = await self.get_project(project_id)
        if project is None:
            raise NotFoundError(ErrorCode.PROJECT_NOT_FOUND, "Project", project_id)

        snapshot = self._build_snapshot(project_id, request)

        try:
            doc_ref = self.db.collection(self.COLLECTION_ESTIMATES).document()
            record = snapshot.to_firestore_dict()

            await self._maybe_await(doc_ref.set({
                **record,
                "createdAt": firestore.SERVER_TIMESTAMP,
                "updatedAt": firestore.SERVER_TIMESTAMP,
            }))
            logger.info(
                "estimate_created",
                estimate_id=doc_ref.id,
                project_id=project_id,
                grand_total=snapshot.grand_total
            )

            return {"id": doc_ref.id, **record}

        except Exception as e:
            logger.error("estimate_create_failed", project_id=project_id, error=str(e))
            raise StorageError(
                code=ErrorCode.FIRESTORE_WRITE_FAILED,
                message=f"Failed to create estimate: {str(e)}",
                details={"project_id": project_id}
            )

    async def update_estimate(
        self,
        estimate_id: str,
        request: EstimateUpdateRequest
    ) -> Optional[Dict[str, Any]]:
        """Update an estimate, recalculating when inputs change.

        Returns:
            Updated estimate data or None if not found.

        Raises:
            StorageError: If Firestore operation fails.
        """
        existing = await self.get_estimate(estimate_id)
        if existing is None:
            return None

        data = request.model_dump(
            by_alias=True,
            exclude_unset=True,
            include={"name", "description"}
        )

        if request.changes_calculation:
            current = SavedEstimate.model_validate(existing)
            snapshot = SavedEstimate.from_calculation(
                name=current.name,
                project_id=current.project_id,
                inputs=request.inputs or current.inputs,
                slider_values=(
                    request.slider_values
                    if request.slider_values is not None
                    else current.slider_values
                ),
                base_values=request.base_values or current.base_values,
                output=self._recalculate(current, request),
            )
            recalculated = snapshot.to_firestore_dict()
            for key in ("name", "projectId", "isArchived"):
                recalculated.pop(key, None)
            data.update(recalculated)

        try:
            doc_ref = self.db.collection(self.COLLECTION_ESTIMATES).document(estimate_id)
            await self._maybe_await(doc_ref.update({
                **data,
                "updatedAt": firestore.SERVER_TIMESTAMP,
            }))
            logger.info(
                "estimate_updated",
                estimate_id=estimate_id,
                fields=list(data.keys()),
                recalculated=request.changes_calculation
            )
            return {**existing, **data}

        except Exception as e:
            logger.error("estimate_update_failed", estimate_id=estimate_id, error=str(e))
            raise StorageError(
                code=ErrorCode.FIRESTORE_WRITE_FAILED,
                message=f"Failed to update estimate: {str(e)}",
                details={"estimate_id": estimate_id}
            )

    def _recalculate(self, current: SavedEstimate, request: EstimateUpdateRequest) -> ProjectOutput:
        return compute_project_costs(
            request.inputs or current.inputs,
            request.slider_values if request.slider_values is not None else current.slider_values,
            request.base_values or current.base_values,
            config=self._config,
        )

    async def archive_estimate(self, estimate_id: str) -> Optional[Dict[str, Any]]:
        """Soft-delete an estimate.

        Returns:
            Archived estimate data or None if not found.
        """
        existing = await self.get_estimate(estimate_id)
        if existing is None:
            return None

        try:
            doc_ref = self.db.collection(self.COLLECTION_ESTIMATES).document(estimate_id)
            await self._maybe_await(doc_ref.update({
                "isArchived": True,
                "updatedAt": firestore.SERVER_TIMESTAMP,
            }))
            logger.info("estimate_archived", estimate_id=estimate_id)
            return {**existing, "isArchived": True}

        except Exception as e:
            logger.error("estimate_archive_failed", estimate_id=estimate_id, error=str(e))
            raise StorageError(
                code=ErrorCode.FIRESTORE_WRITE_FAILED,
                message=f"Failed to archive estimate: {str(e)}",
                details={"estimate_id": estimate_id}
            )

    async def delete_estimate(self, estimate_id: str) -> bool:
        """Permanently delete an estimate.

        Returns:
            True if the estimate existed and was deleted.
        """
        try:
            doc_ref = self.db.collection(self.COLLECTION_ESTIMATES).document(estimate_id)
            doc = await self._maybe_await(doc_ref.get())
            if not doc.exists:
                return False
            await self._maybe_await(doc_ref.delete())
            logger.info("estimate_deleted", estimate_id=estimate_id)
            return True

        except Exception as e:
            logger.error("estimate_delete_failed", estimate_id=estimate_id, error=str(e))
            raise StorageError(
                message=f"Failed to delete estimate: {str(e)}",
                details={"estimate_id": estimate_id}
            )

    # -------------------------------------------------------------------------
    # Convenience
    # -------------------------------------------------------------------------

    async def create_project_with_estimate(
        self,
        project_request: ProjectCreateRequest,
        estimate_data: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Create a project and its first estimate in one call.

        The estimate payload is validated before anything is written. The
        project is deleted again if the estimate write fails.

        Args:
            project_request: Validated project fields.
            estimate_data: Raw estimate payload (validated here).

        Returns:
            {"project": ..., "estimate": ...}

        Raises:
            ValidationError: If the estimate payload is invalid.
        """
        try:
            estimate_request = EstimateCreateRequest.model_validate(estimate_data or {})
        except PydanticValidationError as e:
            logger.warning("project_with_estimate_invalid", error_count=e.error_count())
            raise ValidationError(
                message="Invalid estimate data",
                field="estimate",
                details={"errors": [f"{err['loc']}: {err['msg']}" for err in e.errors()]}
            )

        project = await self.create_project(project_request)

        try:
            estimate = await self.create_estimate(project["id"], estimate_request)
        except EstimatorError as e:
            await self.delete_project(project["id"])
            logger.warning("project_with_estimate_rolled_back", project_id=project["id"], error=e.message)
            raise

        return {"project": project, "estimate": estimate}
