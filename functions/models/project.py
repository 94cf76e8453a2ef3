"""Project and saved estimate models for the build-out cost estimator.

Pydantic models for the documents stored in Firestore:
- /projects/{id}
- /savedEstimates/{id}
"""

from typing import Dict, Any, Optional
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from models.calculator import BaseValues, ProjectInput, ProjectOutput, SliderValues


class Project(BaseModel):
    """A real estate development that can hold multiple estimates."""

    id: Optional[str] = Field(default=None, description="Document ID")
    name: str = Field(..., min_length=1, max_length=255, description="Project name")
    description: Optional[str] = Field(default=None, description="Free-form notes")
    client_name: Optional[str] = Field(
        default=None,
        max_length=255,
        alias="clientName",
        description="Client the project is prepared for"
    )
    created_by_id: Optional[str] = Field(
        default=None,
        alias="createdById",
        description="User who created the project"
    )
    is_archived: bool = Field(
        default=False,
        alias="isArchived",
        description="Soft-delete flag"
    )
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    class Config:
        populate_by_name = True

    def to_firestore_dict(self) -> Dict[str, Any]:
        """Convert to Firestore-compatible dict (camelCase, no id)."""
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"id"})


class ProjectCreateRequest(BaseModel):
    """Request to create a project."""

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    client_name: Optional[str] = Field(default=None, max_length=255, alias="clientName")
    created_by_id: Optional[str] = Field(default=None, alias="createdById")

    class Config:
        populate_by_name = True


class ProjectUpdateRequest(BaseModel):
    """Partial project update; only supplied fields are written."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    client_name: Optional[str] = Field(default=None, max_length=255, alias="clientName")

    class Config:
        populate_by_name = True

    def to_update_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True)


def _validate_slider_positions(values: SliderValues) -> SliderValues:
    for slider_id, position in values.items():
        if not 0 <= position <= 100:
            raise ValueError(f"Slider {slider_id!r} position {position} is outside 0-100")
    return values


class SavedEstimate(BaseModel):
    """Snapshot of one calculation: inputs, sliders, base rates and output.

    Key totals are denormalized (rounded to cents) for listing and sorting
    without recalculation.
    """

    id: Optional[str] = Field(default=None, description="Document ID")
    name: str = Field(..., min_length=1, max_length=255, description="Estimate version name")
    description: Optional[str] = None
    project_id: str = Field(..., alias="projectId", description="Parent project ID")
    created_by_id: Optional[str] = Field(default=None, alias="createdById")

    inputs: ProjectInput
    slider_values: SliderValues = Field(..., alias="sliderValues")
    base_values: BaseValues = Field(..., alias="baseValues")
    computed_output: Optional[ProjectOutput] = Field(default=None, alias="computedOutput")

    grand_total: float = Field(..., alias="grandTotal")
    grand_total_per_rsf: float = Field(..., alias="grandTotalPerRSF")
    client_total: float = Field(..., alias="clientTotal")
    client_total_per_rsf: float = Field(..., alias="clientTotalPerRSF")
    project_size: float = Field(..., gt=0, alias="projectSize")

    is_archived: bool = Field(default=False, alias="isArchived")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    class Config:
        populate_by_name = True

    @field_validator("slider_values")
    @classmethod
    def validate_slider_values(cls, v):
        """Persisted slider positions must be within 0-100."""
        return _validate_slider_positions(v)

    @classmethod
    def from_calculation(
        cls,
        name: str,
        project_id: str,
        inputs: ProjectInput,
        slider_values: SliderValues,
        base_values: BaseValues,
        output: ProjectOutput,
        description: Optional[str] = None,
        created_by_id: Optional[str] = None
    ) -> "SavedEstimate":
        """Build a snapshot from a calculation's inputs and output.

        Args:
            name: Estimate version name.
            project_id: Parent project ID.
            inputs: Project parameters used.
            slider_values: Slider positions used.
            base_values: Base rates used.
            output: Engine output for those inputs.
            description: Optional notes.
            created_by_id: Optional creating user.

        Returns:
            SavedEstimate ready to store.
        """
        return cls(
            name=name,
            description=description,
            project_id=project_id,
            created_by_id=created_by_id,
            inputs=inputs,
            slider_values=dict(slider_values),
            base_values=base_values,
            computed_output=output,
            grand_total=round(output.grand_total, 2),
            grand_total_per_rsf=round(output.grand_total_per_rsf, 2),
            client_total=round(output.client_total, 2),
            client_total_per_rsf=round(output.client_total_per_rsf, 2),
            project_size=inputs.project_size,
        )

    def to_firestore_dict(self) -> Dict[str, Any]:
        """Convert to Firestore-compatible dict (camelCase, no id)."""
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"id"})


class EstimateCreateRequest(BaseModel):
    """Request to save an estimate under a project.

    ``computedOutput`` and the denormalized totals are optional; when
    omitted they are computed from the inputs.
    """

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    created_by_id: Optional[str] = Field(default=None, alias="createdById")
    inputs: ProjectInput
    slider_values: SliderValues = Field(default_factory=dict, alias="sliderValues")
    base_values: Optional[BaseValues] = Field(default=None, alias="baseValues")
    computed_output: Optional[ProjectOutput] = Field(default=None, alias="computedOutput")

    class Config:
        populate_by_name = True

    @field_validator("slider_values")
    @classmethod
    def validate_slider_values(cls, v):
        """Persisted slider positions must be within 0-100."""
        return _validate_slider_positions(v)


class EstimateUpdateRequest(BaseModel):
    """Partial estimate update.

    Changing inputs, sliders or base values triggers a recalculation of the
    stored output and totals.
    """

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    inputs: Optional[ProjectInput] = None
    slider_values: Optional[SliderValues] = Field(default=None, alias="sliderValues")
    base_values: Optional[BaseValues] = Field(default=None, alias="baseValues")

    class Config:
        populate_by_name = True

    @field_validator("slider_values")
    @classmethod
    def validate_slider_values(cls, v):
        if v is None:
            return v
        return _validate_slider_positions(v)

    @property
    def changes_calculation(self) -> bool:
        return any(
            value is not None
            for value in (self.inputs, self.slider_values, self.base_values)
        )
