"""
Common API models used across different endpoints.

These models represent shared concepts like errors and health reports.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional

class APIValidationIssue(BaseModel):
    loc: List[Any] = Field(..., description="Path to the offending field")
    msg: str = Field(..., description="Human-readable problem description")
    type: str = Field(..., description="Machine-readable error type")

class ErrorResponse(BaseModel):
    """Standard error response format."""
    model_config = ConfigDict(populate_by_name=True)

    status: Literal["error"] = "error"
    message: str = Field(..., description="Error message")
    validation_issues: Optional[List[APIValidationIssue]] = Field(
        None, alias="validationIssues", description="Every violated constraint, present for 400 responses"
    )

class HealthStatus(BaseModel):
    """Health check response."""
    status: str = Field(..., description="Service status")
    version: str = Field(..., description="API version")
    uptime: float = Field(..., description="Uptime in seconds")
    dependencies: Dict[str, str] = Field(..., description="Status of external dependencies")
    stats: Dict[str, Dict[str, float]] = Field(default_factory=dict, description="Per-task upstream call statistics")
