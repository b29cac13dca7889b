"""
Request body validation for the analysis endpoints.

The schema is a pydantic model so every violated constraint is reported in one
pass; callers get the full issue list rather than the first failure.
"""

from typing import Any, Literal, Optional

from pydantic import AnyUrl, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from .types import AnalysisMetadata, AnalysisRequest, ValidationIssue, ValidationOutcome

_URL_ADAPTER = TypeAdapter(AnyUrl)


class MetadataSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    source: Optional[str] = None
    document_id: Optional[str] = Field(None, alias="documentId")


class AnalysisRequestSchema(BaseModel):
    model_config = ConfigDict(extra="ignore")

    kind: Literal["pdf", "image"]
    url: str
    metadata: Optional[MetadataSchema] = None

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        try:
            _URL_ADAPTER.validate_python(v)
        except ValidationError:
            raise ValueError("url must be a well-formed absolute URL")
        # the original string is kept; AnyUrl would normalise it
        return v

    def to_request(self) -> AnalysisRequest:
        metadata = None
        if self.metadata is not None:
            metadata = AnalysisMetadata(source=self.metadata.source, document_id=self.metadata.document_id)
        return AnalysisRequest(kind=self.kind, url=self.url, metadata=metadata)


def issues_from_error(error: ValidationError) -> list:
    return [
        ValidationIssue(loc=tuple(err.get("loc", ())), msg=err.get("msg", ""), type=err.get("type", "value_error"))
        for err in error.errors()
    ]


def validate_request(body: Any) -> ValidationOutcome:
    try:
        schema = AnalysisRequestSchema.model_validate(body)
    except ValidationError as e:
        return ValidationOutcome(issues=issues_from_error(e))
    return ValidationOutcome(request=schema.to_request())
