"""
API models for the document analysis endpoints.

Field names on the wire are camelCase; the Python attributes stay snake_case.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional


class APIPage(BaseModel):
    """A page as returned by the plain extraction flow (no dataUri)."""
    model_config = ConfigDict(populate_by_name=True)

    page: int = Field(..., ge=1, description="1-based page number")
    text: str
    markdown: str
    image_base64: Optional[str] = Field(None, alias="imageBase64")

class APIEnrichedPage(APIPage):
    data_uri: Optional[str] = Field(None, alias="dataUri")

class ExtractResponse(BaseModel):
    status: Literal["success"] = "success"
    pages: List[APIPage]

class EnrichedExtractResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Literal["success"] = "success"
    pages: List[APIEnrichedPage]
    document_data_uri: Optional[str] = Field(None, alias="documentDataUri")

class DescribeImageResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Literal["success"] = "success"
    data_uri: str = Field(..., alias="dataUri")
    description: str
    pages: List[APIEnrichedPage]
