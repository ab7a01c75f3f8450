from pydantic import BaseModel, Field
from typing import Generic, TypeVar, Optional, Any, Dict

DataType = TypeVar("DataType")

class APIResponse(BaseModel, Generic[DataType]):
    """Success envelope used by the enveloped routes."""
    success: bool = Field(True, description="Always true for successful responses.")
    data: Optional[DataType] = Field(None, description="The actual data returned by the API, if any.")

class ErrorDetail(BaseModel):
    """Standardized error detail model."""
    message: str = Field(..., description="Human-readable error message")
    code: Optional[str] = Field(None, description="Error code for client handling")
    details: Optional[Any] = Field(None, description="Additional error context")

class ErrorResponse(BaseModel):
    """Standardized error response model."""
    success: bool = Field(False, description="Always false for errors")
    error: ErrorDetail = Field(..., description="Error details")
    timestamp: Optional[str] = Field(None, description="ISO 8601 timestamp of error")
    path: Optional[str] = Field(None, description="Request path that caused the error")
    request_id: Optional[str] = Field(None, description="Unique request identifier for debugging")

class LegacyErrorMeta(BaseModel):
    timestamp: int
    path: str

class LegacyErrorResponse(BaseModel):
    """Error shape of the aggregation routes (``ok`` instead of ``success``)."""
    ok: bool = False
    error: ErrorDetail
    meta: LegacyErrorMeta
