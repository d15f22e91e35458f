#teamboard/schemas/response.py
from pydantic import BaseModel, Field
from typing import Generic, Optional, TypeVar

DataT = TypeVar("DataT")

class ApiResponse(BaseModel, Generic[DataT]):
    """
    ApiResponse: envelope for every successful response.
    """
    success: bool = Field(True, description="Always true for successful responses")
    message: Optional[str] = Field(None, examples=["Team created successfully"], description="Human-readable status")
    data: Optional[DataT] = Field(None, description="Payload")

class ErrorResponse(BaseModel):
    """
    ErrorResponse: envelope for every failed response.
    """
    success: bool = Field(False, description="Always false for failed responses")
    message: str = Field(..., examples=["Team not found"], description="Human-readable error message")
    error: Optional[str] = Field(None, description="Underlying error text, when available")
