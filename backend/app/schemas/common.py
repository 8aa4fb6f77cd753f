from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error envelope"""
    success: bool = False
    error: str


class MessageResponse(BaseModel):
    success: bool = True
    message: str
