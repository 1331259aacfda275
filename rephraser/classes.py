#!/usr/bin/env python3
# Pydantic Models and Errors for the Rephrase API
from enum import Enum
from pydantic import BaseModel, Field
from typing import Dict, Literal, Optional


Role = Literal["system", "user", "assistant"]


class FormState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    ERROR = "error"
    SUCCESS = "success"


class ChatMessage(BaseModel):
    role: Role
    content: str


class RequestOptions(BaseModel):
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(default=None, ge=1)
    top_p: float = Field(default=1.0, ge=0.0, le=1.0)
    frequency_penalty: float = Field(default=0.0, ge=-2.0, le=2.0)
    presence_penalty: float = Field(default=0.0, ge=-2.0, le=2.0)


class CompletionResult(BaseModel):
    content: str
    model: Optional[str] = None
    usage: Dict[str, int] = Field(default_factory=dict)


class RephraseRequest(BaseModel):
    text: Optional[str] = None


class RephraseResponse(BaseModel):
    rephrased: str


class ErrorResponse(BaseModel):
    error: str


class ApiError(Exception):
    """Base error for every failure of the completion API wrapper."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.message} (HTTP {self.status_code})"
        return self.message


class UpstreamError(ApiError):
    """The completion service answered with a non-success status."""


class ParseError(ApiError):
    """The completion service answered with an unexpected body."""


class TransportError(ApiError):
    """The completion service could not be reached."""

