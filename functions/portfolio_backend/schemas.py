"""
Pydantic schemas for the portfolio backend.

Field names follow the JSON the front end already sends and reads.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel


class ContactRequest(BaseModel):
    # Presence is checked by MessageService so empty strings and missing
    # fields fail the same way.
    name: Optional[str] = None
    email: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None


class ContactResponse(BaseModel):
    success: bool = True
    message: str
    messageId: str


class MessageOut(BaseModel):
    id: str
    name: str
    email: str
    subject: str
    message: str
    timestamp: str
    read: bool


class MessagesResponse(BaseModel):
    success: bool = True
    messages: list[MessageOut]


class StatusResponse(BaseModel):
    success: bool = True
    message: str


class CertificateUploadResponse(BaseModel):
    success: bool = True
    fileName: str
    signedUrl: Optional[str] = None


class ProjectMediaUploadResponse(CertificateUploadResponse):
    mediaType: Literal["image", "video"]


class SignedUrlResponse(BaseModel):
    success: bool = True
    signedUrl: str


class HealthResponse(BaseModel):
    status: Literal["ok"]
    timestamp: str


class ErrorResponse(BaseModel):
    error: str
