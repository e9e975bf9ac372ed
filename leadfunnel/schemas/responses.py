# leadfunnel/schemas/responses.py
from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel


class SinkDetails(BaseModel):
    email: bool
    sheets: bool


class SubmissionResponse(BaseModel):
    success: bool = True
    message: str
    emailId: Optional[str] = None
    sheetsSaved: bool
    details: SinkDetails


class ErrorResponse(BaseModel):
    error: str
    details: Optional[Dict[str, List[str]]] = None


class SiteConfigResponse(BaseModel):
    gaMeasurementId: Optional[str] = None
    languages: List[str]
    services: List[str]
    stages: List[str]
