"""Pydantic models used by the FastAPI routes."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class ProxyRequest(BaseModel):
    """POST body of the proxy endpoint: one ``url`` or a batch of ``urls``."""

    model_config = ConfigDict(extra="ignore")

    url: Optional[str] = None
    urls: Optional[List[str]] = None


class ProxyEntry(BaseModel):
    success: bool
    content: Optional[str] = None
    status: Optional[int] = None
    error: Optional[str] = None


class HealthStatus(BaseModel):
    status: str = "ok"
