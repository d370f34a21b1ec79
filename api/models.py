from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel


class SelectFileResponse(BaseModel):
	path: Optional[str] = None


class ExtractRequest(BaseModel):
	path: str


class ExtractResponse(BaseModel):
	success: bool
	metadata: Optional[Dict[str, Dict[str, str]]] = None
	error: Optional[str] = None
