from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request

from api.models import ExtractRequest, ExtractResponse, SelectFileResponse
from api.services.metadata import extract_result

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["metadata"])


# Sync handlers run in the threadpool, so a slow dialog or exiftool call
# never blocks the event loop serving the page.
@router.post("/select-file", response_model=SelectFileResponse, summary="Open the native file picker")
def select_file(request: Request):
	selector = request.app.state.file_selector
	if selector is None:
		raise HTTPException(status_code=503, detail="No desktop window attached")
	path = selector.select()
	if path is None:
		logger.debug("File selection cancelled")
	return SelectFileResponse(path=path)


@router.post(
	"/extract-metadata",
	response_model=ExtractResponse,
	response_model_exclude_none=True,
	summary="Extract and normalize metadata for one file",
)
def extract_metadata(body: ExtractRequest, request: Request):
	return extract_result(request.app.state.extractor, body.path)
