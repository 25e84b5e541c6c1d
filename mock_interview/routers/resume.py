from __future__ import annotations

import logging

import anyio
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from mock_interview.config import settings
from mock_interview.schemas import ParsedResume
from mock_interview.utils.audit import auditor
from mock_interview.utils.resume_fields import extract_contact_fields
from mock_interview.utils.security import verify_api_key
from mock_interview.utils.text_extract import (
	DocumentDecodeError,
	UnsupportedDocumentError,
	document_extension,
	extract_document_text,
	staged_upload,
)


logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(verify_api_key)])


@router.post("/parse-resume", response_model=ParsedResume)
async def parse_resume(file: UploadFile | None = File(default=None)):
	if file is None or not file.filename:
		raise HTTPException(status_code=400, detail="No file uploaded")

	try:
		ext = document_extension(file.filename)
	except UnsupportedDocumentError as exc:
		raise HTTPException(status_code=400, detail=str(exc))

	data = await file.read(settings.max_upload_bytes + 1)
	if len(data) > settings.max_upload_bytes:
		raise HTTPException(status_code=413, detail="Uploaded file is too large")

	try:
		with staged_upload(data, ext, settings.upload_dir) as path:
			text = await anyio.to_thread.run_sync(extract_document_text, path, ext)
	except DocumentDecodeError as exc:
		raise HTTPException(status_code=400, detail=str(exc))
	except Exception:
		logger.exception("Resume parsing error for %s", file.filename)
		raise HTTPException(status_code=500, detail="Failed to parse resume")

	fields = extract_contact_fields(text)
	logger.info("Extracted fields from %s: %s", file.filename, fields)
	await auditor.log(
		"resume_parsed",
		filename=file.filename,
		bytes=len(data),
		characters=len(text),
		found=[key for key, value in fields.items() if value],
	)
	return ParsedResume(text=text, **fields)
