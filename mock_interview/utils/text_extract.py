from __future__ import annotations

import logging
import os
import tempfile
import zipfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from pdfminer.high_level import extract_text as pdfminer_extract_text
from PyPDF2 import PdfReader


logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".pdf", ".docx")


class UnsupportedDocumentError(ValueError):
	"""Raised when the upload is neither a PDF nor a DOCX file."""


class DocumentDecodeError(ValueError):
	"""Raised when a supported document cannot be decoded to text."""


def document_extension(filename: str | None) -> str:
	ext = Path(filename or "").suffix.lower()
	if ext not in SUPPORTED_EXTENSIONS:
		raise UnsupportedDocumentError("Only PDF or DOCX allowed")
	return ext


@contextmanager
def staged_upload(data: bytes, suffix: str, directory: str | None = None) -> Iterator[Path]:
	"""Write upload bytes to a temp file and always remove it on exit."""
	if directory:
		os.makedirs(directory, exist_ok=True)
	fd, name = tempfile.mkstemp(suffix=suffix, prefix="resume-", dir=directory)
	path = Path(name)
	try:
		with os.fdopen(fd, "wb") as f:
			f.write(data)
		yield path
	finally:
		path.unlink(missing_ok=True)


def extract_text_from_pdf(path: Path) -> str:
	"""Extract text from a PDF file.

	Strategy:
	1) Try PyPDF2 (fast, works on many text PDFs)
	2) Fallback to pdfminer.six (more robust)
	Raises DocumentDecodeError when neither library can read the file.
	"""
	try:
		reader = PdfReader(str(path))
		parts: list[str] = []
		for page in reader.pages:
			text = page.extract_text() or ""
			if text:
				parts.append(text)
		if parts:
			return "\n".join(parts)
	except Exception as exc:
		logger.debug("PyPDF2 could not read %s, falling back to pdfminer: %s", path.name, exc)

	try:
		return pdfminer_extract_text(str(path)) or ""
	except Exception as exc:
		logger.warning("PDF parse error for %s: %s", path.name, exc)
		raise DocumentDecodeError("Failed to parse PDF. Try another file.") from exc


def extract_text_from_docx(path: Path) -> str:
	try:
		document = Document(str(path))
	except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as exc:
		logger.warning("DOCX parse error for %s: %s", path.name, exc)
		raise DocumentDecodeError("Failed to parse DOCX. Try another file.") from exc

	lines = [p.text for p in document.paragraphs]
	for table in document.tables:
		for row in table.rows:
			cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
			if cells:
				lines.append(" ".join(cells))
	return "\n".join(lines)


def extract_document_text(path: Path, extension: str) -> str:
	if extension == ".pdf":
		return extract_text_from_pdf(path)
	if extension == ".docx":
		return extract_text_from_docx(path)
	raise UnsupportedDocumentError("Only PDF or DOCX allowed")
