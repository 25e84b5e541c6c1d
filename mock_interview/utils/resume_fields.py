from __future__ import annotations

import re
from typing import Optional


EMAIL_PATTERN = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
PHONE_PATTERN = re.compile(r"(\+?\d{1,3}[\s-]?)?(\d{10}|\d{3}[\s-]\d{3}[\s-]\d{4})")
_LETTER = re.compile(r"[A-Za-z]")

NAME_SCAN_LINES = 6
NAME_MAX_TOKENS = 4


def extract_email(text: str) -> Optional[str]:
	m = EMAIL_PATTERN.search(text or "")
	return m.group(0) if m else None


def extract_phone(text: str) -> Optional[str]:
	m = PHONE_PATTERN.search(text or "")
	return m.group(0) if m else None


def extract_name(text: str) -> Optional[str]:
	"""Guess the candidate name from the top of the resume.

	Looks at the first few non-blank lines and returns the first short line
	with letters in it that is not a "Resume" heading.
	"""
	lines = [line.strip() for line in (text or "").splitlines() if line.strip()]
	for line in lines[:NAME_SCAN_LINES]:
		if "resume" in line.lower():
			continue
		if not _LETTER.search(line):
			continue
		if len(line.split()) <= NAME_MAX_TOKENS:
			return line
	return None


def extract_contact_fields(text: str) -> dict:
	return {
		"name": extract_name(text),
		"email": extract_email(text),
		"phone": extract_phone(text),
	}
