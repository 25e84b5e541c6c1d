from __future__ import annotations

import secrets
from fastapi import Header, HTTPException, status
from typing import Optional

from mock_interview.config import settings


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
	if not authorization or not authorization.startswith("Bearer "):
		return None
	return authorization.removeprefix("Bearer ").strip()


async def verify_api_key(
	authorization: Optional[str] = Header(default=None),
	x_api_key: Optional[str] = Header(default=None),
) -> None:
	"""Guard for /api routes; a no-op unless API_KEY is configured."""
	if not settings.api_key:
		return
	key = _bearer_token(authorization) or x_api_key
	if not key:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing API key")
	if not secrets.compare_digest(key, settings.api_key):
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")
