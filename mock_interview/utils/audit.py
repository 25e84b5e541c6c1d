from __future__ import annotations

import json
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional, Dict, Any
import asyncio


class JsonlAuditor:
	"""Append-only JSONL record of interview events (parses, model calls, errors)."""

	def __init__(self, path: Optional[str] = None) -> None:
		self._path = Path(path) if path else None
		self._lock = asyncio.Lock()

	def configure(self, path: Optional[str]) -> None:
		self._path = Path(path) if path else None

	async def log(self, event: str, **fields: Any) -> None:
		if not self._path:
			return
		record: Dict[str, Any] = {"ts": datetime.now(timezone.utc).isoformat(), "type": event, **fields}
		line = json.dumps(record, ensure_ascii=False, default=str)
		async with self._lock:
			self._path.parent.mkdir(parents=True, exist_ok=True)
			with self._path.open("a", encoding="utf-8") as f:
				f.write(line + "\n")


auditor = JsonlAuditor()
