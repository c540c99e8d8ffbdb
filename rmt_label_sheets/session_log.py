"""
Append-only history of printed batches.
"""

# Standard Library
import dataclasses
import datetime
import json
import pathlib
import threading

# local repo modules
import rmt_label_sheets as rls
import rmt_label_sheets.errors


StoreError = rls.errors.StoreError


@dataclasses.dataclass
class PrintSession:
	identifiers: list[str]
	started_at: datetime.datetime
	completed_at: datetime.datetime
	page_count: int
	variant: str = ""
	period_tag: str = ""

	@property
	def count(self) -> int:
		return len(self.identifiers)


#============================================
def session_to_dict(session: PrintSession) -> dict:
	return {
		"identifiers": list(session.identifiers),
		"count": session.count,
		"started_at": session.started_at.isoformat(),
		"completed_at": session.completed_at.isoformat(),
		"page_count": session.page_count,
		"variant": session.variant,
		"period_tag": session.period_tag,
	}


#============================================
def session_from_dict(data: dict) -> PrintSession:
	try:
		return PrintSession(
			identifiers=[str(value) for value in data["identifiers"]],
			started_at=datetime.datetime.fromisoformat(data["started_at"]),
			completed_at=datetime.datetime.fromisoformat(data["completed_at"]),
			page_count=int(data["page_count"]),
			variant=str(data.get("variant", "")),
			period_tag=str(data.get("period_tag", "")),
		)
	except (KeyError, TypeError, ValueError) as error:
		raise StoreError(f"Corrupt print session entry: {error}") from error


class PrintSessionLog:
	"""
	JSON Lines file with one completed batch per line.
	"""

	def __init__(self, path: pathlib.Path | str) -> None:
		self.path = pathlib.Path(path)
		self._lock = threading.Lock()

	def append(self, session: PrintSession) -> None:
		line = json.dumps(session_to_dict(session), sort_keys=True)
		with self._lock:
			try:
				self.path.parent.mkdir(parents=True, exist_ok=True)
				with self.path.open("a", encoding="utf-8") as handle:
					handle.write(line + "\n")
			except OSError as error:
				raise StoreError(f"Cannot append to session log {self.path}: {error}") from error

	def load(self) -> list[PrintSession]:
		if not self.path.exists():
			return []
		sessions: list[PrintSession] = []
		with self._lock:
			try:
				with self.path.open("r", encoding="utf-8") as handle:
					lines = handle.readlines()
			except OSError as error:
				raise StoreError(f"Cannot read session log {self.path}: {error}") from error
		for number, line in enumerate(lines, start=1):
			if not line.strip():
				continue
			try:
				data = json.loads(line)
			except json.JSONDecodeError as error:
				raise StoreError(f"{self.path}:{number}: {error}") from error
			sessions.append(session_from_dict(data))
		return sessions
