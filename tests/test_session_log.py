import datetime
import pathlib

import pytest

import rmt_label_sheets.errors
import rmt_label_sheets.session_log


#============================================
def build_session(first: int, count: int) -> rmt_label_sheets.session_log.PrintSession:
	started = datetime.datetime(2025, 1, 15, 9, 0, 0)
	return rmt_label_sheets.session_log.PrintSession(
		identifiers=[f"RMT-REL-2501-{number:03d}" for number in range(first, first + count)],
		started_at=started,
		completed_at=started + datetime.timedelta(seconds=12),
		page_count=1,
		variant="rings|RE|L",
		period_tag="2501",
	)


#============================================
def test_append_and_load_in_order(tmp_path: pathlib.Path) -> None:
	"""
	Sessions come back in the order they were appended.
	"""
	log = rmt_label_sheets.session_log.PrintSessionLog(tmp_path / "logs" / "sessions.jsonl")
	assert log.load() == []
	log.append(build_session(1, 3))
	log.append(build_session(4, 2))
	sessions = log.load()
	assert [session.identifiers[0] for session in sessions] == ["RMT-REL-2501-001", "RMT-REL-2501-004"]
	assert sessions[0] == build_session(1, 3)
	assert sessions[1].count == 2


#============================================
def test_append_only(tmp_path: pathlib.Path) -> None:
	"""
	Appending never rewrites earlier lines.
	"""
	path = tmp_path / "sessions.jsonl"
	log = rmt_label_sheets.session_log.PrintSessionLog(path)
	log.append(build_session(1, 1))
	first_line = path.read_text(encoding="utf-8")
	log.append(build_session(2, 1))
	assert path.read_text(encoding="utf-8").startswith(first_line)


#============================================
def test_corrupt_line_raises_store_error(tmp_path: pathlib.Path) -> None:
	path = tmp_path / "sessions.jsonl"
	path.write_text('{"identifiers": []\n', encoding="utf-8")
	with pytest.raises(rmt_label_sheets.errors.StoreError):
		rmt_label_sheets.session_log.PrintSessionLog(path).load()
