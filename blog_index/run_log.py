from __future__ import annotations

import json
import traceback
import uuid
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, TextIO

_MESSAGE_LIMIT = 2000
_TRACEBACK_LIMIT = 12000


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _clip(text: str, limit: int) -> str:
    s = str(text or "")
    return s if len(s) <= limit else s[: limit - 1] + "…"


class RunLogger:
    """
    JSONL build log.

    Every record is one line: ts, level, event, build_id, plus an optional
    `path` (the file the event is about) and `data`. Without a target file the
    records are only counted, which lets library callers skip the log.
    """

    def __init__(
        self,
        path: str | Path | None = None,
        *,
        overwrite: bool = True,
        build_id: str | None = None,
    ) -> None:
        self._target = Path(path) if path is not None else None
        self._overwrite = bool(overwrite)
        self._fp: TextIO | None = None
        self.build_id = (build_id or "").strip() or uuid.uuid4().hex
        self.counts: Counter[str] = Counter()

    @classmethod
    def open(cls, path: str | Path, *, overwrite: bool = True) -> "RunLogger":
        logger = cls(path, overwrite=overwrite)
        logger._ensure_open()
        return logger

    def close(self) -> None:
        if self._fp is None:
            return
        try:
            self._fp.flush()
        finally:
            self._fp.close()
            self._fp = None

    def __enter__(self) -> "RunLogger":
        self._ensure_open()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def info(self, event: str, *, path: str | None = None, **data: Any) -> None:
        self.log("INFO", event, path=path, **data)

    def warning(self, event: str, *, path: str | None = None, **data: Any) -> None:
        self.log("WARN", event, path=path, **data)

    def exception(self, event: str, *, exc: BaseException, **data: Any) -> None:
        err = {
            "type": type(exc).__name__,
            "message": _clip(str(exc), _MESSAGE_LIMIT),
            "traceback": _clip(
                "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
                _TRACEBACK_LIMIT,
            ),
        }
        self.log("ERROR", event, error=err, **data)

    def log(self, level: str, event: str, *, path: str | None = None, **data: Any) -> None:
        lvl = (level or "").strip().upper() or "INFO"
        self.counts[lvl] += 1

        record: dict[str, Any] = {
            "ts": _utc_now_iso(),
            "level": lvl,
            "event": (event or "").strip() or "event",
            "build_id": self.build_id,
        }
        if path:
            record["path"] = path
        if data:
            record["data"] = data

        self._write(record)

    def _ensure_open(self) -> None:
        if self._target is None or self._fp is not None:
            return
        self._target.parent.mkdir(parents=True, exist_ok=True)
        mode = "w" if self._overwrite else "a"
        self._fp = self._target.open(mode, encoding="utf-8", newline="\n")

    def _write(self, record: dict[str, Any]) -> None:
        self._ensure_open()
        if self._fp is None:
            return

        self._fp.write(
            json.dumps(record, ensure_ascii=False, sort_keys=True, separators=(",", ":"), default=str)
            + "\n"
        )
        self._fp.flush()
