import json
import logging
import os
import threading
from datetime import datetime, timezone

from clickengine.models import RuntimeActivation


logger = logging.getLogger(__name__)


def _iso(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


def build_run_entry(
    activation: RuntimeActivation,
    stop_reason: str,
    error: Exception | None = None,
) -> dict[str, object]:
    profile = activation.profile
    started = datetime.fromtimestamp(activation.started_at, tz=timezone.utc)
    elapsed = activation.elapsed()
    return {
        "run_id": started.strftime("%Y%m%dT%H%M%S.%fZ"),
        "profile": profile.name,
        "button": profile.button.value,
        "pattern": profile.pattern.value,
        "activation": profile.activation.value,
        "cps": profile.cps,
        "started_at": started.isoformat(),
        "ended_at": _iso(activation.started_at + elapsed),
        "elapsed_seconds": round(elapsed, 4),
        "ticks": activation.tick,
        "presses": activation.presses,
        "stop_reason": stop_reason,
        "error": str(error) if error is not None else None,
    }


class RunLog:
    def __init__(self, path: str) -> None:
        self.path = path
        self._lock = threading.Lock()

    def append(self, entry: dict[str, object]) -> bool:
        with self._lock:
            try:
                directory = os.path.dirname(self.path)
                if directory:
                    os.makedirs(directory, exist_ok=True)
                with open(self.path, "a", encoding="utf-8") as handle:
                    handle.write(json.dumps(entry, ensure_ascii=True) + "\n")
            except OSError as exc:
                logger.warning("Failed writing run log %s: %s", self.path, exc)
                return False
        return True

    def read(self) -> list[dict[str, object]]:
        if not os.path.exists(self.path):
            return []

        entries: list[dict[str, object]] = []
        with self._lock:
            try:
                with open(self.path, "r", encoding="utf-8") as handle:
                    lines = handle.readlines()
            except OSError as exc:
                logger.warning("Failed reading run log %s: %s", self.path, exc)
                return []

        for line in lines:
            line = line.strip()
            if not line:
                continue
            try:
                entry = json.loads(line)
            except ValueError:
                continue
            if isinstance(entry, dict):
                entries.append(entry)
        return entries
