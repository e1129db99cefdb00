"""
Model Store — durable snapshot of every context's arm statistics and the
dynamic arm list.

Snapshot layout (JSON):
    {
      "contexts":    {"<context key>": {"<minutes>": {"pullCount": n, "meanReward": m}}},
      "dynamicArms": [minutes, ...]
    }

Saves are serialised and coalesced: while one thread is writing, further
save() calls only mark the store dirty and return; the writing thread keeps
going until nothing is pending, re-reading the latest snapshot each time, so
the last write always reflects the latest in-memory model. A failed write
does not drop a request queued behind it.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from ..errors import PersistenceFailure

logger = logging.getLogger(__name__)

Snapshot = Dict[str, Any]


def empty_snapshot() -> Snapshot:
    return {"contexts": {}, "dynamicArms": []}


class ModelStore:
    """Base store: coalescing save loop around a backend-specific _write()."""

    def __init__(self):
        self._state_lock = threading.Lock()
        self._dirty = False
        self._writing = False
        self._pending: Optional[Callable[[], Snapshot]] = None
        self.saves_written = 0

    def load(self) -> Snapshot:
        raise NotImplementedError

    def save(self, snapshot_fn: Callable[[], Snapshot]) -> None:
        """
        Persist the snapshot produced by *snapshot_fn*.

        Returns immediately if another thread is already writing; that thread
        picks up this request, even if its own write fails. Raises
        PersistenceFailure if the last write attempted by this thread fails.
        """
        with self._state_lock:
            self._dirty = True
            self._pending = snapshot_fn
            if self._writing:
                return
            self._writing = True

        failure: Optional[Exception] = None
        while True:
            with self._state_lock:
                if not self._dirty:
                    self._writing = False
                    break
                self._dirty = False
                pending = self._pending
            try:
                self._write(pending())
            except Exception as exc:
                logger.debug("Model write failed: %s", exc)
                failure = exc
                continue
            failure = None
            self.saves_written += 1

        if failure is None:
            return
        if isinstance(failure, PersistenceFailure):
            raise failure
        raise PersistenceFailure(f"could not save model: {failure}") from failure

    def _write(self, snapshot: Snapshot) -> None:
        raise NotImplementedError

    @staticmethod
    def _check(snapshot: Any) -> Snapshot:
        if not isinstance(snapshot, dict):
            raise PersistenceFailure(f"snapshot must be an object, got {type(snapshot).__name__}")
        result = empty_snapshot()
        contexts = snapshot.get("contexts", {})
        dynamic = snapshot.get("dynamicArms", [])
        if isinstance(contexts, dict):
            result["contexts"] = contexts
        else:
            logger.warning("Ignoring malformed 'contexts' entry in snapshot")
        if isinstance(dynamic, list):
            result["dynamicArms"] = dynamic
        else:
            logger.warning("Ignoring malformed 'dynamicArms' entry in snapshot")
        return result


class JsonFileModelStore(ModelStore):
    """Keeps the snapshot in a single JSON file, replaced atomically on every write."""

    def __init__(self, path: Path):
        super().__init__()
        self.path = Path(path)

    def load(self) -> Snapshot:
        if not self.path.exists():
            logger.info("No model snapshot at %s, starting cold", self.path)
            return empty_snapshot()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise PersistenceFailure(f"could not read {self.path}: {exc}") from exc
        snapshot = self._check(raw)
        logger.info(
            "Loaded model snapshot from %s (%d contexts, %d dynamic arms)",
            self.path, len(snapshot["contexts"]), len(snapshot["dynamicArms"]),
        )
        return snapshot

    def _write(self, snapshot: Snapshot) -> None:
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(snapshot, indent=2), encoding="utf-8")
            os.replace(tmp, self.path)
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceFailure(f"could not write {self.path}: {exc}") from exc


class MemoryModelStore(ModelStore):
    """Non-durable store for tests and throwaway engines."""

    def __init__(self, initial: Optional[Snapshot] = None):
        super().__init__()
        self._data: Optional[Snapshot] = copy.deepcopy(initial) if initial is not None else None

    def load(self) -> Snapshot:
        if self._data is None:
            return empty_snapshot()
        return self._check(copy.deepcopy(self._data))

    def _write(self, snapshot: Snapshot) -> None:
        self._data = copy.deepcopy(snapshot)

    @property
    def data(self) -> Optional[Snapshot]:
        return copy.deepcopy(self._data)
