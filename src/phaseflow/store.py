from __future__ import annotations

import fcntl
import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from pydantic import ValidationError

from .canonical import fingerprint
from .errors import ConcurrentModificationError, CorruptPersistedStateError
from .models import ProjectState

logger = logging.getLogger(__name__)

_LOCK_SUFFIX = ".lock"


@contextmanager
def _locked_file(path: Path) -> Iterator[None]:
    """Hold an exclusive lock on a ``.lock`` sidecar of *path*.

    The sidecar keeps the lock handle stable while the data file itself is
    replaced with ``os.replace``.
    """
    lock_path = path.with_suffix(path.suffix + _LOCK_SUFFIX)
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    with lock_path.open("a+", encoding="utf-8") as lock_handle:
        fcntl.flock(lock_handle.fileno(), fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(lock_handle.fileno(), fcntl.LOCK_UN)


def _atomic_write_text(path: Path, content: str) -> None:
    """Write to a temp file in the same directory, then rename over *path*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as tmp_handle:
            tmp_handle.write(content)
            tmp_handle.flush()
            os.fsync(tmp_handle.fileno())
        os.replace(tmp_path, str(path))
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


class ProjectStateStore:
    """Filesystem home of the persisted project document.

    The document lives at ``<root>/project/state.json``. Reads and writes
    are serialised with an ``fcntl`` lock and writes are atomic.
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self.project_dir = root / "project"

    @property
    def state_path(self) -> Path:
        return self.project_dir / "state.json"

    def exists(self) -> bool:
        return self.state_path.is_file()

    def _read_unlocked(self) -> ProjectState | None:
        path = self.state_path
        if not path.is_file():
            return None
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise CorruptPersistedStateError("contains invalid UTF-8 data", path=path) from exc
        if not text.strip():
            raise CorruptPersistedStateError("file is empty", path=path)
        try:
            return ProjectState.model_validate_json(text)
        except ValidationError as exc:
            raise CorruptPersistedStateError(f"failed validation: {exc}", path=path) from exc

    def load(self) -> ProjectState | None:
        """Read the document, or ``None`` if no project exists.

        Raises:
            CorruptPersistedStateError: If the file is unreadable or fails validation.
        """
        with _locked_file(self.state_path):
            state = self._read_unlocked()
        logger.debug("loaded project state from %s (present=%s)", self.state_path, state is not None)
        return state

    def _require_fingerprint(self, expected_fingerprint: str | None) -> None:
        if expected_fingerprint is None:
            return
        on_disk = self._read_unlocked()
        if on_disk is None or fingerprint(on_disk) != expected_fingerprint:
            raise ConcurrentModificationError(self.state_path)

    def create(self, state: ProjectState) -> str:
        """Write ``state`` as a new document and return its fingerprint.

        Raises:
            ValueError: A document already exists.
        """
        with _locked_file(self.state_path):
            if self.state_path.exists():
                raise ValueError(f"a project already exists at {self.state_path}")
            _atomic_write_text(self.state_path, state.model_dump_json(indent=2))
        logger.debug("created project state at %s", self.state_path)
        return fingerprint(state)

    def save(self, state: ProjectState, *, expected_fingerprint: str | None = None) -> str:
        """Atomically persist ``state`` and return its fingerprint.

        Args:
            state: Document to write.
            expected_fingerprint: When given, the write is refused unless the
                document on disk still has this fingerprint.

        Raises:
            ConcurrentModificationError: The on-disk document changed since it was loaded.
        """
        with _locked_file(self.state_path):
            self._require_fingerprint(expected_fingerprint)
            _atomic_write_text(self.state_path, state.model_dump_json(indent=2))
        logger.debug("saved project state to %s", self.state_path)
        return fingerprint(state)

    def delete(self, *, expected_fingerprint: str | None = None) -> None:
        """Remove the document. Missing documents are ignored unless a fingerprint is expected.

        Raises:
            ConcurrentModificationError: The on-disk document changed since it was loaded.
        """
        with _locked_file(self.state_path):
            self._require_fingerprint(expected_fingerprint)
            self.state_path.unlink(missing_ok=True)
        logger.debug("deleted project state at %s", self.state_path)
