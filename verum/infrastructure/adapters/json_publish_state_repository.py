"""JSON file publish state repository.

Keeps the state of an interrupted story publish in a single JSON file so
that a restarted process can restore() and retry() it. Writes go to a
temporary file first and replace the target, so a crash mid-write never
leaves a half-written state behind.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

import structlog

from verum.application.ports.publish_state_repository import PublishStateRepository
from verum.domain.errors.publish import PublishStateStorageError
from verum.domain.models.publish import PublishState

logger = structlog.get_logger(__name__)


class JsonFilePublishStateRepository(PublishStateRepository):
    """Stores at most one PublishState as a JSON file.

    Example:
        >>> repository = JsonFilePublishStateRepository(Path("~/.verum/publish.json"))
        >>> await repository.save(state)
        >>> restored = await repository.load()
    """

    def __init__(self, path: Path) -> None:
        """Initialize the repository.

        Args:
            path: File holding the state. Parent directories are created
                on the first save.
        """
        self._path = path.expanduser()

    @property
    def path(self) -> Path:
        """File holding the state."""
        return self._path

    async def save(self, state: PublishState) -> None:
        """Write state, replacing any previous one."""
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(
                json.dumps(state.to_dict(), ensure_ascii=False), encoding="utf-8"
            )
            os.replace(tmp, self._path)
        except OSError as e:
            raise PublishStateStorageError(str(self._path), str(e)) from e
        logger.debug(
            "publish_state_saved",
            path=str(self._path),
            completed=len(state.completed_segments),
            total=state.total_segments,
        )

    async def load(self) -> PublishState | None:
        """Read the stored state.

        Raises:
            PublishStateStorageError: If the file exists but cannot be read
                or does not hold a publish state.
        """
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise PublishStateStorageError(str(self._path), str(e)) from e

        try:
            return PublishState.from_dict(json.loads(text))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise PublishStateStorageError(
                str(self._path), f"corrupt state: {e}"
            ) from e

    async def clear(self) -> None:
        """Delete the state file if it exists."""
        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            raise PublishStateStorageError(str(self._path), str(e)) from e
