"""Where a client process keeps its auth session between runs."""

import json
import os
from pathlib import Path
from typing import Optional

import structlog

from ghub.session.state import AuthSession

logger = structlog.get_logger()


class MemorySessionStorage:
    """Session lives only as long as the process."""

    def __init__(self, session: Optional[AuthSession] = None):
        self._session = session

    def load(self) -> Optional[AuthSession]:
        return self._session

    def save(self, session: AuthSession) -> None:
        self._session = session

    def clear(self) -> None:
        self._session = None


class FileSessionStorage:
    """Session persisted as JSON (0600) so a CLI stays signed in."""

    def __init__(self, path: str):
        self.path = Path(path).expanduser()

    def load(self) -> Optional[AuthSession]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text())
            return AuthSession.from_payload(data)
        except (OSError, ValueError, KeyError) as e:
            logger.warning("storage.session_unreadable", path=str(self.path), error=str(e))
            return None

    def save(self, session: AuthSession) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(session.to_payload(), indent=2))
        os.chmod(self.path, 0o600)

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
