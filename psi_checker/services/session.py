import json
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union

from pydantic import TypeAdapter, ValidationError

from ..schemas import Session

logger = logging.getLogger(__name__)

_sessions_adapter = TypeAdapter(List[Session])


class SessionStore:
    """
    Saved run configurations in a JSON array, most recent first. Every save
    rewrites the whole file; a single writer is assumed.
    """

    def __init__(self, path: Union[str, Path], max_sessions: int = 10):
        self.path = Path(path)
        self.max_sessions = max_sessions

    def load(self) -> List[Session]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return _sessions_adapter.validate_python(data)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", self.path, e)
            return []

    def save(self, session: Session) -> List[Session]:
        sessions = [session] + self.load()
        sessions = sessions[: self.max_sessions]
        payload = [s.model_dump(mode="json", by_alias=True) for s in sessions]
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        return sessions


def find_session(sessions: Sequence[Session], name: str) -> Optional[Session]:
    """Match a 1-based index first, then a substring of the base URL."""
    try:
        index = int(name) - 1
    except ValueError:
        index = -1
    if 0 <= index < len(sessions):
        return sessions[index]
    for session in sessions:
        if name in session.base_url:
            return session
    return None
