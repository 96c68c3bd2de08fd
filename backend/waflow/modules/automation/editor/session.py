"""
User Session

The signed-in user record the dashboard caches at login, turned into an
explicit object handed to the data client (instead of a global lookup at
every request). Its only job is producing the identity headers the flow
service expects.
"""
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

from waflow.shared.core.constants import (
    HEADER_USER,
    HEADER_USER_ID,
    HEADER_USER_NAME,
    HEADER_USER_ROLE,
)

logger = logging.getLogger("user_session")


@dataclass(frozen=True)
class UserSession:
    user_id: str
    name: str = ""
    role: str = "user"
    record: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "UserSession":
        """Build from the cached user JSON ({"id": ..., "name": ..., "role": ...})."""
        user_id = record.get("id")
        if user_id in (None, ""):
            raise ValueError("User record has no id")
        return cls(
            user_id=str(user_id),
            name=record.get("name") or "",
            role=record.get("role") or "user",
            record=dict(record),
        )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> Optional["UserSession"]:
        """
        Load the cached user record from disk.

        A missing or unreadable record means "not signed in": returns None
        and requests go out without identity headers.
        """
        path = Path(path)
        if not path.is_file():
            logger.info(f"No cached user record at {path}")
            return None

        try:
            record = json.loads(path.read_text(encoding="utf-8"))
            return cls.from_record(record)
        except (OSError, ValueError, AttributeError) as e:
            logger.warning(f"Ignoring unreadable user record {path}: {e}")
            return None

    def auth_headers(self) -> Dict[str, str]:
        record = self.record or {"id": self.user_id, "name": self.name, "role": self.role}
        return {
            HEADER_USER_ID: self.user_id,
            HEADER_USER_ROLE: self.role,
            HEADER_USER_NAME: self.name,
            HEADER_USER: json.dumps(record, default=str),
        }
