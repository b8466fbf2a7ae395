import os
from abc import ABC, abstractmethod
from typing import Optional

from pydantic import ValidationError

from peep.schemas.user import AuthSession
from peep.utils.logger import log_error


class SessionStore(ABC):
    """Where the signed-in session survives between launches."""

    @abstractmethod
    def load(self) -> Optional[AuthSession]: ...

    @abstractmethod
    def save(self, session: AuthSession) -> None: ...

    @abstractmethod
    def clear(self) -> None: ...


class MemorySessionStore(SessionStore):
    def __init__(self):
        self.session: Optional[AuthSession] = None

    def load(self):
        return self.session

    def save(self, session):
        self.session = session

    def clear(self):
        self.session = None


class FileSessionStore(SessionStore):
    """Session as JSON in one file. A missing or unreadable file means signed out."""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> Optional[AuthSession]:
        if not os.path.exists(self.path):
            return None
        try:
            with open(self.path, encoding="utf-8") as f:
                return AuthSession.model_validate_json(f.read())
        except (OSError, ValidationError) as e:
            log_error("SessionStore", f"Ignoring cached session in {self.path}", e)
            return None

    def save(self, session: AuthSession) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(session.model_dump_json())

    def clear(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)
