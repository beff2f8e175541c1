"""
Session Storage Adapters

The login flow keeps its anti-CSRF state in storage owned by the caller.
Anything that can get and set a named string works; the adapters below
cover the common shapes.
"""

import json
from abc import ABC, abstractmethod
from collections.abc import MutableMapping
from pathlib import Path
from typing import Any, Optional, Union

from eve_sso._logging import verbose_sso_logger
from eve_sso.exceptions import SessionFileError, UnknownSessionTypeError

STATE_KEY = "oauth2State"


class SessionStorage(ABC):
    """Minimal get/set capability the SSO client needs from a session."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...


class MappingSession(SessionStorage):
    """Plain key/value mapping, e.g. a dict or Starlette's request.session."""

    def __init__(self, mapping: MutableMapping):
        self.mapping = mapping

    def get(self, key: str) -> Optional[str]:
        return self.mapping.get(key)

    def set(self, key: str, value: str) -> None:
        self.mapping[key] = value


class AttributeSession(SessionStorage):
    """Named section object that exposes values as attributes."""

    def __init__(self, section: Any):
        self.section = section

    def get(self, key: str) -> Optional[str]:
        return getattr(self.section, key, None)

    def set(self, key: str, value: str) -> None:
        setattr(self.section, key, value)


class SegmentSession(SessionStorage):
    """Named segment object with its own get/set methods."""

    def __init__(self, segment: Any):
        self.segment = segment

    def get(self, key: str) -> Optional[str]:
        return self.segment.get(key)

    def set(self, key: str, value: str) -> None:
        self.segment.set(key, value)


class FileSession(SessionStorage):
    """
    JSON file on disk.

    Lets a login started in one process be completed in another, which is
    how the command line flow works.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except ValueError as e:
            raise SessionFileError(f"Session file {self.path} is corrupt: {e}") from e
        if not isinstance(data, dict):
            raise SessionFileError(f"Session file {self.path} does not hold a JSON object")
        return data

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2))

        # Owner read/write only
        self.path.chmod(0o600)
        verbose_sso_logger.debug(f"Saved session value '{key}' to {self.path}")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


def adapt_session(session: Any) -> SessionStorage:
    """
    Wrap a caller's session object in the matching adapter.

    Args:
        session: A SessionStorage, a mutable mapping, or an object with
                 get/set methods. Attribute-style sections can't be told
                 apart from arbitrary objects and must be wrapped in
                 AttributeSession by the caller.

    Raises:
        UnknownSessionTypeError: If no adapter fits.
    """
    if isinstance(session, SessionStorage):
        return session
    if isinstance(session, MutableMapping):
        return MappingSession(session)
    if callable(getattr(session, "get", None)) and callable(getattr(session, "set", None)):
        return SegmentSession(session)

    verbose_sso_logger.error(f"Unsupported session storage: {type(session).__name__}")
    raise UnknownSessionTypeError(session)
