"""Client-side session: who is logged in and with which token.

One ``SessionProvider`` owns the token and the current user. Its state
only moves along these edges::

    UNINITIALIZED -> RESTORING -> AUTHENTICATED | ANONYMOUS
    ANONYMOUS     -> AUTHENTICATED            (register / login)
    AUTHENTICATED -> ANONYMOUS                (server answered 401)
    AUTHENTICATED | ANONYMOUS -> TERMINATED   (logout)
"""

import json
import logging
import threading
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union

from client.api import ApiClient, ApiRequestError

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    RESTORING = "restoring"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"
    TERMINATED = "terminated"


class SessionError(RuntimeError):
    pass


class TokenStorage:
    """Persists the bearer token between runs as a small JSON file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()

    def load(self) -> Optional[str]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (FileNotFoundError, ValueError):
            return None
        token = data.get("token") if isinstance(data, dict) else None
        return token if isinstance(token, str) and token else None

    def save(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"token": token}), encoding="utf-8")

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass


class SessionProvider:
    def __init__(self, storage: TokenStorage, api: Optional[ApiClient] = None, **api_kwargs: Any):
        self.storage = storage
        self._lock = threading.RLock()
        self._state = SessionState.UNINITIALIZED
        self._token: Optional[str] = None
        self._user: Optional[Dict[str, Any]] = None
        self.api = api or ApiClient(**api_kwargs)
        self.api.token_getter = lambda: self._token
        self.api.on_unauthorized = self._on_unauthorized

    # -- read side --

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._state is SessionState.AUTHENTICATED

    # -- transitions --

    def init(self) -> SessionState:
        """Restore a persisted token and confirm it with the server."""
        with self._lock:
            if self._state is not SessionState.UNINITIALIZED:
                raise SessionError(f"init() called in state {self._state.value}")
            self._state = SessionState.RESTORING
            saved = self.storage.load()
            if not saved:
                self._state = SessionState.ANONYMOUS
                return self._state
            self._token = saved
            try:
                user = self.api.me()
            except ApiRequestError as exc:
                logger.info("Stored session rejected (%s); starting anonymous", exc.status_code)
                self._discard()
                return self._state
            self._user = user
            self._state = SessionState.AUTHENTICATED
            return self._state

    def register(self, name: str, email: str, password: str) -> Dict[str, Any]:
        self._require_open()
        return self._accept(self.api.register(name, email, password))

    def login(self, email: str, password: str) -> Dict[str, Any]:
        self._require_open()
        return self._accept(self.api.login(email, password))

    def update_user(self, user: Dict[str, Any]) -> None:
        with self._lock:
            if self._state is not SessionState.AUTHENTICATED:
                raise SessionError("no authenticated session to update")
            self._user = user

    def logout(self) -> None:
        with self._lock:
            self.storage.clear()
            self._token = None
            self._user = None
            self._state = SessionState.TERMINATED

    # -- internals --

    def _require_open(self) -> None:
        if self._state in (SessionState.UNINITIALIZED, SessionState.RESTORING, SessionState.TERMINATED):
            raise SessionError(f"session is {self._state.value}")

    def _accept(self, data: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            self._token = data["token"]
            self._user = data["user"]
            self.storage.save(self._token)
            self._state = SessionState.AUTHENTICATED
            return self._user

    def _discard(self) -> None:
        self.storage.clear()
        self._token = None
        self._user = None
        self._state = SessionState.ANONYMOUS

    def _on_unauthorized(self) -> None:
        with self._lock:
            if self._state is SessionState.AUTHENTICATED:
                logger.info("Server rejected the session token; logging out locally")
                self._discard()
