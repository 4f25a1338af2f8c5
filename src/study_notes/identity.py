"""Identity providers answering "who is the current user?"."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Optional, Protocol

from dotenv import load_dotenv

__all__ = [
    "USER_ENV",
    "IdentityProvider",
    "StaticIdentityProvider",
    "EnvIdentityProvider",
]

USER_ENV = "STUDY_NOTES_USER"


class IdentityProvider(Protocol):
    def current_user(self) -> Optional[str]: ...


class StaticIdentityProvider:
    """Always reports the identity it was built with (``None`` = signed out)."""

    def __init__(self, user_id: Optional[str]) -> None:
        self._user_id = user_id

    def current_user(self) -> Optional[str]:
        return self._user_id


class EnvIdentityProvider:
    """Resolve the user from ``STUDY_NOTES_USER`` or a configured default.

    A ``.env`` file (current directory, or ``dotenv_path``) is loaded once
    on first use without overriding variables already set.
    """

    def __init__(
        self,
        *,
        default: Optional[str] = None,
        env: Mapping[str, str] | None = None,
        dotenv_path: Optional[Path] = None,
    ) -> None:
        self._default = default
        self._env = env
        self._dotenv_path = dotenv_path
        self._loaded = env is not None

    def current_user(self) -> Optional[str]:
        if not self._loaded:
            load_dotenv(dotenv_path=self._dotenv_path)
            self._loaded = True
        env_map = os.environ if self._env is None else self._env
        user = (env_map.get(USER_ENV) or "").strip()
        if user:
            return user
        default = (self._default or "").strip()
        return default or None
