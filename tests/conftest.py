from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

ROOT = TESTS_DIR.parent
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))

from study_notes.core.logging import ROOT_LOGGER  # noqa: E402
from study_notes.core.workspace import WORKSPACE_ENV  # noqa: E402
from study_notes.identity import USER_ENV, StaticIdentityProvider  # noqa: E402
from study_notes.runtime import AppContext, build_context  # noqa: E402
from study_notes.services import NoteService, QuizService  # noqa: E402
from study_notes.settings import CONFIG_PATH_ENV  # noqa: E402
from study_notes.store import JsonlRecordStore  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_environment(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Keep tests away from the real home directory and user identity."""

    monkeypatch.setenv(
        WORKSPACE_ENV, str(tmp_path_factory.mktemp("default-workspace"))
    )
    monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
    monkeypatch.delenv(USER_ENV, raising=False)


@pytest.fixture(autouse=True)
def _reset_loggers() -> Iterator[None]:
    yield
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


@pytest.fixture
def store(tmp_path: Path) -> JsonlRecordStore:
    return JsonlRecordStore(tmp_path / "records")


@pytest.fixture
def identity() -> StaticIdentityProvider:
    return StaticIdentityProvider("alice")


@pytest.fixture
def note_service(store, identity) -> NoteService:
    return NoteService(store, identity)


@pytest.fixture
def quiz_service(store, identity) -> QuizService:
    return QuizService(store, identity)


@pytest.fixture
def context(tmp_path: Path) -> AppContext:
    """A fully wired context rooted in a temporary workspace."""

    return build_context(
        workspace=tmp_path / "workspace",
        env={USER_ENV: "alice"},
    )
