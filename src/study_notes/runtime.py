"""Wiring shared by the command-line entry points."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .core import workspace as workspace_mod
from .core.logging import configure_logger
from .identity import EnvIdentityProvider, IdentityProvider
from .services import NoteService, QuizService
from .settings import Settings, load_settings
from .store import JsonlRecordStore, RecordStore


@dataclass(frozen=True)
class AppContext:
    settings: Settings
    layout: workspace_mod.WorkspaceLayout
    store: RecordStore
    identity: IdentityProvider
    logger: logging.Logger
    log_path: Path

    @property
    def notes(self) -> NoteService:
        return NoteService(self.store, self.identity)

    @property
    def quizzes(self) -> QuizService:
        return QuizService(self.store, self.identity, self.settings)


def build_context(
    *,
    config_path: Optional[Path] = None,
    workspace: Optional[Path] = None,
    verbose: bool = False,
    env: Mapping[str, str] | None = None,
) -> AppContext:
    """Load settings, prepare the workspace and configure logging.

    Raises ``ConfigError`` and ``WorkspaceError`` unchanged so each CLI can
    report them in its own words.
    """

    settings = load_settings(
        explicit_path=config_path, env=env, workspace=workspace
    )
    layout = workspace_mod.ensure_workspace(
        env=env,
        path=workspace or settings.paths.data_home_override,
    )
    logger, log_path = configure_logger(
        "study_notes",
        log_dir=layout.path_for("logs"),
        level=settings.logging.level,
        verbose=verbose or settings.logging.verbose,
        filename="study-notes.log",
    )
    return AppContext(
        settings=settings,
        layout=layout,
        store=JsonlRecordStore(layout.path_for("records")),
        identity=EnvIdentityProvider(default=settings.identity.user, env=env),
        logger=logger,
        log_path=log_path,
    )
