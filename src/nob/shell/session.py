"""Session state shared by the editor, the wrapper and the agent loop."""

import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from nob.config.schemas import Mode
from nob.shell.history import HistoryLog
from nob.telemetry.logger import get_logger

logger = get_logger(__name__)


@dataclass
class SessionContext:
    """Everything one interactive session knows about itself.

    Attributes:
        cwd: Directory commands run in
        mode: AI mode or manual mode
        history: Lines submitted in this session
        session_id: Short id bound to log records
        start_time: When the session started
    """

    cwd: str = field(default_factory=os.getcwd)
    mode: Mode = Mode.ON
    history: HistoryLog = field(default_factory=HistoryLog)
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    start_time: datetime = field(default_factory=datetime.now)
    _cwd_listeners: list[Callable[[str], None]] = field(default_factory=list, repr=False)

    @property
    def ai_enabled(self) -> bool:
        return self.mode == Mode.ON

    @property
    def mode_label(self) -> str:
        return "AI On" if self.ai_enabled else "AI Off"

    def set_mode(self, mode: Mode) -> None:
        if mode != self.mode:
            logger.info("Mode changed", mode=mode.value)
        self.mode = mode

    def on_cwd_change(self, listener: Callable[[str], None]) -> None:
        """Register a callback run after every directory change."""
        self._cwd_listeners.append(listener)

    def apply_cwd(self, new_cwd: Optional[str]) -> bool:
        """Adopt a directory reported by a command result.

        Args:
            new_cwd: The new directory, or None when nothing changed

        Returns:
            True if the session's directory changed
        """
        if not new_cwd or new_cwd == self.cwd:
            return False

        logger.debug("Working directory changed", previous=self.cwd, cwd=new_cwd)
        self.cwd = new_cwd
        for listener in self._cwd_listeners:
            listener(new_cwd)
        return True
