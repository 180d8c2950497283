"""Progress reporting for the presentation layer."""

import logging
from enum import Enum, auto
from typing import Callable, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class Stage(Enum):
    """Pipeline stages in execution order."""
    IDLE = auto()
    UPLOADING = auto()
    CONVERTING_TO_IMAGE = auto()
    UPLOADING_IMAGE = auto()
    PREPARING_RECORD = auto()
    PERSISTING_INITIAL_RECORD = auto()
    REQUESTING_ANALYSIS = auto()
    PERSISTING_FINAL_RECORD = auto()
    COMPLETE = auto()
    ERROR = auto()


class PipelineStatus(BaseModel):
    stage: Stage = Stage.IDLE
    detail: str = ""


StatusListener = Callable[[PipelineStatus], None]


class StatusReporter:
    """Single-writer, single-reader progress channel.

    Every update overwrites the previous one; no history is kept. An optional
    listener is called whenever the status text changes so a UI can re-render.
    """

    def __init__(self, listener: Optional[StatusListener] = None):
        self._status = PipelineStatus()
        self._listener = listener

    @property
    def status(self) -> PipelineStatus:
        return self._status

    @property
    def text(self) -> str:
        return self._status.detail

    @property
    def stage(self) -> Stage:
        return self._status.stage

    def update(self, stage: Stage, detail: Optional[str] = None) -> None:
        """Overwrite the current status. ``detail=None`` keeps the current text.

        Listeners hear about text changes only; a stage change that keeps the
        same text is recorded silently.
        """
        previous = self._status.detail
        text = previous if detail is None else detail
        self._status = PipelineStatus(stage=stage, detail=text)
        if text == previous:
            return
        logger.debug(f"[{stage.name}] {text}")
        if self._listener is not None:
            self._listener(self._status)
