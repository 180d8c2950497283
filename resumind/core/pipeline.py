"""Resume analysis orchestrator.

Implements a state machine that sequences upload, conversion, persistence and
AI analysis, reporting progress as it goes and halting at the first stage
whose collaborator comes back empty.
"""

from typing import Awaitable, Callable, Dict, List, Optional, Sequence
import logging

from pydantic import BaseModel, Field

from ..models import (
    AnalysisRequest,
    CandidateFile,
    PipelineStage,
    PipelineState,
    ResumeRecord,
)
from .context import PipelineContext
from .records import result_path
from .stages import (
    convert_to_image,
    persist_final_record,
    persist_initial_record,
    prepare_record,
    request_analysis,
    upload_image,
    upload_resume,
)
from .status import Stage, StatusReporter
from .validation import RejectedInput, validate_candidate

logger = logging.getLogger(__name__)


# Type alias for stage handlers
StageHandler = Callable[[PipelineState, PipelineContext], Awaitable[Optional[PipelineState]]]


class PipelineResult(BaseModel):
    """Summary of a finished run."""
    stage: Stage
    status: str
    record: Optional[ResumeRecord] = None
    redirect_to: Optional[str] = None
    completed: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.stage == Stage.COMPLETE


class ResumeOrchestrator:
    """State machine orchestrator for the analysis pipeline.

    Manages the flow: IDLE → UPLOADING → CONVERTING_TO_IMAGE → UPLOADING_IMAGE
    → PREPARING_RECORD → PERSISTING_INITIAL_RECORD → REQUESTING_ANALYSIS
    → PERSISTING_FINAL_RECORD → COMPLETE

    Each stage:
    1. Publishes its status text (if it has one)
    2. Executes the stage handler
    3. Moves to ERROR if the handler returned nothing
    4. Otherwise transitions to the next stage

    Nothing produced by earlier stages is rolled back on failure.

    Usage:
        orchestrator = ResumeOrchestrator(context)
        result = await orchestrator.run(initial_state, session_id)
    """

    # Stage transition map: current -> next
    TRANSITIONS: Dict[Stage, Stage] = {
        Stage.IDLE: Stage.UPLOADING,
        Stage.UPLOADING: Stage.CONVERTING_TO_IMAGE,
        Stage.CONVERTING_TO_IMAGE: Stage.UPLOADING_IMAGE,
        Stage.UPLOADING_IMAGE: Stage.PREPARING_RECORD,
        Stage.PREPARING_RECORD: Stage.PERSISTING_INITIAL_RECORD,
        Stage.PERSISTING_INITIAL_RECORD: Stage.REQUESTING_ANALYSIS,
        Stage.REQUESTING_ANALYSIS: Stage.PERSISTING_FINAL_RECORD,
        Stage.PERSISTING_FINAL_RECORD: Stage.COMPLETE,
    }

    # Stage handlers
    HANDLERS: Dict[Stage, StageHandler] = {
        Stage.UPLOADING: upload_resume,
        Stage.CONVERTING_TO_IMAGE: convert_to_image,
        Stage.UPLOADING_IMAGE: upload_image,
        Stage.PREPARING_RECORD: prepare_record,
        Stage.PERSISTING_INITIAL_RECORD: persist_initial_record,
        Stage.REQUESTING_ANALYSIS: request_analysis,
        Stage.PERSISTING_FINAL_RECORD: persist_final_record,
    }

    # Status shown when a stage starts; stages not listed keep the previous text
    STATUS_TEXT: Dict[Stage, str] = {
        Stage.UPLOADING: "Uploading the file...",
        Stage.CONVERTING_TO_IMAGE: "Converting to image...",
        Stage.UPLOADING_IMAGE: "Uploading the image...",
        Stage.PREPARING_RECORD: "Preparing data...",
        Stage.REQUESTING_ANALYSIS: "Analyzing...",
        Stage.COMPLETE: "Analysis complete, redirecting...",
    }

    FAILURE_TEXT: Dict[Stage, str] = {
        Stage.UPLOADING: "Error: Failed to upload file",
        Stage.CONVERTING_TO_IMAGE: "Error: Failed to convert PDF to image",
        Stage.UPLOADING_IMAGE: "Error: Failed to upload image",
        Stage.PREPARING_RECORD: "Error: Failed to prepare data",
        Stage.PERSISTING_INITIAL_RECORD: "Error: Failed to save resume data",
        Stage.REQUESTING_ANALYSIS: "Error: Failed to analyze resume",
        Stage.PERSISTING_FINAL_RECORD: "Error: Failed to save analysis",
    }

    # Reported when decoding the analysis raises instead of returning an outcome
    UNEXPECTED_FAILURE_TEXT = "Error: Failed to process analysis results"

    def __init__(self, context: PipelineContext, reporter: Optional[StatusReporter] = None):
        self.context = context
        self.reporter = reporter or StatusReporter()

    def _validate_preconditions(self, stage: Stage, state: PipelineState) -> None:
        """Validate that the state is valid for the given stage."""
        if stage == Stage.UPLOADING:
            if not state.file.content:
                raise ValueError("Candidate file has no content")

        elif stage == Stage.UPLOADING_IMAGE:
            if state.image_file is None:
                raise ValueError("No image to upload. CONVERTING_TO_IMAGE stage may have failed.")

        elif stage == Stage.PREPARING_RECORD:
            if state.uploaded_file is None or state.uploaded_image is None:
                raise ValueError("Uploads missing. UPLOADING stages may have failed.")

        elif stage in (Stage.PERSISTING_INITIAL_RECORD, Stage.REQUESTING_ANALYSIS):
            if state.record is None:
                raise ValueError("No record prepared. PREPARING_RECORD stage may have failed.")

        elif stage == Stage.PERSISTING_FINAL_RECORD:
            if state.analysis is None:
                raise ValueError("No analysis. REQUESTING_ANALYSIS stage may have failed.")

    def _fail(self, tracker: PipelineStage, reporter: StatusReporter, message: str, status: str) -> None:
        tracker.errors.append(f"{tracker.current}: {message}")
        tracker.current = Stage.ERROR.name
        tracker.status = status
        reporter.update(Stage.ERROR, status)

    async def _execute_stage(
        self,
        state: PipelineState,
        tracker: PipelineStage,
        reporter: StatusReporter
    ) -> PipelineState:
        """Execute the handler for the run's current stage."""
        stage = Stage[tracker.current]
        handler = self.HANDLERS.get(stage)

        if handler is None:
            logger.debug(f"No handler for stage {stage.name}, skipping")
            return state

        logger.info(f"Executing stage: {stage.name}")
        if stage in self.STATUS_TEXT:
            tracker.status = self.STATUS_TEXT[stage]
        reporter.update(stage, self.STATUS_TEXT.get(stage))

        try:
            self._validate_preconditions(stage, state)
            updated_state = await handler(state, self.context)
        except Exception as e:
            logger.error(f"Stage {stage.name} failed: {e}")
            if stage == Stage.PERSISTING_FINAL_RECORD:
                status = self.UNEXPECTED_FAILURE_TEXT
            else:
                status = self.FAILURE_TEXT[stage]
            self._fail(tracker, reporter, str(e), status)
            raise

        if updated_state is None:
            message = self.FAILURE_TEXT[stage]
            logger.error(f"Stage {stage.name} produced no result")
            self._fail(tracker, reporter, message, message)
            return state

        tracker.completed.append(stage.name)
        return updated_state

    def _transition(self, tracker: PipelineStage) -> None:
        """Move the run to the next stage."""
        current = Stage[tracker.current]
        next_stage = self.TRANSITIONS.get(current)

        if next_stage is None:
            logger.warning(f"No transition defined from {current.name}")
            return

        logger.debug(f"Transitioning: {current.name} → {next_stage.name}")
        tracker.current = next_stage.name

    def _result(self, state: PipelineState, tracker: PipelineStage) -> PipelineResult:
        stage = Stage[tracker.current]
        record = state.record
        redirect_to = None
        if stage == Stage.COMPLETE and record is not None:
            redirect_to = result_path(record.id)

        return PipelineResult(
            stage=stage,
            status=tracker.status,
            record=record,
            redirect_to=redirect_to,
            completed=list(tracker.completed),
            errors=list(tracker.errors),
        )

    async def run(
        self,
        initial_state: PipelineState,
        session_id: str = "default",
        reporter: Optional[StatusReporter] = None
    ) -> PipelineResult:
        """Execute the full pipeline from IDLE to COMPLETE or ERROR.

        Stage bookkeeping is local to the call, so one orchestrator can serve
        several sessions at once. Pass ``reporter`` to give this run its own
        status channel; otherwise the orchestrator's reporter is used.

        Args:
            initial_state: PipelineState holding the validated candidate file
            session_id: Identity of the user session; one run per session at a time
            reporter: Status channel for this run only

        Returns:
            PipelineResult with the final stage, status text and record

        Raises:
            PipelineBusyError: If the session already has a run in flight
            EmptyAnalysisContent: If the AI response has no content blocks
            MalformedAnalysisResponse: If the AI feedback is not valid JSON
        """
        reporter = reporter or self.reporter

        async with self.context.locks.hold(session_id):
            state = initial_state
            tracker = PipelineStage(current=Stage.IDLE.name)
            reporter.update(Stage.IDLE, "")

            logger.info(f"Starting analysis of {state.file.name} for session {session_id}")

            while tracker.current not in (Stage.COMPLETE.name, Stage.ERROR.name):
                self._transition(tracker)
                state = await self._execute_stage(state, tracker, reporter)

            if tracker.current == Stage.ERROR.name:
                logger.error(f"Pipeline failed for session {session_id}. Errors: {tracker.errors}")
            else:
                tracker.status = self.STATUS_TEXT[Stage.COMPLETE]
                reporter.update(Stage.COMPLETE, tracker.status)
                logger.info(f"Pipeline completed: {result_path(state.record.id)}")

            return self._result(state, tracker)


async def analyze_resume(
    files: Sequence[CandidateFile],
    request: AnalysisRequest,
    context: PipelineContext,
    session_id: str = "default",
    reporter: Optional[StatusReporter] = None
) -> PipelineResult:
    """Validate a file selection and, if accepted, run the pipeline on it.

    Raises:
        RejectedInput: If the selection fails validation; no stage runs
    """
    upload = context.config.upload
    validation = validate_candidate(
        files,
        max_file_size=upload.max_file_size,
        accepted_mime_type=upload.accepted_mime_type,
    )
    if not validation.ok:
        raise RejectedInput(validation.reason)

    orchestrator = ResumeOrchestrator(context, reporter)
    state = PipelineState(file=validation.accepted, request=request)
    return await orchestrator.run(state, session_id)
