"""Stage handlers for the analysis pipeline.

Each handler performs exactly one collaborator call (or pure step) and
returns the updated state, or None when the collaborator produced nothing.
The orchestrator turns None into the stage's error status.
"""

import logging
from typing import Optional

from ..models import PipelineState
from ..services import prepare_instructions
from .context import PipelineContext
from .records import build_record, parse_feedback, record_key, with_feedback

logger = logging.getLogger(__name__)


async def upload_resume(
    state: PipelineState,
    context: PipelineContext
) -> Optional[PipelineState]:
    """UPLOADING stage: store the original document."""
    uploaded = await context.storage.upload(state.file)
    if not uploaded:
        return None
    return state.model_copy(update={"uploaded_file": uploaded})


async def convert_to_image(
    state: PipelineState,
    context: PipelineContext
) -> Optional[PipelineState]:
    """CONVERTING_TO_IMAGE stage: render a preview from the original file.

    Converts the in-memory candidate file, not the uploaded copy.
    """
    result = await context.converter.convert(state.file)
    if not result.file:
        logger.error(f"Conversion produced no image: {result.error}")
        return None
    return state.model_copy(update={"image_file": result.file})


async def upload_image(
    state: PipelineState,
    context: PipelineContext
) -> Optional[PipelineState]:
    """UPLOADING_IMAGE stage: store the preview image."""
    uploaded = await context.storage.upload(state.image_file)
    if not uploaded:
        return None
    return state.model_copy(update={"uploaded_image": uploaded})


async def prepare_record(
    state: PipelineState,
    context: PipelineContext
) -> Optional[PipelineState]:
    """PREPARING_RECORD stage: mint an id and build the unanalyzed record."""
    record = build_record(
        record_id=context.id_factory(),
        resume_path=state.uploaded_file.path,
        image_path=state.uploaded_image.path,
        company_name=state.request.company_name,
        job_title=state.request.job_title,
        job_description=state.request.job_description,
    )
    logger.info(f"Prepared record {record.id}")
    return state.model_copy(update={"record": record})


async def persist_initial_record(
    state: PipelineState,
    context: PipelineContext
) -> Optional[PipelineState]:
    """PERSISTING_INITIAL_RECORD stage: checkpoint the record before analysis.

    A rejected write is recorded on the state. It only fails the run when
    ``pipeline.require_checkpoint`` is enabled.
    """
    key = record_key(state.record.id)
    saved = await context.kv.set(key, state.record.to_json())

    if not saved:
        if context.config.pipeline.require_checkpoint:
            return None
        logger.warning(f"Initial write of {key} was rejected; continuing without checkpoint")

    return state.model_copy(update={"checkpoint_saved": bool(saved)})


async def request_analysis(
    state: PipelineState,
    context: PipelineContext
) -> Optional[PipelineState]:
    """REQUESTING_ANALYSIS stage: ask the AI service for feedback."""
    instructions = prepare_instructions(
        job_title=state.request.job_title,
        job_description=state.request.job_description,
        company_name=state.request.company_name,
    )
    response = await context.ai.feedback(state.uploaded_file.path, instructions)
    if not response:
        return None
    return state.model_copy(update={"analysis": response})


async def persist_final_record(
    state: PipelineState,
    context: PipelineContext
) -> Optional[PipelineState]:
    """PERSISTING_FINAL_RECORD stage: attach parsed feedback and rewrite the record.

    Raises:
        EmptyAnalysisContent: If the response is an empty block sequence
        MalformedAnalysisResponse: If the feedback text is not valid JSON
    """
    feedback = parse_feedback(state.analysis.text)
    record = with_feedback(state.record, state.record.id, feedback)

    saved = await context.kv.set(record_key(record.id), record.to_json())
    if not saved:
        return None
    return state.model_copy(update={"record": record})
