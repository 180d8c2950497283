"""LLM service abstraction for resume feedback.

Supports multiple backends: OpenAI, Ollama, Groq.
Uses langchain-core for unified interface.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional, Protocol

from jinja2 import Environment, FileSystemLoader
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from ..models import AnalysisResponse, Feedback, LLMConfig
from .converter_service import extract_pdf_text
from .storage_service import StorageService

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"


class LLMServiceError(Exception):
    """Raised for LLM misconfiguration."""
    pass


def create_prompt_env(template_dir: Path = TEMPLATE_DIR) -> Environment:
    """Create a Jinja2 environment for plain-text prompt templates."""
    return Environment(
        loader=FileSystemLoader(template_dir),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def response_format() -> str:
    """JSON schema of the feedback object the model must return."""
    return json.dumps(Feedback.model_json_schema(), indent=2)


def prepare_instructions(
    job_title: str,
    job_description: str,
    company_name: str = ""
) -> str:
    """Render the reviewer instructions for one analysis request."""
    template = create_prompt_env().get_template("instructions.txt.j2")
    return template.render(
        company_name=company_name.strip(),
        job_title=job_title.strip(),
        job_description=job_description.strip(),
        response_format=response_format(),
    )


# === LLM Service Interface ===

class AnalysisService(Protocol):
    """Protocol defining the AI feedback collaborator."""

    async def feedback(
        self,
        document_path: str,
        instructions: str
    ) -> Optional[AnalysisResponse]:
        """Analyze the stored document; None when no response was produced."""
        ...


class LLMService:
    """LLM service implementation using langchain-core.

    Reads the stored resume through the storage service, extracts its text and
    asks the configured chat model for feedback.

    Supports:
    - OpenAI (gpt-4o-mini, gpt-4o)
    - Ollama (local models)
    - Groq (fast inference)

    Usage:
        service = LLMService(config, storage)
        response = await service.feedback(uploaded.path, instructions)
    """

    def __init__(self, config: LLMConfig, storage: StorageService):
        self.config = config
        self.storage = storage
        self._llm: BaseChatModel | None = None

    def _get_llm(self) -> BaseChatModel:
        """Lazy-load the LLM based on configuration."""
        if self._llm is not None:
            return self._llm

        if self.config.provider == "openai":
            from langchain_openai import ChatOpenAI
            self._llm = ChatOpenAI(
                model=self.config.model,
                api_key=self.config.api_key,
                base_url=self.config.base_url,
                temperature=self.config.temperature,
            )
        elif self.config.provider == "ollama":
            from langchain_ollama import ChatOllama
            self._llm = ChatOllama(
                model=self.config.model,
                base_url=self.config.base_url or "http://localhost:11434",
                temperature=self.config.temperature,
            )
        elif self.config.provider == "groq":
            from langchain_groq import ChatGroq
            self._llm = ChatGroq(
                model=self.config.model,
                api_key=self.config.api_key,
                temperature=self.config.temperature,
            )
        else:
            raise LLMServiceError(f"Unknown LLM provider: {self.config.provider}")

        return self._llm

    async def _load_resume_text(self, document_path: str) -> Optional[str]:
        content = await self.storage.read(document_path)
        if not content:
            logger.error(f"Document not found in storage: {document_path}")
            return None

        text = await asyncio.to_thread(extract_pdf_text, content)
        if not text:
            logger.warning(f"No extractable text in {document_path} (scanned PDF?)")
            return None
        return text

    async def feedback(
        self,
        document_path: str,
        instructions: str
    ) -> Optional[AnalysisResponse]:
        """Request ATS feedback for a stored resume."""
        resume_text = await self._load_resume_text(document_path)
        if resume_text is None:
            return None

        llm = self._get_llm()
        messages = [
            SystemMessage(content=instructions),
            HumanMessage(content=f"Resume:\n\n{resume_text}"),
        ]

        try:
            response = await llm.ainvoke(messages)
        except Exception as e:
            # Provider SDKs each raise their own error hierarchy
            logger.error(f"LLM request failed: {e}")
            return None

        if not response.content:
            logger.error("LLM returned an empty response")
            return None

        logger.info(f"Received feedback for {document_path}")
        return AnalysisResponse.from_content(response.content)
