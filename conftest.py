"""Shared fakes for pipeline tests.

Every collaborator appends to a shared ``events`` list so tests can assert on
the order of external calls across services.
"""

import json
from typing import List, Optional

import pytest

from resumind.core import PipelineContext
from resumind.models import (
    AnalysisResponse,
    AppConfig,
    CandidateFile,
    ImageFile,
    UploadedFile,
)
from resumind.services import ConversionResult, InMemoryKVStore


SAMPLE_FEEDBACK = {
    "overallScore": 78,
    "ATS": {"score": 82, "tips": [{"type": "good", "tip": "Standard section headings"}]},
    "toneAndStyle": {"score": 75, "tips": []},
    "content": {"score": 70, "tips": []},
    "structure": {"score": 80, "tips": []},
    "skills": {"score": 85, "tips": []},
}


class FakeStorage:
    def __init__(self, events: List[str], fail_on_call: Optional[int] = None):
        self.events = events
        self.fail_on_call = fail_on_call
        self.uploaded: List[str] = []

    async def upload(self, blob):
        call = len(self.uploaded) + 1
        self.uploaded.append(blob.name)
        self.events.append(f"upload:{blob.name}")
        if call == self.fail_on_call:
            return None
        return UploadedFile(path=f"uploads/{call}/{blob.name}", name=blob.name, size=len(blob.content))

    async def read(self, path):
        return None


class FakeConverter:
    def __init__(self, events: List[str], succeed: bool = True):
        self.events = events
        self.succeed = succeed
        self.converted: List[CandidateFile] = []

    async def convert(self, file):
        self.converted.append(file)
        self.events.append(f"convert:{file.name}")
        if not self.succeed:
            return ConversionResult(error="no pages")
        return ConversionResult(file=ImageFile(name="resume.png", content=b"\x89PNG fake"))


class FakeAI:
    def __init__(self, events: List[str], content=json.dumps(SAMPLE_FEEDBACK), respond: bool = True):
        self.events = events
        self.content = content
        self.respond = respond
        self.calls: List[tuple] = []

    async def feedback(self, document_path, instructions):
        self.calls.append((document_path, instructions))
        self.events.append(f"ai:{document_path}")
        if not self.respond:
            return None
        return AnalysisResponse.from_content(self.content)


class RecordingKV(InMemoryKVStore):
    def __init__(self, events: List[str], reject_calls=()):
        super().__init__()
        self.events = events
        self.reject_calls = set(reject_calls)
        self.writes: List[tuple] = []

    async def set(self, key, value):
        self.writes.append((key, value))
        self.events.append(f"kv:{key}")
        if len(self.writes) in self.reject_calls:
            return False
        return await super().set(key, value)


@pytest.fixture
def events() -> List[str]:
    return []


@pytest.fixture
def pdf_file() -> CandidateFile:
    return CandidateFile(
        name="resume.pdf",
        size=2 * 1024 * 1024,
        mime_type="application/pdf",
        content=b"%PDF-1.4 fake resume",
    )


@pytest.fixture
def make_context(events):
    """Build a PipelineContext from fakes, overriding any collaborator."""

    def _make(storage=None, kv=None, ai=None, converter=None, config=None, id_factory=None):
        kwargs = {}
        if id_factory is not None:
            kwargs["id_factory"] = id_factory
        return PipelineContext(
            storage=storage or FakeStorage(events),
            kv=kv or RecordingKV(events),
            ai=ai or FakeAI(events),
            converter=converter or FakeConverter(events),
            config=config or AppConfig(),
            **kwargs,
        )

    return _make
