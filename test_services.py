"""Tests for collaborator adapters: storage, KV, conversion and the LLM service."""

import asyncio
import json

import fitz
import httpx
import pytest
from langchain_core.language_models.fake_chat_models import (
    FakeListChatModel,
    GenericFakeChatModel,
)
from langchain_core.messages import AIMessage

from resumind.models import (
    BlockContent,
    CandidateFile,
    ConversionConfig,
    KVConfig,
    LLMConfig,
    StorageConfig,
)
from resumind.services import (
    FileStorageService,
    HttpStorageService,
    InMemoryKVStore,
    JsonFileKVStore,
    KVStoreError,
    LLMService,
    StorageServiceError,
    convert_pdf_to_image,
    extract_pdf_text,
    prepare_instructions,
)


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def resume_pdf() -> CandidateFile:
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), "Jane Doe - Backend Engineer")
    page.insert_text((72, 100), "Python, FastAPI, PostgreSQL")
    content = doc.tobytes()
    doc.close()
    return CandidateFile.from_bytes("jane_doe.pdf", content)


# === Key-value stores ===

def test_in_memory_kv_lists_by_pattern():
    async def scenario():
        kv = InMemoryKVStore()
        await kv.set("resume:b", "2")
        await kv.set("resume:a", "1")
        await kv.set("other:c", "3")
        return await kv.list("resume:*"), await kv.get("resume:a"), await kv.get("missing")

    keys, value, missing = run(scenario())
    assert keys == ["resume:a", "resume:b"]
    assert value == "1"
    assert missing is None


def test_json_file_kv_persists_across_instances(tmp_path):
    config = KVConfig(path=tmp_path / "store" / "kv.json")

    assert run(JsonFileKVStore(config).set("resume:1", '{"id": "1"}')) is True
    reopened = JsonFileKVStore(config)

    assert run(reopened.get("resume:1")) == '{"id": "1"}'
    assert run(reopened.list("resume:*")) == ["resume:1"]
    assert json.loads(config.path.read_text()) == {"resume:1": '{"id": "1"}'}


def test_json_file_kv_reports_failed_write_on_corrupt_file(tmp_path):
    path = tmp_path / "kv.json"
    path.write_text("[1, 2, 3]")
    kv = JsonFileKVStore(KVConfig(path=path))

    assert run(kv.set("resume:1", "{}")) is False
    with pytest.raises(KVStoreError):
        run(kv.get("resume:1"))


# === Storage ===

def test_file_storage_round_trip(tmp_path, resume_pdf):
    storage = FileStorageService(StorageConfig(root_dir=tmp_path))

    first = run(storage.upload(resume_pdf))
    second = run(storage.upload(resume_pdf))

    assert first.path.endswith("/jane_doe.pdf")
    assert first.path != second.path
    assert first.size == resume_pdf.size
    assert run(storage.read(first.path)) == resume_pdf.content


def test_file_storage_missing_path_reads_none(tmp_path):
    storage = FileStorageService(StorageConfig(root_dir=tmp_path))
    assert run(storage.read("nothing/here.pdf")) is None


def test_file_storage_refuses_paths_outside_root(tmp_path):
    storage = FileStorageService(StorageConfig(root_dir=tmp_path / "root"))

    with pytest.raises(StorageServiceError):
        run(storage.read("../../etc/passwd"))


def test_http_storage_upload_and_read(resume_pdf):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST" and request.url.path == "/files":
            assert request.headers["Authorization"] == "Bearer secret"
            return httpx.Response(200, json={"path": "/bucket/jane_doe.pdf"})
        if request.method == "GET" and request.url.path == "/files/bucket/jane_doe.pdf":
            return httpx.Response(200, content=b"%PDF-stored")
        return httpx.Response(404)

    config = StorageConfig(base_url="https://storage.test", api_key="secret")

    async def scenario():
        async with HttpStorageService(config, transport=httpx.MockTransport(handler)) as storage:
            uploaded = await storage.upload(resume_pdf)
            content = await storage.read(uploaded.path)
            missing = await storage.read("/bucket/other.pdf")
        return uploaded, content, missing

    uploaded, content, missing = run(scenario())
    assert uploaded.path == "/bucket/jane_doe.pdf"
    assert content == b"%PDF-stored"
    assert missing is None


@pytest.mark.parametrize(
    "response",
    [httpx.Response(500), httpx.Response(200, json={}), httpx.Response(200, content=b"not json")],
)
def test_http_storage_failed_upload_returns_none(resume_pdf, response):
    config = StorageConfig(base_url="https://storage.test")
    transport = httpx.MockTransport(lambda request: response)

    async def scenario():
        async with HttpStorageService(config, transport=transport) as storage:
            return await storage.upload(resume_pdf)

    assert run(scenario()) is None


def test_http_storage_requires_context_manager(resume_pdf):
    storage = HttpStorageService(StorageConfig(base_url="https://storage.test"))

    with pytest.raises(StorageServiceError):
        run(storage.upload(resume_pdf))


# === Conversion ===

def test_first_page_is_rendered_to_png(resume_pdf):
    result = convert_pdf_to_image(resume_pdf, ConversionConfig(scale=1.0))

    assert result.error is None
    assert result.file.name == "jane_doe.png"
    assert result.file.mime_type == "image/png"
    assert result.file.content.startswith(b"\x89PNG")
    assert 0 < result.file.width < result.file.height


def test_scale_multiplies_image_size(resume_pdf):
    small = convert_pdf_to_image(resume_pdf, ConversionConfig(scale=1.0)).file
    large = convert_pdf_to_image(resume_pdf, ConversionConfig(scale=2.0)).file

    assert large.width == pytest.approx(small.width * 2, abs=2)


def test_garbage_bytes_do_not_convert():
    broken = CandidateFile.from_bytes("broken.pdf", b"this is not a pdf")
    result = convert_pdf_to_image(broken)

    assert result.file is None
    assert result.error


def test_text_extraction(resume_pdf):
    text = extract_pdf_text(resume_pdf.content)

    assert "Jane Doe" in text
    assert "FastAPI" in text


# === Instructions and LLM service ===

def test_instructions_include_role_and_format():
    instructions = prepare_instructions(
        job_title="Data Engineer",
        job_description="Spark and Airflow pipelines",
        company_name="Acme",
    )

    assert "Job title: Data Engineer" in instructions
    assert "Spark and Airflow pipelines" in instructions
    assert "Company: Acme" in instructions
    assert "overallScore" in instructions
    assert "toneAndStyle" in instructions


def test_instructions_without_role_omit_role_section():
    instructions = prepare_instructions(job_title="", job_description="")

    assert "Job title:" not in instructions
    assert "overallScore" in instructions


def make_llm_service(tmp_path, chat_model):
    storage = FileStorageService(StorageConfig(root_dir=tmp_path))
    service = LLMService(LLMConfig(), storage)
    service._llm = chat_model
    return service, storage


def test_llm_feedback_with_string_content(tmp_path, resume_pdf):
    service, storage = make_llm_service(tmp_path, FakeListChatModel(responses=['{"overallScore": 64}']))

    async def scenario():
        uploaded = await storage.upload(resume_pdf)
        return await service.feedback(uploaded.path, "Rate this resume")

    response = run(scenario())
    assert response.text == '{"overallScore": 64}'


def test_llm_feedback_with_block_content(tmp_path, resume_pdf):
    message = AIMessage(content=[{"type": "text", "text": '{"overallScore": 71}'}])
    service, storage = make_llm_service(tmp_path, GenericFakeChatModel(messages=iter([message])))

    async def scenario():
        uploaded = await storage.upload(resume_pdf)
        return await service.feedback(uploaded.path, "Rate this resume")

    response = run(scenario())
    assert isinstance(response.message.content, BlockContent)
    assert response.text == '{"overallScore": 71}'


def test_llm_feedback_for_missing_document_is_none(tmp_path):
    service, _ = make_llm_service(tmp_path, FakeListChatModel(responses=["{}"]))

    assert run(service.feedback("missing/resume.pdf", "Rate this resume")) is None


def test_llm_feedback_with_empty_reply_is_none(tmp_path, resume_pdf):
    service, storage = make_llm_service(tmp_path, FakeListChatModel(responses=[""]))

    async def scenario():
        uploaded = await storage.upload(resume_pdf)
        return await service.feedback(uploaded.path, "Rate this resume")

    assert run(scenario()) is None
