"""Analyze a local resume PDF against a job description, end to end."""

import argparse
import asyncio
import contextlib
import logging
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

from resumind.models import AppConfig, AnalysisRequest, CandidateFile
from resumind.core import PipelineContext, RejectedInput, StatusReporter, analyze_resume
from resumind.services import (
    FileStorageService,
    HttpStorageService,
    JsonFileKVStore,
    LLMService,
    PdfImageConverter,
)


# Sample JD - replace with a real one for better results
SAMPLE_JD = """
Software Engineer - Backend

We're looking for a skilled backend engineer to join our team.

Requirements:
- 2+ years of experience with Python or Go
- Experience with REST APIs and microservices architecture
- Familiarity with databases (PostgreSQL, MongoDB, Redis)
- Experience with cloud platforms (AWS, GCP, or Azure)
- Knowledge of containerization (Docker, Kubernetes)
"""


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Get ATS feedback for a resume PDF")
    parser.add_argument("resume", type=Path, help="Path to the resume PDF")
    parser.add_argument("--company", default="", help="Company name")
    parser.add_argument("--title", default="Software Engineer", help="Job title")
    parser.add_argument(
        "--description-file",
        type=Path,
        help="Text file with the job description (defaults to a sample JD)",
    )
    return parser.parse_args()


async def run_pipeline(args: argparse.Namespace) -> int:
    """Run the full pipeline and display results."""
    config = AppConfig()
    logging.basicConfig(
        level=logging.DEBUG if config.debug else logging.INFO,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    )

    job_description = SAMPLE_JD
    if args.description_file:
        job_description = args.description_file.read_text(encoding="utf-8")

    request = AnalysisRequest(
        company_name=args.company,
        job_title=args.title,
        job_description=job_description,
    )
    candidate = CandidateFile.from_path(args.resume)

    print("=" * 60)
    print("RESUMIND - Resume Analysis")
    print("=" * 60)
    print(f"\n📄 Resume: {candidate.name} ({candidate.size} bytes)")
    print(f"🏢 Target: {request.job_title} @ {request.company_name or '-'}")
    print(f"🔧 LLM Provider: {config.llm.provider} / {config.llm.model}")
    print("\n" + "=" * 60)

    reporter = StatusReporter(listener=lambda status: print(f"   ⏳ {status.detail}"))

    async with contextlib.AsyncExitStack() as stack:
        if config.storage.base_url:
            storage = await stack.enter_async_context(HttpStorageService(config.storage))
        else:
            storage = FileStorageService(config.storage)

        context = PipelineContext(
            storage=storage,
            kv=JsonFileKVStore(config.kv),
            ai=LLMService(config.llm, storage),
            converter=PdfImageConverter(config.conversion),
            config=config,
        )

        try:
            result = await analyze_resume([candidate], request, context, reporter=reporter)
        except RejectedInput as e:
            print(f"\n❌ File rejected: {e.reason}")
            return 2

    if not result.succeeded:
        print(f"\n❌ {result.status}")
        for error in result.errors:
            print(f"   • {error}")
        return 1

    record = result.record
    print("\n✅ ANALYSIS COMPLETED\n")
    print(f"🆔 Record: {record.id}")
    print(f"📎 Resume: {record.resume_path}")
    print(f"🖼  Preview: {record.image_path}")
    print(f"➡️  Result view: {result.redirect_to}")

    feedback = record.feedback
    if isinstance(feedback, dict):
        print(f"\n📊 Overall score: {feedback.get('overallScore', '?')}")
        for category in ("ATS", "toneAndStyle", "content", "structure", "skills"):
            section = feedback.get(category) or {}
            print(f"   {category}: {section.get('score', '?')}")

    print("\n" + "=" * 60)
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(run_pipeline(parse_args())))
