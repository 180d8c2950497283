"""List all stored resume analyses with their scores."""

import asyncio

from dotenv import load_dotenv

load_dotenv()

from resumind.models import AppConfig
from resumind.core import ResumeRepository, result_path
from resumind.services import JsonFileKVStore


async def list_resumes():
    config = AppConfig()
    repo = ResumeRepository(JsonFileKVStore(config.kv))

    records = await repo.list()
    if not records:
        print("No resumes analyzed yet.")
        return

    for record in records:
        score = "pending"
        if isinstance(record.feedback, dict):
            score = record.feedback.get("overallScore", "?")

        print(f"{record.job_title or '(no title)'} @ {record.company_name or '-'}")
        print(f"  Score: {score}")
        print(f"  Resume: {record.resume_path}")
        print(f"  View: {result_path(record.id)}")
        print()


if __name__ == "__main__":
    asyncio.run(list_resumes())
