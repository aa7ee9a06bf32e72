"""Google Gemini provider for AI lens disambiguation."""

from __future__ import annotations

import os
import subprocess

import structlog
from google import genai
from google.genai import types

from lensmatch.config import FallbackConfig

log = structlog.get_logger()


def _get_project() -> str:
    project = os.environ.get("GOOGLE_CLOUD_PROJECT")
    if project:
        return project
    try:
        result = subprocess.run(
            ["gcloud", "config", "get-value", "project"],
            capture_output=True, text=True, check=True,
        )
        project = result.stdout.strip()
        if project:
            return project
    except (subprocess.CalledProcessError, FileNotFoundError):
        pass
    raise RuntimeError(
        "No GCP project found. Set GOOGLE_CLOUD_PROJECT or run: "
        "gcloud config set project <PROJECT_ID>"
    )


def _make_client() -> genai.Client:
    project = _get_project()
    location = os.environ.get("GOOGLE_CLOUD_LOCATION", "us-central1")
    return genai.Client(vertexai=True, project=project, location=location)


class GeminiLLMProvider:
    """LLMProvider backed by Gemini, pinned to deterministic sampling.

    The request timeout bounds user-facing latency; a timeout surfaces as an
    exception, which the disambiguator treats as "no opinion".
    """

    def __init__(
        self,
        config: FallbackConfig | None = None,
        client: genai.Client | None = None,
    ) -> None:
        self.config = config or FallbackConfig()
        self._client = client or _make_client()

    def query(self, prompt: str) -> str:
        response = self._client.models.generate_content(
            model=self.config.model,
            contents=prompt,
            config=types.GenerateContentConfig(
                temperature=self.config.temperature,
                max_output_tokens=64,
                http_options=types.HttpOptions(
                    timeout=int(self.config.timeout_seconds * 1000)
                ),
            ),
        )
        log.debug("gemini_query_done", model=self.config.model)
        return response.text or ""
