"""Automotive diagnosis assistant backed by an OpenAI chat model."""

import time

from openai import OpenAI
from pydantic import BaseModel

from partfinder.core.logging import log_external_call

SYSTEM_PROMPT = (
    "You are an automotive diagnostic assistant. Give 2-4 likely causes and "
    "actionable steps. If code/part unknown, ask for more details. Respond in "
    "Markdown with concise headings and bullet lists."
)
EMPTY_REPLY = "No response from model. Please try again."


class Exchange(BaseModel):
    prompt: str
    response: str


class DiagnosisUnavailableError(RuntimeError):
    """Raised when no model API key is configured."""


class DiagnoseService:
    def __init__(
        self,
        client: OpenAI | None,
        model: str = "gpt-4o-mini",
        max_tokens: int = 512,
    ) -> None:
        self.client = client
        self.model = model
        self.max_tokens = max_tokens

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    def submit(self, prompt: str, history: list[Exchange] | None = None) -> Exchange:
        """Ask the model about a vehicle issue, continuing ``history`` if given."""
        trimmed = prompt.strip()
        if not trimmed:
            raise ValueError("Please describe your issue before submitting.")
        if self.client is None:
            raise DiagnosisUnavailableError(
                "Diagnosis model not configured. Set OPENAI_API_KEY."
            )

        messages: list[dict[str, str]] = [{"role": "system", "content": SYSTEM_PROMPT}]
        for exchange in history or []:
            messages.append({"role": "user", "content": exchange.prompt})
            messages.append({"role": "assistant", "content": exchange.response})
        messages.append({"role": "user", "content": f"User issue: {trimmed}"})

        start = time.time()
        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                messages=messages,  # type: ignore[arg-type]
                max_tokens=self.max_tokens,
            )
        except Exception:
            log_external_call("openai", "diagnose", False, (time.time() - start) * 1000)
            raise
        log_external_call("openai", "diagnose", True, (time.time() - start) * 1000)

        content = completion.choices[0].message.content if completion.choices else None
        reply = (content or "").strip() or EMPTY_REPLY
        return Exchange(prompt=trimmed, response=reply)
