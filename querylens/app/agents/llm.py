from dataclasses import dataclass
from typing import Any, Dict, List, Optional, cast

from querylens.app.core.settings import settings


@dataclass(frozen=True)
class InferenceResult:
    content: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.content)


class LLMClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self.model = model or settings.LLM_MODEL
        self.timeout = timeout or settings.LLM_TIMEOUT_S
        self.temperature = settings.LLM_TEMPERATURE

    def chat_json(self, messages: List[Dict[str, str]]) -> InferenceResult:
        """
        Single attempt at a JSON-object chat completion. Never raises: missing
        key, transport errors, timeouts and empty replies all come back as an
        InferenceResult with `error` set.
        """
        if not self.api_key:
            return InferenceResult(error="missing_credential")

        try:
            from openai import OpenAI

            client = OpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=0)
            resp = client.chat.completions.create(  # type: ignore[call-overload]
                model=self.model,
                messages=cast(Any, messages),
                temperature=self.temperature,
                response_format={"type": "json_object"},
            )
            content = resp.choices[0].message.content if resp.choices else None
        except Exception as e:
            return InferenceResult(error=f"llm_error:{type(e).__name__}")

        if not content or not content.strip():
            return InferenceResult(error="empty_reply")
        return InferenceResult(content=content)
