"""Narrative report insights from a chat-completions API.

The client is optional: without an API key `generate` returns None and the
report is saved without a narrative. Request failures are retried through
the client's `RetryPolicy`, then logged and also turned into None. Client
errors (4xx other than 429) are not retried.
"""

from typing import Optional

import httpx

from core.config import settings
from core.logger import get_logger
from core.retry import RetryPolicy

logger = get_logger("services.insight_client")

SYSTEM_PROMPT = (
    "Você é um nutricionista experiente que analisa dados nutricionais "
    "e fornece insights personalizados."
)


def build_prompt(
    data_inicio: str,
    data_fim: str,
    media: Optional[dict],
    registros_peso: Optional[int],
    registros_hidratacao: Optional[int],
) -> str:
    """Portuguese analysis prompt built from what the report collected.

    A section is left out when its value is None, so a weight-only report
    does not describe zero calories.
    """
    sections = [f"Análise dos dados do período de {data_inicio} a {data_fim}:"]
    if media is not None:
        sections.append(
            "Dados médios diários:\n"
            f"- Calorias: {media.get('calorias', 0):.0f}\n"
            f"- Proteínas: {media.get('proteinas', 0):.1f}g\n"
            f"- Carboidratos: {media.get('carboidratos', 0):.1f}g\n"
            f"- Gorduras: {media.get('gorduras', 0):.1f}g"
        )
    counts = []
    if registros_peso is not None:
        counts.append(f"Registros de peso: {registros_peso} medições")
    if registros_hidratacao is not None:
        counts.append(f"Registros de hidratação: {registros_hidratacao} registros")
    if counts:
        sections.append("\n".join(counts))
    sections.append(
        "Forneça insights sobre:\n"
        "1. Qualidade nutricional geral\n"
        "2. Equilibrio de macronutrientes\n"
        "3. Consistência dos registros\n"
        "4. Recomendações específicas\n"
        "5. Tendências identificadas"
    )
    sections.append("Responda em português, de forma clara e objetiva, como um nutricionista profissional.")
    return "\n\n".join(sections)


def is_retryable(exc: BaseException) -> bool:
    """Retry transport errors, 5xx and 429; give up on other client errors."""
    if isinstance(exc, httpx.HTTPStatusError):
        code = exc.response.status_code
        return code == 429 or code >= 500
    return isinstance(exc, httpx.HTTPError)


def _completion_text(data) -> Optional[str]:
    """First choice's message content, or None for any other body shape."""
    if not isinstance(data, dict):
        logger.warning("Unexpected completion body of type %s", type(data).__name__)
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    if not isinstance(content, str):
        return None
    return content.strip() or None


class InsightClient:
    """Thin chat-completions client used by report generation.

    Attributes:
        api_key: Bearer token; None disables the client.
        base_url: API base URL (without the `/chat/completions` suffix).
        model: Model name sent with each request.
        retry_policy: Policy applied to each request.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        retry_policy: Optional[RetryPolicy] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = (base_url or settings.openai_base_url).rstrip("/")
        self.model = model or settings.openai_model
        self.timeout = settings.insights_timeout if timeout is None else timeout
        self.retry_policy = retry_policy or RetryPolicy(
            settings.retry_attempts, settings.retry_base_delay, retry_on=is_retryable
        )
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def _request(self, prompt: str) -> Optional[str]:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": 800,
            "temperature": 0.7,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            response = client.post(f"{self.base_url}/chat/completions", json=payload, headers=headers)
        response.raise_for_status()
        return _completion_text(response.json())

    def generate(self, prompt: str) -> Optional[str]:
        """Return the narrative for `prompt`, or None when unavailable."""
        if not self.enabled:
            logger.info("Text generation not configured; skipping narrative insights")
            return None
        try:
            return self.retry_policy.call(self._request, prompt)
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Narrative insight generation failed: %s", exc)
            return None


def default_insight_client() -> InsightClient:
    return InsightClient(api_key=settings.openai_api_key)
