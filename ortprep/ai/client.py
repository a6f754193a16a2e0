"""Chat-completion gateway client."""

from typing import Any, Dict, List, Optional
import httpx
import structlog

from ortprep.core.config import settings

logger = structlog.get_logger()


class AIError(Exception):
    """Base class for AI content generation failures."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AIConfigurationError(AIError):
    pass


class AIGatewayError(AIError):
    pass


class AIRateLimitError(AIGatewayError):
    status_code = 429

    def __init__(self, message: str = "Rate limit exceeded. Please try again later."):
        super().__init__(message)


class AIPaymentRequiredError(AIGatewayError):
    status_code = 402

    def __init__(self, message: str = "Payment required. Please add credits."):
        super().__init__(message)


class AIResponseParseError(AIError):
    pass


class AIGatewayClient:
    """Sends chat messages to the gateway and returns the reply text.

    No retries and no streaming: one request per call.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: Optional[str] = None,
        *,
        url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        self._client = http_client
        self.api_key = api_key if api_key is not None else settings.AI_GATEWAY_API_KEY
        self.url = url or settings.AI_GATEWAY_URL
        self.model = model or settings.AI_MODEL
        self.timeout = timeout or settings.AI_REQUEST_TIMEOUT

    async def complete(
        self,
        messages: List[Dict[str, str]],
        *,
        temperature: Optional[float] = None
    ) -> str:
        if not self.api_key:
            raise AIConfigurationError("AI_GATEWAY_API_KEY is not configured")

        payload: Dict[str, Any] = {"model": self.model, "messages": messages}
        if temperature is not None:
            payload["temperature"] = temperature

        try:
            response = await self._client.post(
                self.url,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout
            )
        except httpx.RequestError as e:
            logger.error("AI gateway unreachable", error=str(e))
            raise AIGatewayError(f"AI gateway request failed: {e}") from e

        if response.status_code == 429:
            logger.warning("AI gateway rate limited")
            raise AIRateLimitError()
        if response.status_code == 402:
            logger.warning("AI gateway requires payment")
            raise AIPaymentRequiredError()
        if response.is_error:
            logger.error("AI gateway error", status=response.status_code, body=response.text[:500])
            raise AIGatewayError(f"AI gateway error: {response.status_code}")

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise AIGatewayError("Unexpected AI gateway response") from e

        if not content:
            raise AIGatewayError("No content in AI response")
        return content
