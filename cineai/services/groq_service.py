"""
Groq chat-completions client

One request per call with a generous timeout and no local retries: the
recommendation flow either gets a completion or reports which way the
provider failed (bad request, auth, rate limit, outage).
"""
import requests
from typing import Dict, Optional
from cineai.config import Settings
from cineai.utils.errors import UpstreamErrorKind, UpstreamUnavailable
import logging

logger = logging.getLogger(__name__)

SERVICE_NAME = "AI service"


class GroqClient:
    def __init__(
        self,
        api_key: Optional[str],
        api_url: str = "https://api.groq.com/openai/v1/chat/completions",
        model: str = "llama-3.1-8b-instant",
        timeout: float = 30.0,
        temperature: float = 0.7,
        max_tokens: int = 1000,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings) -> "GroqClient":
        return cls(
            api_key=settings.groq_api_key,
            api_url=settings.groq_api_url,
            model=settings.groq_model,
            timeout=settings.llm_timeout_seconds,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _post(self, payload: Dict, timeout: float) -> Dict:
        if not self.api_key:
            raise UpstreamUnavailable(SERVICE_NAME, UpstreamErrorKind.NOT_CONFIGURED, "GROQ_API_KEY not configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            response = self._session.post(self.api_url, json=payload, headers=headers, timeout=timeout)
        except requests.Timeout:
            logger.error(f"Groq request timed out after {timeout}s")
            raise UpstreamUnavailable(SERVICE_NAME, UpstreamErrorKind.TIMEOUT)
        except requests.RequestException as e:
            logger.error(f"Groq request failed: {str(e)}")
            raise UpstreamUnavailable(SERVICE_NAME, UpstreamErrorKind.UNAVAILABLE)

        if response.status_code >= 400:
            raise self._classify_failure(response)

        try:
            return response.json()
        except ValueError:
            logger.error("Groq returned a non-JSON body")
            raise UpstreamUnavailable(SERVICE_NAME, UpstreamErrorKind.UNAVAILABLE)

    @staticmethod
    def _classify_failure(response: requests.Response) -> UpstreamUnavailable:
        status_code = response.status_code
        try:
            provider_message = (response.json().get("error") or {}).get("message")
        except (ValueError, AttributeError):
            provider_message = None

        logger.error(f"Groq API error {status_code}: {provider_message or response.text[:200]}")

        if status_code == 400:
            return UpstreamUnavailable(
                SERVICE_NAME,
                UpstreamErrorKind.BAD_REQUEST,
                provider_message or "Bad request to AI service",
            )
        if status_code in (401, 403):
            return UpstreamUnavailable(SERVICE_NAME, UpstreamErrorKind.AUTH_FAILED, "Invalid or expired API key")
        if status_code == 429:
            return UpstreamUnavailable(
                SERVICE_NAME,
                UpstreamErrorKind.RATE_LIMITED,
                "Too many requests. Please try again later.",
            )
        return UpstreamUnavailable(
            SERVICE_NAME,
            UpstreamErrorKind.UNAVAILABLE,
            "The AI service is temporarily down. Please try again later.",
        )

    def complete(self, system_prompt: str, user_prompt: str, json_mode: bool = True) -> str:
        """
        Run one chat completion and return the text of the first choice.

        Raises:
            UpstreamUnavailable: key missing, transport failure or HTTP error
        """
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        logger.info(f"Groq request: model={self.model}, prompt_length={len(user_prompt)}")
        data = self._post(payload, self.timeout)

        choices = data.get("choices") or [{}]
        content = (choices[0].get("message") or {}).get("content") or ""
        logger.debug(f"Raw Groq response: {content[:500]}")
        return content

    def check_connection(self) -> Dict:
        """Cheap round trip used by the connectivity probe endpoint"""
        if not self.api_key:
            return {
                "success": False,
                "message": "GROQ_API_KEY not found in environment variables",
                "details": "Please set GROQ_API_KEY in your .env file",
            }
        try:
            data = self._post(
                {
                    "model": self.model,
                    "messages": [{"role": "user", "content": 'Hello, respond with just "Connection successful"'}],
                    "max_tokens": 50,
                    "temperature": 0.1,
                },
                timeout=10,
            )
        except UpstreamUnavailable as e:
            return {"success": False, "message": "Groq API connection failed", "details": {"error": e.error, "detail": e.detail}}

        choices = data.get("choices") or [{}]
        return {
            "success": True,
            "message": "Groq API connection successful",
            "details": {"model": self.model, "response": (choices[0].get("message") or {}).get("content")},
        }
