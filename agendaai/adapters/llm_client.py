"""
OpenAI-compatible language model client for intent extraction.
"""

import logging
from typing import Any, Dict, List, Optional

import openai
from openai import AsyncOpenAI
from pendulum import DateTime

from ..domain.exceptions import LanguageModelError
from ..domain.intent import normalize_language, normalize_understanding, parse_json_object
from ..domain.models import DEFAULT_LANGUAGE, UnderstoodRequest

logger = logging.getLogger(__name__)

IDENTIFY_LANGUAGE_PROMPT = """Analyze the following text and identify its primary language.
Respond with the two-letter ISO 639-1 code for the language.
Supported languages are English (en), Portuguese (pt), and Spanish (es).
If the language is mixed, unclear, or not one of the supported languages, answer 'en'.

Respond ONLY with a JSON object such as {"language": "pt"}."""

UNDERSTAND_REQUEST_PROMPT = """You are a helpful AI secretary assisting with scheduling appointments.
The user's request is in the language: {language}. Interpret the intent within the context of this language.

If the request is about scheduling, booking, asking about an appointment or availability, or
changing or cancelling an appointment, set "understood" to true. Otherwise (greetings, weather,
small talk, or no clear scheduling intent) set "understood" to false.

When "understood" is true, extract:
  - "dateTime": the target date and time as an ISO 8601 string (YYYY-MM-DDTHH:mm:ss.sssZ).
    Resolve relative dates ("today", "tomorrow", "next Monday", "in 3 weeks", "next month",
    "daqui a um mês") against the reference time {reference_time}, never against your own clock.
    If a future date has no time, use 09:00.
  - "duration": the duration in minutes, if given.
  - "subject": the subject or purpose of the appointment, if given.
Omit any field you cannot determine.

Reference time: {reference_time}

Respond ONLY with a JSON object. Examples:
{{"understood": true, "dateTime": "2025-05-20T14:00:00.000Z", "subject": "Doctor's visit"}}
{{"understood": true, "subject": "check availability"}}
{{"understood": false}}"""


class OpenAIIntentClient:
    """
    Language identification and request understanding through chat completions.

    Works with any server exposing the OpenAI chat completions API.
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str = "gpt-4o-mini",
        temperature: float = 0.0
    ):
        self.client = client
        self.model = model
        self.temperature = temperature

    @classmethod
    def from_settings(
        cls,
        api_key: Optional[str],
        model: str,
        base_url: Optional[str] = None,
        timeout_seconds: float = 30.0,
        max_retries: int = 2
    ) -> "OpenAIIntentClient":
        """Create a client with its own AsyncOpenAI connection."""
        client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
            max_retries=max_retries
        )
        return cls(client=client, model=model)

    async def identify_language(self, text: str) -> str:
        """
        Identify the language of a message.

        Returns:
            One of ``en``, ``pt``, ``es``; ``en`` for anything unrecognised

        Raises:
            LanguageModelError: If the model cannot be reached
        """
        content = await self._complete(
            [
                {"role": "system", "content": IDENTIFY_LANGUAGE_PROMPT},
                {"role": "user", "content": text},
            ]
        )
        language = normalize_language(parse_json_object(content))
        logger.debug("Identified language %s", language)
        return language

    async def understand_request(
        self,
        text: str,
        language: Optional[str],
        reference_time: DateTime
    ) -> UnderstoodRequest:
        """
        Extract scheduling intent from a message.

        Args:
            text: The user's message
            language: Language code of the message
            reference_time: Instant relative dates are resolved against

        Raises:
            LanguageModelError: If the model cannot be reached
        """
        system_prompt = UNDERSTAND_REQUEST_PROMPT.format(
            language=language or DEFAULT_LANGUAGE,
            reference_time=reference_time.in_timezone("UTC").to_iso8601_string(),
        )
        content = await self._complete(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": text},
            ]
        )
        understood = normalize_understanding(parse_json_object(content))
        logger.debug("Understood request: %s", understood)
        return understood

    async def _complete(self, messages: List[Dict[str, Any]]) -> Optional[str]:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                response_format={"type": "json_object"},
            )
        except openai.OpenAIError as exc:
            raise LanguageModelError(f"Language model request failed: {exc}") from exc

        if not response.choices:
            return None

        return response.choices[0].message.content
