"""Google Gemini client used for reservation extraction and image transcription."""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from google import genai
from google.genai import types

from app.utils.exceptions import APIClientError, APITimeoutError
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class GeminiClient:
    """Wrapper for the Google Gemini API client.

    A single instance is created at application startup and shared by the
    text extractor and the structured extractor.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        timeout: int = 90,
        max_retries: int = 3,
        retry_delay: float = 1.0,
    ):
        """Initialize Gemini client.

        Args:
            api_key: Gemini API key
            model: Model name used for text and vision calls
            timeout: Per-attempt timeout in seconds
            max_retries: Maximum attempts per call
            retry_delay: Base delay for exponential backoff
        """
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay

        try:
            self.client = genai.Client(api_key=self.api_key)
            LOGGER.info(f"Initialized Gemini client with model {self.model}")
        except Exception as e:
            LOGGER.error(f"Failed to initialize Gemini client: {e}")
            raise APIClientError(f"Failed to initialize Gemini client: {e}") from e

    async def generate_content(
        self,
        contents: Union[str, List[Any]],
        system_instruction: Optional[str] = None,
        generation_config: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Generate text using the Gemini model.

        Args:
            contents: Prompt string or list of parts
            system_instruction: Optional system instruction
            generation_config: Optional generation config (temperature, etc.)

        Returns:
            Generated text response

        Raises:
            APITimeoutError: If every attempt timed out
            APIClientError: If generation fails
        """
        config = types.GenerateContentConfig(temperature=0.0)

        if generation_config:
            if "temperature" in generation_config:
                config.temperature = generation_config["temperature"]
            if "max_output_tokens" in generation_config:
                config.max_output_tokens = generation_config["max_output_tokens"]
            if "response_mime_type" in generation_config:
                config.response_mime_type = generation_config["response_mime_type"]

        if system_instruction:
            config.system_instruction = system_instruction

        async def _call() -> str:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=contents,
                config=config,
            )
            if not response.text:
                LOGGER.warning("Empty response from Gemini")
                return ""
            return response.text

        return await self._with_retries(_call, operation="generate_content")

    async def transcribe_image(self, data: bytes, mime_type: str, instruction: str) -> str:
        """Transcribe all visible text of an image.

        Args:
            data: Raw image bytes
            mime_type: Image media type (image/jpeg, image/png, image/webp)
            instruction: Transcription instruction sent alongside the image

        Returns:
            Transcribed text

        Raises:
            APITimeoutError: If every attempt timed out
            APIClientError: If transcription fails
        """
        image_part = types.Part.from_bytes(data=data, mime_type=mime_type)
        return await self.generate_content(contents=[instruction, image_part])

    async def _with_retries(self, call: Callable[[], Awaitable[str]], operation: str) -> str:
        """Run a model call with timeout and exponential backoff."""
        last_error: Optional[Exception] = None
        timed_out = False

        for attempt in range(self.max_retries):
            try:
                return await asyncio.wait_for(call(), timeout=self.timeout)
            except asyncio.TimeoutError as e:
                timed_out = True
                last_error = e
                LOGGER.warning(
                    f"Gemini {operation} timed out (Attempt {attempt + 1}/{self.max_retries})",
                    extra={"timeout": self.timeout},
                )
            except Exception as e:
                timed_out = False
                last_error = e
                LOGGER.warning(
                    f"Gemini API error (Attempt {attempt + 1}/{self.max_retries}): {e}"
                )

            if attempt < self.max_retries - 1:
                await asyncio.sleep(self.retry_delay * (2 ** attempt))

        if timed_out:
            raise APITimeoutError(
                f"Gemini {operation} timed out after {self.max_retries} attempts"
            ) from last_error

        LOGGER.error(f"Gemini {operation} failed after retries: {last_error}")
        raise APIClientError(f"Gemini {operation} failed: {last_error}") from last_error
