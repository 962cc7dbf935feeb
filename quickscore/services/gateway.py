# quickscore/services/gateway.py

import base64
import binascii
import logging
from typing import Optional, Protocol, Sequence, Type, TypeVar

from google import genai
from google.genai import types
from pydantic import BaseModel, ValidationError

from quickscore.core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=BaseModel)


class GatewayError(Exception):
    """The model call failed or returned output that does not fit the schema."""


class ModelGateway(Protocol):
    async def generate(
        self,
        prompt: str,
        *,
        output_schema: Type[T],
        media: Sequence[str] = (),
        temperature: float = 0.2,
    ) -> T:
        ...

    async def health_check(self) -> dict:
        ...


def decode_image(image: str) -> bytes:
    """Decode a base64 payload, accepting data URLs as well."""
    if image.startswith("data:") and "," in image:
        image = image.split(",", 1)[1]
    try:
        return base64.b64decode("".join(image.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise GatewayError(f"Image payload is not valid base64: {e}") from e


class GeminiGateway:
    """
    A low-level wrapper for the Gemini API.

    Each generate() call is a single round trip: no retries, no rate limiting.
    The response is validated against the requested pydantic schema, so
    malformed model output never reaches the adapters.
    """
    def __init__(self, client: Optional[genai.Client] = None, model: Optional[str] = None):
        self._client = client
        self.model = model or settings.GEMINI_MODEL

    @property
    def client(self) -> genai.Client:
        # Built lazily so a missing key surfaces as a GatewayError per call
        if self._client is None:
            if not settings.GEMINI_API_KEY:
                raise GatewayError("GEMINI_API_KEY is not configured")
            self._client = genai.Client(api_key=settings.GEMINI_API_KEY)
        return self._client

    async def generate(
        self,
        prompt: str,
        *,
        output_schema: Type[T],
        media: Sequence[str] = (),
        temperature: float = 0.2,
    ) -> T:
        """
        Executes the prompt with optional images and returns a validated model.

        Args:
            prompt: The instruction text
            output_schema: Pydantic model class the response must satisfy
            media: Base64 encoded JPEG images, attached after the prompt
            temperature: Sampling temperature pinned by the calling adapter

        Raises:
            GatewayError: on transport failure, empty output or schema violation
        """
        contents = [prompt]
        contents.extend(
            types.Part.from_bytes(data=decode_image(image), mime_type="image/jpeg")
            for image in media
        )

        config = types.GenerateContentConfig(
            temperature=temperature,
            response_mime_type="application/json",
            response_schema=output_schema,
        )

        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=contents,
                config=config,
            )
        except GatewayError:
            raise
        except Exception as e:
            raise GatewayError(f"{type(e).__name__}: {e}") from e

        raw_text = response.text
        if not raw_text:
            raise GatewayError("Model returned an empty response")

        try:
            return output_schema.model_validate_json(raw_text)
        except ValidationError as e:
            raise GatewayError(
                f"Model output failed {output_schema.__name__} validation: {e.error_count()} errors"
            ) from e

    async def health_check(self) -> dict:
        """Simple connectivity check."""
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents="Ping",
                config=types.GenerateContentConfig(max_output_tokens=5),
            )
            return {"status": "healthy", "model": self.model, "response": response.text}
        except Exception as e:
            logger.warning("Gemini health check failed: %s", e)
            return {"status": "unhealthy", "model": self.model, "error": str(e)}
