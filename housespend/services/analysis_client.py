"""Receipt analysis using Claude Vision."""

import base64
import json
import logging

import anthropic
import httpx
from pydantic import ValidationError

from housespend.config import Settings, get_settings
from housespend.schemas.analysis import ReceiptAnalysis
from housespend.services.category_service import DEFAULT_CATEGORIES
from housespend.services.encryption import DecryptionError
from housespend.services.errors import (
    AnalysisProviderError,
    MissingApiKeyError,
    ProviderErrorCategory,
)
from housespend.services.llm_prompts import (
    RECEIPT_ANALYSIS_SYSTEM_PROMPT,
    STORE_NAME_PROMPT,
    get_receipt_analysis_prompt,
)
from housespend.services.secret_store import ANTHROPIC_API_KEY, SecretStore

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
STORE_NAME_MAX_TOKENS = 100


def strip_code_fences(text: str) -> str:
    """Remove a Markdown code fence wrapped around a model response."""
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    if text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def _response_text(message) -> str:
    """Concatenate the text blocks of a Messages API response."""
    return "".join(
        block.text for block in message.content if getattr(block, "type", None) == "text"
    )


def _source_block(data: bytes, media_type: str) -> dict:
    """Build the content block carrying the receipt file."""
    encoded = base64.standard_b64encode(data).decode("utf-8")
    if media_type == PDF_MEDIA_TYPE:
        return {
            "type": "document",
            "source": {"type": "base64", "media_type": PDF_MEDIA_TYPE, "data": encoded},
        }
    if media_type == "image/jpg":
        media_type = "image/jpeg"
    return {
        "type": "image",
        "source": {"type": "base64", "media_type": media_type, "data": encoded},
    }


class ReceiptAnalyzer:
    """Client for the external receipt analysis model."""

    def __init__(self, secret_store: SecretStore, settings: Settings | None = None) -> None:
        self.secret_store = secret_store
        self.settings = settings or get_settings()
        self.model = self.settings.anthropic_model

    def _get_api_key(self) -> str:
        """Decrypt the provider API key right before it is needed."""
        try:
            api_key = self.secret_store.get(ANTHROPIC_API_KEY)
        except DecryptionError as e:
            raise MissingApiKeyError(
                "The stored Anthropic API key cannot be decrypted. Configure it again."
            ) from e

        api_key = api_key or self.settings.anthropic_api_key
        if not api_key:
            raise MissingApiKeyError(
                "The Anthropic API key is not configured. Configure it before analyzing receipts."
            )
        return api_key

    def _client(self, api_key: str) -> anthropic.AsyncAnthropic:
        return anthropic.AsyncAnthropic(
            api_key=api_key,
            timeout=httpx.Timeout(self.settings.analysis_timeout_seconds, connect=10.0),
            max_retries=0,
        )

    async def analyze(self, image_data: bytes, media_type: str) -> ReceiptAnalysis:
        """Extract store, date, total and line items from a receipt.

        Args:
            image_data: Raw bytes of the image or PDF
            media_type: MIME type (e.g., "image/jpeg", "application/pdf")

        Returns:
            The parsed analysis. Individual line items that could not be
            parsed are returned as None.

        Raises:
            MissingApiKeyError: No API key is configured
            AnalysisProviderError: The provider call failed or its response was unusable
        """
        client = self._client(self._get_api_key())
        category_names = [name for name, _, _ in DEFAULT_CATEGORIES]

        try:
            message = await client.messages.create(
                model=self.model,
                max_tokens=self.settings.analysis_max_tokens,
                system=RECEIPT_ANALYSIS_SYSTEM_PROMPT,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            _source_block(image_data, media_type),
                            {"type": "text", "text": get_receipt_analysis_prompt(category_names)},
                        ],
                    }
                ],
            )
        except (anthropic.AuthenticationError, anthropic.PermissionDeniedError) as e:
            raise AnalysisProviderError(
                "The Anthropic API key is invalid or has expired.",
                ProviderErrorCategory.UNAUTHORIZED,
            ) from e
        except anthropic.RateLimitError as e:
            raise AnalysisProviderError(
                "Anthropic rejected the request due to rate limits. Try again in a few seconds.",
                ProviderErrorCategory.RATE_LIMITED,
            ) from e
        except anthropic.APITimeoutError as e:
            raise AnalysisProviderError(
                "The analysis service did not answer in time. Try again later.",
                ProviderErrorCategory.UNREACHABLE,
            ) from e
        except anthropic.APIConnectionError as e:
            raise AnalysisProviderError(
                "Could not reach the analysis service. Check your connection and try again.",
                ProviderErrorCategory.UNREACHABLE,
            ) from e
        except anthropic.APIStatusError as e:
            logger.error(f"Anthropic returned {e.status_code}: {e.message}")
            raise AnalysisProviderError(
                f"Anthropic returned an error {e.status_code}.",
                ProviderErrorCategory.BAD_GATEWAY,
            ) from e

        response_text = _response_text(message)
        try:
            payload = json.loads(strip_code_fences(response_text))
            if not isinstance(payload, dict):
                raise ValueError(f"Expected a JSON object, got {type(payload).__name__}")
            return ReceiptAnalysis.model_validate(payload)
        except (ValueError, ValidationError) as e:
            logger.error(f"Failed to parse analysis response: {e}")
            logger.error(f"Response was: {response_text}")
            raise AnalysisProviderError(
                "The analysis service returned an invalid response.",
                ProviderErrorCategory.MALFORMED_RESPONSE,
            ) from e

    async def extract_store_name(self, image_data: bytes, media_type: str) -> str | None:
        """Read only the store name. Never raises for provider problems; returns None."""
        try:
            client = self._client(self._get_api_key())
        except MissingApiKeyError:
            return None

        try:
            message = await client.messages.create(
                model=self.model,
                max_tokens=STORE_NAME_MAX_TOKENS,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            _source_block(image_data, media_type),
                            {"type": "text", "text": STORE_NAME_PROMPT},
                        ],
                    }
                ],
            )
        except anthropic.AnthropicError as e:
            logger.warning(f"Store name extraction failed: {e}")
            return None

        store_name = _response_text(message).strip().strip("\"'` \n\r")
        return store_name or None
