"""
Machine Translation Providers

This module contains the provider implementations used by the translate
helper and the batch job:
- MyMemory (public HTTP API, primary)

Browser-automation scraping of a web translator is not implemented; a
deployment that needs it should wrap it in a TranslationProvider subclass
and register it in PROVIDERS.

Each provider takes a text and a target culture and returns the translated text.
"""

from typing import Any, Dict, Optional

import httpx

from comax import cultures
from comax.config import MYMEMORY_API_URL
from comax.core.exceptions import TranslationError
from comax.logger import get_logger

logger = get_logger(__name__)


def get_httpx_timeout(timeout_config: Any) -> httpx.Timeout:
    """
    Convert timeout configuration to httpx.Timeout object.

    Args:
        timeout_config: Either a number (read timeout) or a dict with
            connect, write, read, pool keys

    Returns:
        httpx.Timeout object
    """
    if isinstance(timeout_config, dict):
        return httpx.Timeout(
            connect=timeout_config.get('connect', 10.0),
            write=timeout_config.get('write', 30.0),
            read=timeout_config.get('read', 30.0),
            pool=timeout_config.get('pool', 10.0),
        )
    timeout_value = float(timeout_config) if timeout_config else 30.0
    return httpx.Timeout(
        connect=10.0,
        write=30.0,
        read=timeout_value,
        pool=10.0,
    )


def handle_http_error(e: httpx.HTTPStatusError, provider: str):
    """Raise a TranslationError carrying the provider's error detail."""
    status_code = e.response.status_code
    try:
        error_json = e.response.json()
        if isinstance(error_json, dict):
            error_text = str(error_json.get("responseDetails") or error_json.get("error") or error_json)
        else:
            error_text = str(error_json)
    except ValueError:
        error_text = e.response.text[:500]

    raise TranslationError(
        f"{provider} API error ({status_code}): {error_text}",
        code="provider_http_error",
        details={"status_code": status_code},
    ) from e


class TranslationProvider:
    """Base class for machine translation providers."""

    name = "base"

    def translate(self, text: str, target_culture: str,
                  source_culture: str = cultures.SOURCE_CULTURE) -> str:
        """
        Translate text into the target culture.

        Raises:
            TranslationError: If the text is empty or the provider fails
        """
        raise NotImplementedError


class MyMemoryProvider(TranslationProvider):
    """MyMemory public API: GET ?q=<text>&langpair=<src>|<dst>."""

    name = "mymemory"

    def __init__(self, api_url: str = MYMEMORY_API_URL, timeout: Any = 30,
                 email: str = "", transport: Optional[httpx.BaseTransport] = None):
        self.api_url = api_url or MYMEMORY_API_URL
        self.timeout = timeout
        self.email = email
        self.transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=get_httpx_timeout(self.timeout), transport=self.transport)

    def translate(self, text: str, target_culture: str,
                  source_culture: str = cultures.SOURCE_CULTURE) -> str:
        if not text or not text.strip():
            raise TranslationError("Text is empty", code="empty_text")

        params = {
            "q": text,
            "langpair": f"{cultures.get_mt_code(source_culture)}|{cultures.get_mt_code(target_culture)}",
        }
        if self.email:
            params["de"] = self.email

        logger.debug(f"Calling MyMemory API: {params['langpair']} ({len(text)} chars)")

        try:
            with self._client() as client:
                response = client.get(self.api_url, params=params, headers={"Accept": "application/json"})
                response.raise_for_status()
                result = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"MyMemory API HTTP error: {e.response.status_code} - {e.response.text[:200]}")
            handle_http_error(e, "MyMemory")
        except httpx.TimeoutException as e:
            raise TranslationError("MyMemory API request timeout", code="timeout") from e
        except httpx.HTTPError as e:
            logger.error(f"MyMemory API call failed: {e}")
            raise TranslationError(f"MyMemory API call failed: {e}") from e
        except ValueError as e:
            raise TranslationError(f"MyMemory API returned invalid JSON: {e}") from e

        translated = (result.get("responseData") or {}).get("translatedText")
        if result.get("responseStatus") == 200 and translated:
            return translated

        raise TranslationError(
            f"Translation failed: {result.get('responseDetails') or 'unexpected response'}",
            details={"response_status": result.get("responseStatus")},
        )


PROVIDERS = {
    MyMemoryProvider.name: MyMemoryProvider,
}


def get_provider(translation_config: Optional[Dict[str, Any]] = None,
                 transport: Optional[httpx.BaseTransport] = None) -> TranslationProvider:
    """
    Build the provider named by the `translation` config block.

    Raises:
        TranslationError: If the provider name is unknown
    """
    translation_config = translation_config or {}
    name = translation_config.get("provider", MyMemoryProvider.name)
    provider_cls = PROVIDERS.get(name)
    if provider_cls is None:
        raise TranslationError(f"Unknown translation provider: {name}", code="unknown_provider")

    return provider_cls(
        api_url=translation_config.get("api_url", MYMEMORY_API_URL),
        timeout=translation_config.get("timeout", 30),
        email=translation_config.get("email", ""),
        transport=transport,
    )
