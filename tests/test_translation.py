from __future__ import annotations

import httpx
import pytest

from comax.core import database
from comax.core.exceptions import TranslationError
from comax.translation.batch import translate_missing
from comax.translation.providers import MyMemoryProvider, TranslationProvider, get_provider


def _provider(handler) -> MyMemoryProvider:
    return MyMemoryProvider(transport=httpx.MockTransport(handler))


def test_mymemory_sends_langpair_and_reads_translated_text() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        return httpx.Response(200, json={"responseStatus": 200, "responseData": {"translatedText": "Hello"}})

    assert _provider(handler).translate("שלום", "en-US") == "Hello"
    assert seen == {"q": "שלום", "langpair": "he|en"}


def test_mymemory_non_200_response_status_is_an_error() -> None:
    def handler(request):
        return httpx.Response(200, json={"responseStatus": 429, "responseDetails": "QUOTA EXCEEDED",
                                         "responseData": {"translatedText": ""}})

    with pytest.raises(TranslationError, match="QUOTA EXCEEDED"):
        _provider(handler).translate("שלום", "ro-RO")


def test_mymemory_http_error() -> None:
    with pytest.raises(TranslationError) as excinfo:
        _provider(lambda request: httpx.Response(503, text="down")).translate("שלום", "th-TH")
    assert excinfo.value.details["status_code"] == 503


def test_empty_text_is_rejected_without_request() -> None:
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(TranslationError):
        _provider(handler).translate("   ", "en-US")


def test_get_provider_from_config() -> None:
    provider = get_provider({"provider": "mymemory", "api_url": "https://mt.example/get", "timeout": 5})
    assert isinstance(provider, MyMemoryProvider)
    assert provider.api_url == "https://mt.example/get"

    with pytest.raises(TranslationError):
        get_provider({"provider": "nope"})


class FakeProvider(TranslationProvider):
    name = "fake"

    def __init__(self, fail_on=()):
        self.calls = []
        self.fail_on = set(fail_on)

    def translate(self, text, target_culture, source_culture="he-IL"):
        self.calls.append((text, target_culture))
        if text in self.fail_on:
            raise TranslationError("provider refused")
        return f"{target_culture}:{text}"


def test_batch_fills_missing_and_blank_targets_only(seed, session) -> None:
    seed(
        ("APP1", "he-IL", "greet", "שלום"),
        ("APP1", "he-IL", "bye", "להתראות"),
        ("APP1", "en-US", "greet", "Hello"),
        ("APP1", "en-US", "bye", "  "),
    )
    provider = FakeProvider()
    sleeps = []

    result = translate_missing(["en-US", "ro-RO"], session, provider, delay_seconds=0.1, sleep=sleeps.append)

    assert result.success
    assert (result.translated, result.skipped, result.errors) == (3, 1, 0)
    assert ("שלום", "en-US") not in provider.calls
    assert database.find_resource("APP1", "en-US", "bye")["resource_value"] == "en-US:להתראות"
    assert database.find_resource("APP1", "ro-RO", "greet")["resource_value"] == "ro-RO:שלום"
    assert sleeps == [0.1, 0.1, 0.1]


def test_batch_counts_provider_failures_and_continues(seed, session) -> None:
    seed(("APP1", "he-IL", "a", "טוב"), ("APP1", "he-IL", "b", "רע"))

    result = translate_missing(["en-US"], session, FakeProvider(fail_on={"טוב"}), delay_seconds=0)

    assert not result.success
    assert (result.translated, result.errors) == (1, 1)
    assert result.error_messages == ["Failed to translate a to en-US: provider refused"]


def test_batch_without_source_records(db_file, session) -> None:
    result = translate_missing(["en-US"], session, FakeProvider(), delay_seconds=0)

    assert not result.success
    assert result.error_messages == ["No he-IL translations found"]


def test_batch_stops_when_cancelled(seed, session) -> None:
    seed(("APP1", "he-IL", "a", "א"), ("APP1", "he-IL", "b", "ב"))
    progress_updates = []

    def on_progress(progress):
        progress_updates.append(progress.to_dict())
        return True

    result = translate_missing(["en-US"], session, FakeProvider(), delay_seconds=0,
                               progress_callback=on_progress)

    assert result.cancelled
    assert result.translated == 1
    assert progress_updates[-1]["phase"] == "cancelled"
