from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest

from greenfarm.config import Settings
from greenfarm.models.enums import ActionEnum, GenerationErrorKind, SoilTypeEnum
from greenfarm.services.content_gateway import FALLBACK_SCENARIO, ContentGateway
from greenfarm.services.content_generator import GenerationError
from greenfarm.services.gemini_generator import GeminiGenerator, from_data_url, to_data_url
from greenfarm.services.retry import RetryPolicy
from tests.conftest import WHEAT, SleepRecorder, make_stats, scenario_payload


def gemini_settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "gemini_api_key": "test-key",
        "gemini_base_url": "https://gemini.test/v1beta",
    }
    values.update(overrides)
    return Settings(**values)


def text_response(payload: dict[str, object]) -> httpx.Response:
    return httpx.Response(
        200,
        json={"candidates": [{"content": {"parts": [{"text": json.dumps(payload, ensure_ascii=False)}]}}]},
    )


def generator_with(handler: Callable[[httpx.Request], httpx.Response], **overrides: object) -> GeminiGenerator:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GeminiGenerator(gemini_settings(**overrides), client)


@pytest.mark.asyncio
async def test_scenario_request_carries_key_and_schema() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return text_response(scenario_payload(1))

    generator = generator_with(handler)
    payload = await generator.scenario([], make_stats())

    assert payload["narrative"] == "Scenario narrative 1"
    request = seen[0]
    assert request.url.path == "/v1beta/models/gemini-2.5-flash:generateContent"
    assert request.headers["x-goog-api-key"] == "test-key"
    body = json.loads(request.content)
    assert body["generationConfig"]["responseMimeType"] == "application/json"
    assert "data" in body["generationConfig"]["responseSchema"]["properties"]
    await generator.http_client.aclose()


@pytest.mark.asyncio
async def test_http_429_is_retryable_rate_limit() -> None:
    generator = generator_with(lambda request: httpx.Response(429, json={"error": {"message": "slow down"}}))

    with pytest.raises(GenerationError) as exc_info:
        await generator.outcome(make_stats(), FALLBACK_SCENARIO, ActionEnum.irrigate)

    assert exc_info.value.kind == GenerationErrorKind.rate_limited
    assert exc_info.value.retryable is True
    await generator.http_client.aclose()


@pytest.mark.asyncio
async def test_resource_exhausted_status_is_retryable() -> None:
    generator = generator_with(
        lambda request: httpx.Response(
            400,
            json={"error": {"status": "RESOURCE_EXHAUSTED", "message": "quota"}},
        )
    )

    with pytest.raises(GenerationError) as exc_info:
        await generator.tips(make_stats(), [])

    assert exc_info.value.retryable is True
    await generator.http_client.aclose()


@pytest.mark.asyncio
async def test_server_error_is_not_retryable() -> None:
    generator = generator_with(lambda request: httpx.Response(500, text="internal"))

    with pytest.raises(GenerationError) as exc_info:
        await generator.scenario([], make_stats())

    assert exc_info.value.kind == GenerationErrorKind.unavailable
    assert exc_info.value.retryable is False
    await generator.http_client.aclose()


@pytest.mark.asyncio
async def test_missing_api_key_fails_without_calling_upstream() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={})

    generator = generator_with(handler, gemini_api_key="")

    with pytest.raises(GenerationError) as exc_info:
        await generator.scenario([], make_stats())

    assert exc_info.value.kind == GenerationErrorKind.not_configured
    assert calls == []
    await generator.http_client.aclose()


@pytest.mark.asyncio
async def test_non_json_text_is_malformed() -> None:
    generator = generator_with(
        lambda request: httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "not json"}]}}]})
    )

    with pytest.raises(GenerationError) as exc_info:
        await generator.scenario([], make_stats())

    assert exc_info.value.kind == GenerationErrorKind.malformed
    await generator.http_client.aclose()


@pytest.mark.asyncio
async def test_create_image_returns_data_url() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"predictions": [{"bytesBase64Encoded": "QUJD", "mimeType": "image/jpeg"}]})

    generator = generator_with(handler)
    url = await generator.image(FALLBACK_SCENARIO, None, "A new farm is established.", WHEAT, SoilTypeEnum.silty)

    assert url == "data:image/jpeg;base64,QUJD"
    assert seen[0].url.path.endswith("imagen-4.0-generate-001:predict")
    await generator.http_client.aclose()


@pytest.mark.asyncio
async def test_edit_image_sends_previous_image_inline() -> None:
    seen: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(
            200,
            json={
                "candidates": [
                    {
                        "content": {
                            "parts": [
                                {"text": "Here is the farm"},
                                {"inlineData": {"mimeType": "image/png", "data": "TkVX"}},
                            ]
                        }
                    }
                ]
            },
        )

    generator = generator_with(handler)
    url = await generator.image(
        FALLBACK_SCENARIO,
        "data:image/jpeg;base64,T0xE",
        "Rain soaked the field.",
        WHEAT,
        SoilTypeEnum.silty,
    )

    assert url == "data:image/png;base64,TkVX"
    inline = seen[0]["contents"][0]["parts"][0]["inlineData"]  # type: ignore[index]
    assert inline == {"mimeType": "image/jpeg", "data": "T0xE"}
    await generator.http_client.aclose()


@pytest.mark.asyncio
async def test_gateway_retries_rate_limited_generator_then_succeeds() -> None:
    responses = iter(
        [
            httpx.Response(429, json={"error": {"status": "RESOURCE_EXHAUSTED", "message": "quota"}}),
            text_response(scenario_payload(7)),
        ]
    )
    generator = generator_with(lambda request: next(responses))
    sleeper = SleepRecorder()
    gateway = ContentGateway(generator, RetryPolicy(sleep=sleeper))

    scenario = await gateway.generate_scenario([], make_stats())

    assert scenario.narrative == "Scenario narrative 7"
    assert sleeper.delays == [2.0]
    await generator.http_client.aclose()


def test_data_url_helpers() -> None:
    assert to_data_url("QUJD") == "data:image/jpeg;base64,QUJD"
    assert from_data_url("data:image/png;base64,QUJD") == ("image/png", "QUJD")
    assert from_data_url("QUJD") == ("image/jpeg", "QUJD")
