from __future__ import annotations

import json

import httpx
import pytest

from taskwright.providers import LLMError, OllamaProvider, TextGenerationService


def _ndjson(*chunks: dict) -> bytes:
    return "\n".join(json.dumps(c) for c in chunks).encode() + b"\n"


def _provider(handler, model: str | None = "llama3.2:3b") -> OllamaProvider:  # noqa: ANN001
    return OllamaProvider(
        url="http://ollama.test",
        model=model,
        timeout_seconds=5.0,
        transport=httpx.MockTransport(handler),
    )


TAGS = {"models": [{"name": "tinyllama:1b", "size": 2 * 1024**3}, {"name": "llama3.2:3b"}]}


def test_implements_protocol() -> None:
    assert isinstance(_provider(lambda r: httpx.Response(200)), TextGenerationService)


def test_generate_streams_fragments_until_done() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, content=_ndjson(
            {"response": "ACTION: ", "done": False},
            {"response": "Create Project", "done": False},
            {"response": "", "done": True},
            {"response": "ignored", "done": False},
        ))

    fragments = list(_provider(handler).generate("prompt text"))

    assert fragments == ["ACTION: ", "Create Project"]
    assert bodies[0]["model"] == "llama3.2:3b"
    assert bodies[0]["prompt"] == "prompt text"
    assert bodies[0]["stream"] is True


def test_generate_error_chunk_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=_ndjson({"error": "model not found"}))

    with pytest.raises(LLMError, match="model not found"):
        list(_provider(handler).generate("p"))


def test_generate_http_failure_raises_llm_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, content=b"boom")

    with pytest.raises(LLMError):
        list(_provider(handler).generate("p"))


def test_generate_malformed_chunk_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"not json\n")

    with pytest.raises(LLMError, match="Malformed"):
        list(_provider(handler).generate("p"))


def test_model_auto_selected_from_tags() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/tags":
            return httpx.Response(200, json=TAGS)
        bodies.append(json.loads(request.content))
        return httpx.Response(200, content=_ndjson({"response": "ok", "done": True}))

    provider = _provider(handler, model=None)
    assert list(provider.generate("p")) == ["ok"]
    # "llama3" is preferred over list order.
    assert bodies[0]["model"] == "llama3.2:3b"
    assert provider.model == "llama3.2:3b"


def test_health_and_readiness() -> None:
    provider = _provider(lambda r: httpx.Response(200, json=TAGS), model=None)
    health = provider.check_health()

    assert health.reachable
    assert health.model_count == 2
    assert health.current_model == "llama3.2:3b"
    assert provider.is_ready()


def test_no_models_is_not_ready() -> None:
    provider = _provider(lambda r: httpx.Response(200, json={"models": []}), model=None)
    assert provider.check_health().reachable
    assert not provider.is_ready()


def test_configured_model_not_pulled_is_not_ready() -> None:
    provider = _provider(lambda r: httpx.Response(200, json=TAGS), model="mistral:7b")
    health = provider.check_health()

    assert health.reachable
    assert health.model_count == 2
    assert health.current_model is None
    assert "mistral:7b" in (health.error or "")
    assert not provider.is_ready()


@pytest.mark.parametrize("model,ready", [
    ("llama3.2:3b", True),
    ("mistral", True),
    ("mistral:latest", True),
    ("mistral:7b", False),
    ("llama3.2", False),
])
def test_untagged_model_means_latest(model: str, ready: bool) -> None:
    tags = {"models": [{"name": "mistral:latest"}, {"name": "llama3.2:3b"}]}
    provider = _provider(lambda r: httpx.Response(200, json=tags), model=model)
    assert provider.is_ready() is ready


def test_unreachable_server() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    provider = _provider(handler)
    health = provider.check_health()
    assert not health.reachable
    assert "refused" in (health.error or "")
    assert not provider.is_ready()
    assert provider.list_models() == []


def test_list_models_reports_size() -> None:
    models = _provider(lambda r: httpx.Response(200, json=TAGS)).list_models()
    assert [m.name for m in models] == ["tinyllama:1b", "llama3.2:3b"]
    assert models[0].size_gb == 2.0
    assert models[1].size_gb is None
