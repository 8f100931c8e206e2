from __future__ import annotations

from types import SimpleNamespace

import pytest

from driveflow.error_codes import ErrorCode
from driveflow.exceptions import ProviderError
from driveflow.providers.llm.base import Message
from driveflow.providers.llm.gemini import GeminiProvider, build_contents, extract_candidate_text


def _response(*texts: str) -> SimpleNamespace:
    parts = [SimpleNamespace(text=t) for t in texts]
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=parts))])


def test_build_contents_splits_system_text() -> None:
    system, contents = build_contents(
        [
            Message(role="system", content="Be brief."),
            Message(role="user", content="Summarize."),
            Message(role="assistant", content="Ok."),
        ]
    )
    assert system == "Be brief."
    assert contents == [
        {"role": "user", "parts": [{"text": "Summarize."}]},
        {"role": "model", "parts": [{"text": "Ok."}]},
    ]


def test_extract_candidate_text_joins_parts() -> None:
    assert extract_candidate_text(_response("Key ", "points.")) == "Key points."
    assert extract_candidate_text(SimpleNamespace(candidates=[])) == ""


@pytest.mark.asyncio
async def test_complete_passes_generation_config(monkeypatch) -> None:
    seen: dict = {}

    def fake_generate(self, contents, *, system_instruction, generation_config):
        seen.update(contents=contents, system=system_instruction, config=generation_config)
        return _response("Summary.")

    monkeypatch.setattr(GeminiProvider, "_generate_sync", fake_generate)
    provider = GeminiProvider(api_key="k", model="gemini-2.5-flash")

    text = await provider.complete([Message(role="user", content="hi")], temperature=0.4, max_tokens=8192)

    assert text == "Summary."
    assert seen["system"] is None
    assert seen["config"] == {"temperature": 0.4, "max_output_tokens": 8192}


@pytest.mark.asyncio
async def test_complete_wraps_sdk_errors_and_empty_replies(monkeypatch) -> None:
    def boom(self, contents, **kwargs):  # noqa: ARG001
        raise RuntimeError("429 Resource has been exhausted")

    monkeypatch.setattr(GeminiProvider, "_generate_sync", boom)
    provider = GeminiProvider(api_key="k", model="gemini-2.5-pro")
    with pytest.raises(ProviderError) as excinfo:
        await provider.complete([Message(role="user", content="hi")])
    assert excinfo.value.error_code == ErrorCode.LLM_FAILED
    assert "Resource has been exhausted" in str(excinfo.value)

    monkeypatch.setattr(GeminiProvider, "_generate_sync", lambda self, contents, **kw: _response())
    with pytest.raises(ProviderError) as excinfo:
        await provider.complete([Message(role="user", content="hi")])
    assert excinfo.value.error_code == ErrorCode.LLM_EMPTY_RESPONSE


def test_requires_key_and_model() -> None:
    with pytest.raises(ValueError):
        GeminiProvider(api_key="", model="gemini-2.5-flash")
    with pytest.raises(ValueError):
        GeminiProvider(api_key="k", model="")
