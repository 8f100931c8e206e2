"""Analysis model catalog."""

from __future__ import annotations

from dataclasses import dataclass

GEMINI = "gemini"
CLAUDE = "claude"


@dataclass(frozen=True)
class ModelInfo:
    id: str
    name: str
    family: str
    description: str
    # Publisher model id on Vertex AI (Claude family only).
    vertex_id: str | None = None


AVAILABLE_MODELS: tuple[ModelInfo, ...] = (
    ModelInfo("gemini-2.5-flash", "Gemini 2.5 Flash", GEMINI, "Fast & cost-effective"),
    ModelInfo("gemini-2.5-pro", "Gemini 2.5 Pro", GEMINI, "Most capable Gemini"),
    ModelInfo(
        "claude-sonnet-4", "Claude Sonnet 4", CLAUDE, "Balanced performance", "claude-sonnet-4@20250514"
    ),
    ModelInfo("claude-opus-4", "Claude Opus 4", CLAUDE, "Most capable Claude", "claude-opus-4@20250514"),
)

_BY_ID = {m.id: m for m in AVAILABLE_MODELS}


def get_model(model_id: str) -> ModelInfo | None:
    return _BY_ID.get(str(model_id or "").strip())


def is_known_model(model_id: str) -> bool:
    return get_model(model_id) is not None


def model_family(model_id: str) -> str:
    """Route a model id to its provider family; unknown ids go by prefix."""
    info = get_model(model_id)
    if info is not None:
        return info.family
    return CLAUDE if str(model_id or "").strip().lower().startswith("claude") else GEMINI


def vertex_model_id(model_id: str) -> str:
    info = get_model(model_id)
    if info is not None and info.vertex_id:
        return info.vertex_id
    return str(model_id or "").strip()
