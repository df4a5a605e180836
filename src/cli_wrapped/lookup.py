"""Display names and canonical providers for model and provider ids."""

from __future__ import annotations

PROVIDER_DISPLAY = {
    "anthropic": "Anthropic",
    "openai": "OpenAI",
    "google": "Google",
    "google-vertex": "Google Vertex",
    "amazon-bedrock": "Amazon Bedrock",
    "azure": "Azure",
    "xai": "xAI",
    "mistral": "Mistral",
    "deepseek": "DeepSeek",
    "groq": "Groq",
    "openrouter": "OpenRouter",
    "github-copilot": "GitHub Copilot",
    "opencode": "OpenCode",
    "ollama": "Ollama",
}

MODEL_DISPLAY = {
    "claude": "Claude",
    "codex": "Codex",
    "opencode": "OpenCode",
    "claude-opus-4-1-20250805": "Claude Opus 4.1",
    "claude-opus-4-20250514": "Claude Opus 4",
    "claude-sonnet-4-5-20250929": "Claude Sonnet 4.5",
    "claude-sonnet-4-20250514": "Claude Sonnet 4",
    "claude-haiku-4-5-20251001": "Claude Haiku 4.5",
    "claude-3-7-sonnet-20250219": "Claude Sonnet 3.7",
    "claude-3-5-sonnet-20241022": "Claude Sonnet 3.5",
    "claude-3-5-haiku-20241022": "Claude Haiku 3.5",
    "gpt-5": "GPT-5",
    "gpt-5-codex": "GPT-5 Codex",
    "gpt-4.1": "GPT-4.1",
    "gpt-4o": "GPT-4o",
    "o3": "o3",
    "o4-mini": "o4-mini",
}

# Model id prefix -> provider id
MODEL_PROVIDER_PREFIXES = (
    ("claude", "anthropic"),
    ("gpt", "openai"),
    ("codex", "openai"),
    ("o1", "openai"),
    ("o3", "openai"),
    ("o4", "openai"),
    ("gemini", "google"),
    ("grok", "xai"),
    ("mistral", "mistral"),
    ("codestral", "mistral"),
    ("deepseek", "deepseek"),
)


def _strip_date_suffix(name: str) -> str:
    parts = name.rsplit("-", 1)
    if len(parts) == 2 and len(parts[1]) >= 8 and parts[1][:8].isdigit():
        return parts[0]
    return name


def get_model_display_name(model_id: str) -> str:
    """Return a readable model name, prettified from the id when unknown."""
    if model_id in MODEL_DISPLAY:
        return MODEL_DISPLAY[model_id]
    if not model_id.startswith("claude-"):
        return model_id

    # claude-sonnet-4-5-20250929 -> Claude Sonnet 4.5
    name = _strip_date_suffix(model_id[len("claude-"):])
    segs = name.rsplit("-", 2)
    if (len(segs) == 3 and segs[-1].isdigit() and len(segs[-1]) == 1
            and segs[-2].isdigit() and len(segs[-2]) == 1):
        return f"Claude {segs[0].replace('-', ' ').title()} {segs[-2]}.{segs[-1]}"
    return f"Claude {name.replace('-', ' ').title()}"


def get_model_provider(model_id: str) -> str:
    """Return the canonical provider id for a model, or "" when unknown."""
    # provider/model ids, as written by OpenRouter-style configs
    if "/" in model_id:
        return model_id.split("/", 1)[0]
    lowered = model_id.lower()
    for prefix, provider in MODEL_PROVIDER_PREFIXES:
        if lowered.startswith(prefix):
            return provider
    return ""


def get_provider_display_name(provider_id: str) -> str:
    """Return a readable provider name, or the raw id when unknown."""
    return PROVIDER_DISPLAY.get(provider_id, provider_id)
