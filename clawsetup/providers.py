"""Catalog of AI providers the installer knows how to configure."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from clawsetup.errors import ConfigError


@dataclass(frozen=True)
class ModelDefinition:
    """Single model offered by a provider."""

    id: str
    name: str
    context_window: int


@dataclass(frozen=True)
class AuthModeDefinition:
    """
    One way of authenticating to a provider.

    ``mode`` is one of ``api_key``, ``oauth``, ``token``, ``aws_sdk`` or
    ``cli_sync``. Browser-based modes are completed by the service CLI, not
    by the installer.
    """

    mode: str
    name: str
    env_var: Optional[str] = None
    cli_tool: Optional[str] = None
    browser_auth: bool = False


@dataclass(frozen=True)
class ProviderDefinition:
    """Provider with its models and supported auth modes."""

    id: str
    name: str
    models: Tuple[ModelDefinition, ...]
    auth_modes: Tuple[AuthModeDefinition, ...]

    def model_ids(self) -> Tuple[str, ...]:
        return tuple(model.id for model in self.models)


def _api_key(env_var: str, name: str = "API Key") -> AuthModeDefinition:
    return AuthModeDefinition(mode="api_key", name=name, env_var=env_var)


SUPPORTED_PROVIDERS: Tuple[ProviderDefinition, ...] = (
    ProviderDefinition(
        id="anthropic",
        name="Anthropic",
        models=(
            ModelDefinition("anthropic/claude-sonnet-4-5", "Claude Sonnet 4.5", 200000),
            ModelDefinition("anthropic/claude-opus-4-5", "Claude Opus 4.5", 200000),
            ModelDefinition("anthropic/claude-haiku-4-5", "Claude Haiku 4.5", 200000),
            ModelDefinition("anthropic/claude-3-5-sonnet-20240620", "Claude 3.5 Sonnet", 200000),
        ),
        auth_modes=(
            _api_key("ANTHROPIC_API_KEY"),
            AuthModeDefinition("oauth", "Claude Code OAuth", cli_tool="claude", browser_auth=True),
            AuthModeDefinition("token", "OAuth Token", env_var="ANTHROPIC_OAUTH_TOKEN"),
        ),
    ),
    ProviderDefinition(
        id="openai",
        name="OpenAI",
        models=(
            ModelDefinition("openai/gpt-4o", "GPT-4o", 128000),
            ModelDefinition("openai/gpt-4-turbo", "GPT-4 Turbo", 128000),
            ModelDefinition("openai/gpt-4", "GPT-4", 8192),
            ModelDefinition("openai/gpt-3.5-turbo", "GPT-3.5 Turbo", 16385),
        ),
        auth_modes=(_api_key("OPENAI_API_KEY"),),
    ),
    ProviderDefinition(
        id="openai-codex",
        name="OpenAI Codex (Preview)",
        models=(
            ModelDefinition("openai-codex/gpt-5.1-codex", "GPT-5.1 Codex", 272000),
            ModelDefinition("openai-codex/gpt-5.2", "GPT-5.2", 272000),
        ),
        auth_modes=(
            AuthModeDefinition("oauth", "Codex CLI OAuth", cli_tool="codex", browser_auth=True),
        ),
    ),
    ProviderDefinition(
        id="ollama",
        name="Ollama (Local)",
        models=(
            ModelDefinition("ollama/llama3", "Llama 3", 8192),
            ModelDefinition("ollama/mistral", "Mistral", 8192),
            ModelDefinition("ollama/phi3", "Phi-3", 128000),
            ModelDefinition("ollama/gemma", "Gemma", 8192),
        ),
        auth_modes=(_api_key("OLLAMA_API_KEY", name="No Auth (Local)"),),
    ),
    ProviderDefinition(
        id="google",
        name="Google Gemini",
        models=(
            ModelDefinition("google/gemini-3-pro", "Gemini 3 Pro", 1048576),
            ModelDefinition("google/gemini-3-flash", "Gemini 3 Flash", 1048576),
            ModelDefinition("google/gemini-pro-1.5", "Gemini 1.5 Pro", 2000000),
        ),
        auth_modes=(
            _api_key("GEMINI_API_KEY"),
            AuthModeDefinition("cli_sync", "gcloud ADC", cli_tool="gcloud"),
            AuthModeDefinition("oauth", "Gemini CLI OAuth", cli_tool="gemini", browser_auth=True),
        ),
    ),
    ProviderDefinition(
        id="deepseek",
        name="DeepSeek",
        models=(
            ModelDefinition("deepseek/deepseek-reasoner", "DeepSeek R1", 128000),
            ModelDefinition("deepseek/deepseek-chat", "DeepSeek V3", 163840),
        ),
        auth_modes=(_api_key("DEEPSEEK_API_KEY"),),
    ),
    ProviderDefinition(
        id="groq",
        name="Groq",
        models=(
            ModelDefinition("groq/llama3-70b-8192", "Llama 3 70B", 8192),
            ModelDefinition("groq/mixtral-8x7b-32768", "Mixtral 8x7B", 32768),
        ),
        auth_modes=(_api_key("GROQ_API_KEY"),),
    ),
    ProviderDefinition(
        id="xai",
        name="xAI (Grok)",
        models=(
            ModelDefinition("xai/grok-4", "Grok 4", 256000),
            ModelDefinition("xai/grok-3-latest", "Grok 3 Latest", 131072),
            ModelDefinition("xai/grok-3-mini-latest", "Grok 3 Mini Latest", 131072),
        ),
        auth_modes=(_api_key("XAI_API_KEY"),),
    ),
    ProviderDefinition(
        id="amazon-bedrock",
        name="Amazon Bedrock",
        models=(
            ModelDefinition("amazon-bedrock/amazon.nova-pro-v1:0", "Nova Pro", 300000),
            ModelDefinition("amazon-bedrock/amazon.nova-lite-v1:0", "Nova Lite", 300000),
        ),
        auth_modes=(
            AuthModeDefinition("aws_sdk", "AWS SDK (Default)"),
            AuthModeDefinition("token", "AWS Bearer Token", env_var="AWS_BEARER_TOKEN_BEDROCK"),
        ),
    ),
    ProviderDefinition(
        id="mistral",
        name="Mistral AI",
        models=(
            ModelDefinition("mistral/mistral-large-latest", "Mistral Large", 32768),
            ModelDefinition("mistral/mistral-small-latest", "Mistral Small", 32768),
        ),
        auth_modes=(_api_key("MISTRAL_API_KEY"),),
    ),
    ProviderDefinition(
        id="zai",
        name="Zhipu AI (GLM)",
        models=(
            ModelDefinition("zai/glm-4.7", "GLM-4.7", 204800),
            ModelDefinition("zai/glm-4.6", "GLM-4.6", 204800),
        ),
        auth_modes=(_api_key("ZAI_API_KEY"),),
    ),
    ProviderDefinition(
        id="minimax",
        name="Minimax",
        models=(
            ModelDefinition("minimax/MiniMax-M2.1", "MiniMax M2.1", 128000),
            ModelDefinition("minimax/MiniMax-M2", "MiniMax M2", 128000),
        ),
        auth_modes=(
            _api_key("MINIMAX_API_KEY"),
            AuthModeDefinition("oauth", "MiniMax CLI OAuth", cli_tool="minimax", browser_auth=True),
        ),
    ),
    ProviderDefinition(
        id="openrouter",
        name="OpenRouter",
        models=(),
        auth_modes=(_api_key("OPENROUTER_API_KEY"),),
    ),
)


def find_provider(provider_id: str) -> ProviderDefinition:
    """Look up a provider by id."""
    for provider in SUPPORTED_PROVIDERS:
        if provider.id == provider_id:
            return provider
    raise ConfigError(f"Unsupported provider: {provider_id}")


def default_model(provider_id: str) -> str:
    """Return the first catalog model for a provider."""
    provider = find_provider(provider_id)
    if not provider.models:
        raise ConfigError(f"Provider {provider_id} has no default model; pass one explicitly")
    return provider.models[0].id
