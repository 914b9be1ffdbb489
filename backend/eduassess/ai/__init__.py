"""AI provider abstraction and AI-assisted features."""
from .providers import (
    PROVIDER_CONFIGS,
    ProviderCredentials,
    GenerationResult,
    resolve_provider,
    generate_with_provider,
)

__all__ = [
    "PROVIDER_CONFIGS",
    "ProviderCredentials",
    "GenerationResult",
    "resolve_provider",
    "generate_with_provider",
]
