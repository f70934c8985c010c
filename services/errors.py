# services/errors.py


class ProviderError(Exception):
    """An upstream data provider failed or returned an unusable payload."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message


class ProviderNotConfigured(ProviderError):
    """Credentials for the provider are not set."""

    def __init__(self, provider: str, env_var: str):
        super().__init__(provider, f"Missing {env_var}")
        self.env_var = env_var


class AggregationError(Exception):
    """An aggregator produced nothing usable."""


class TranslationUnavailable(Exception):
    """No AI provider is configured or every configured provider failed."""


class TranslationNotConfigured(TranslationUnavailable):
    """Neither GEMINI_API_KEY nor OPENAI_API_KEY is set."""
