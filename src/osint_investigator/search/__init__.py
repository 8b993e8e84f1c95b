from typing import Literal

from .query_generator import QueryGenerator, format_phone, query_params_from_search

SearchProviderType = Literal["tavily", "google"]


def create_search_provider(provider: SearchProviderType, **kwargs):
    """Factory function to create search providers."""
    from osint_investigator.core.errors import ProviderNotConfiguredError

    if provider == "tavily":
        from .tavily_client import TavilyProvider

        return TavilyProvider(**kwargs)

    if provider == "google":
        from .google_cse import GoogleCustomSearchProvider

        return GoogleCustomSearchProvider(**kwargs)

    raise ProviderNotConfiguredError(f"Unsupported search provider: {provider}")


__all__ = [
    "QueryGenerator",
    "SearchProviderType",
    "create_search_provider",
    "format_phone",
    "query_params_from_search",
]
