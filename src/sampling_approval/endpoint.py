"""Backend endpoint and credential resolution."""

import logging
from typing import Protocol, runtime_checkable

from .config import Settings
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


@runtime_checkable
class EndpointProvider(Protocol):
    """Source of the backend base URL and auth token.

    Host applications usually implement this on top of their own process
    bookkeeping; both calls may suspend.
    """

    async def get_endpoint_base(self) -> str | None: ...

    async def get_auth_token(self) -> str | None: ...


class SettingsEndpointProvider:
    """EndpointProvider backed by Settings (environment variables).

    Attributes:
        settings: Settings holding backend_url and secret_key
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()

    async def get_endpoint_base(self) -> str | None:
        return self.settings.backend_url or None

    async def get_auth_token(self) -> str | None:
        return self.settings.secret_key or None


async def resolve_endpoint(provider: EndpointProvider) -> tuple[str, str]:
    """Resolve backend base URL and auth token.

    Args:
        provider: Endpoint/credential provider

    Returns:
        Tuple of (base_url without trailing slash, auth token)

    Raises:
        ConfigurationError: If either value is unavailable
    """
    try:
        base_url = await provider.get_endpoint_base()
        token = await provider.get_auth_token()
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Endpoint provider failed: {e}") from e

    if not base_url:
        raise ConfigurationError("Backend URL not available")
    if not token:
        raise ConfigurationError("Backend auth token not available")

    return base_url.rstrip("/"), token
