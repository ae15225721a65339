"""Application configuration.

AppConfig is a frozen dataclass built once per compile from the ``App`` node.
``serve()`` and the CLI may override host and port.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from trellis.errors import ConfigurationError

if TYPE_CHECKING:
    from trellis.middleware.cors import CORSConfig

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 6969


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Server configuration. Immutable after creation.

    All fields have defaults. An ``App`` node overrides what it declares::

        App(..., port=3000, cors=True)
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    # CORS
    cors_enabled: bool = False
    cors_options: CORSConfig | None = None


def config_from_app_props(port: int | None, cors: Any) -> AppConfig:
    """Build an AppConfig from ``App`` node properties.

    ``cors`` may be ``True`` (permissive defaults), a ``CORSConfig``,
    or a mapping of ``CORSConfig`` field names. Falsy disables CORS.
    """
    from trellis.middleware.cors import CORSConfig

    if port is not None and (not isinstance(port, int) or isinstance(port, bool)):
        msg = f"App port must be an integer, got {port!r}"
        raise ConfigurationError(msg)

    options: CORSConfig | None
    if not cors:
        options = None
    elif cors is True:
        options = CORSConfig()
    elif isinstance(cors, CORSConfig):
        options = cors
    elif isinstance(cors, Mapping):
        try:
            options = CORSConfig.from_mapping(cors)
        except TypeError as exc:
            msg = f"Invalid CORS options: {exc}"
            raise ConfigurationError(msg) from exc
    else:
        msg = f"App cors must be a bool, CORSConfig, or mapping, got {type(cors).__name__}"
        raise ConfigurationError(msg)

    return AppConfig(
        port=port or DEFAULT_PORT,
        cors_enabled=options is not None,
        cors_options=options,
    )
