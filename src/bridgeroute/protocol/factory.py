"""Protocol handle factory.

Handles are constructed explicitly by the caller and owned by it: one per
process or per session, reusable across quoting sessions. initialize() never
caches, so two calls give two independent handles.

Backends register a factory under a name; "simulated" is always available.
"""

import logging
from typing import Callable, Optional

from bridgeroute.config import SUPPORTED_NETWORKS, Settings, get_settings
from bridgeroute.errors import ConfigurationError, NetworkNotSupportedError
from bridgeroute.protocol.base import ProtocolHandle

logger = logging.getLogger(__name__)

SIMULATED_BACKEND = "simulated"

BackendFactory = Callable[[str, Settings], ProtocolHandle]

_backends: dict[str, BackendFactory] = {}


def _create_simulated(network: str, settings: Settings) -> ProtocolHandle:
    from bridgeroute.protocol.simulated import SimulatedProtocol

    return SimulatedProtocol(network=network)


def register_backend(name: str, factory: BackendFactory) -> None:
    """Register a protocol backend factory under a name."""
    key = name.lower()
    if key in _backends:
        logger.warning(f"Replacing protocol backend '{key}'")
    _backends[key] = factory


def get_backends() -> list[str]:
    """Names of the registered protocol backends."""
    return sorted(_backends)


def initialize(
    network: Optional[str] = None,
    backend: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> ProtocolHandle:
    """Construct a protocol handle for a network.

    Args:
        network: Mainnet, Testnet or Devnet (defaults to settings.network)
        backend: Registered backend name (defaults to settings.protocol_backend)
        settings: Settings to read defaults and dry-run mode from

    Raises:
        NetworkNotSupportedError: If the network is unknown
        ConfigurationError: If the backend is unknown, or is not the simulated
            backend while dry-run mode is on
    """
    settings = settings or get_settings()
    network = network or settings.network
    backend = (backend or settings.protocol_backend).lower()

    canonical = next((n for n in SUPPORTED_NETWORKS if n.lower() == network.lower()), None)
    if canonical is None:
        raise NetworkNotSupportedError(network, {"supported": list(SUPPORTED_NETWORKS)})

    factory = _backends.get(backend)
    if factory is None:
        raise ConfigurationError(
            f"Unknown protocol backend '{backend}'",
            {"available": get_backends()},
            operation="initialize",
        )

    if settings.dry_run and backend != SIMULATED_BACKEND:
        raise ConfigurationError(
            f"Protocol backend '{backend}' is not allowed in dry-run mode",
            operation="initialize",
        )

    try:
        handle = factory(canonical, settings)
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(
            f"Failed to initialize protocol backend '{backend}': {type(e).__name__}: {e}",
            operation="initialize",
        ) from e

    logger.info(f"Initialized {handle!r} (backend={backend}, dry_run={settings.dry_run})")
    return handle


register_backend(SIMULATED_BACKEND, _create_simulated)
