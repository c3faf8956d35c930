"""
Runtime configuration.

Values come from the process environment, optionally seeded from a
``.env`` file (current directory first, then ``~/.ethtutorial/.env``).
Numeric settings that fail to parse fall back to their defaults with a
warning rather than aborting.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .errors import ConfigError

logger = logging.getLogger(__name__)

ETHTUTORIAL_DIR = Path.home() / ".ethtutorial"
ETHTUTORIAL_ENV = ETHTUTORIAL_DIR / ".env"

DEFAULT_GAS_PRICE_MULTIPLIER = 1.1
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_PRODUCTION_NETWORKS = {"mainnet"}
_TEST_NETWORKS = {"sepolia", "goerli", "localhost"}


def _get_env(key: str, default: str = "") -> str:
    value = os.environ.get(key)
    return value if value else default


def _get_env_int(key: str, default: int) -> int:
    raw = _get_env(key)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid value for %s, using default %d", key, default)
        return default
    if value < 0:
        logger.warning("Invalid value for %s, using default %d", key, default)
        return default
    return value


def _get_env_float(key: str, default: float) -> float:
    raw = _get_env(key)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid value for %s, using default %f", key, default)
        return default


@dataclass
class Config:
    alchemy_api_key: str = ""
    ethereum_network: str = ""
    ethereum_http_url: str = ""
    ethereum_ws_url: str = ""
    rpc_url_override: str = ""
    test_private_key: str = ""
    test_send_address: str = ""
    test_recipient_address: str = ""
    contract_address: str = ""
    contract_artifact: str = ""
    default_gas_limit: int = 0
    gas_price_multiplier: float = DEFAULT_GAS_PRICE_MULTIPLIER
    log_level: str = "info"
    log_output: str = "console"
    warnings: list[str] = field(default_factory=list, repr=False)

    @classmethod
    def from_env(cls) -> "Config":
        return cls(
            alchemy_api_key=_get_env("ALCHEMY_API_KEY"),
            ethereum_network=_get_env("ETHEREUM_NETWORK"),
            ethereum_http_url=_get_env("ETHEREUM_HTTP_URL"),
            ethereum_ws_url=_get_env("ETHEREUM_WS_URL"),
            rpc_url_override=_get_env("ETH_RPC_URL"),
            test_private_key=_get_env("TEST_PRIVATE_KEY"),
            test_send_address=_get_env("TEST_SEND_ADDRESS"),
            test_recipient_address=_get_env("TEST_RECIPIENT_ADDRESS"),
            contract_address=_get_env("CONTRACT_ADDRESS"),
            contract_artifact=_get_env("CONTRACT_ARTIFACT"),
            default_gas_limit=_get_env_int("DEFAULT_GAS_LIMIT", 0),
            gas_price_multiplier=_get_env_float(
                "GAS_PRICE_MULTIPLIER", DEFAULT_GAS_PRICE_MULTIPLIER
            ),
            log_level=_get_env("LOG_LEVEL", "info"),
            log_output=_get_env("LOG_OUTPUT", "console"),
        )

    # ---- Endpoints ----

    @property
    def has_endpoint(self) -> bool:
        return bool(self.rpc_url_override or self.alchemy_api_key)

    @property
    def http_url(self) -> str:
        """HTTP JSON-RPC endpoint.

        ``ETH_RPC_URL`` wins; otherwise the provider base URL is joined
        with the API key.
        """
        if self.rpc_url_override:
            return self.rpc_url_override
        if not self.alchemy_api_key:
            raise ConfigError("ALCHEMY_API_KEY (or ETH_RPC_URL) is required in .env file")
        return self.ethereum_http_url + self.alchemy_api_key

    @property
    def ws_url(self) -> str:
        """WebSocket endpoint; an ``ETH_RPC_URL`` override keeps its host with a ws scheme."""
        if self.rpc_url_override:
            override = self.rpc_url_override
            if override.startswith("https://"):
                return "wss://" + override[len("https://"):]
            if override.startswith("http://"):
                return "ws://" + override[len("http://"):]
            return override
        if not self.alchemy_api_key:
            raise ConfigError("ALCHEMY_API_KEY (or ETH_RPC_URL) is required in .env file")
        return self.ethereum_ws_url + self.alchemy_api_key

    # ---- Checks ----

    def validate(self) -> list[str]:
        """Collect (and log) warnings about missing optional settings."""
        warnings: list[str] = []
        if not self.has_endpoint:
            warnings.append("ALCHEMY_API_KEY not set - network functions will not work")
        if not self.test_private_key:
            warnings.append("TEST_PRIVATE_KEY not set - transfer functions will not work")
        for message in warnings:
            logger.warning(message)
        self.warnings = warnings
        return warnings

    def is_production_mode(self) -> bool:
        return self.ethereum_network.lower() in _PRODUCTION_NETWORKS

    def is_test_mode(self) -> bool:
        return self.ethereum_network.lower() in _TEST_NETWORKS


def load_config(env_path: Optional[Path] = None) -> Config:
    """Load ``.env`` (if any) and build a :class:`Config`.

    Variables already present in the environment are never overridden.
    """
    candidates = [env_path] if env_path else [Path.cwd() / ".env", ETHTUTORIAL_ENV]
    loaded = False
    for candidate in candidates:
        if candidate is not None and candidate.exists():
            load_dotenv(candidate, override=False)
            loaded = True
    if not loaded:
        logger.info(".env file not found, using environment variables")
    return Config.from_env()


def setup_logging(level: str = "info", output: str = "console") -> None:
    """Configure root logging once for the CLI.

    ``output`` is ``console`` (stderr) or a file path.
    """
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.INFO

    handlers: list[logging.Handler]
    if output and output != "console":
        log_path = Path(output).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers = [logging.FileHandler(log_path, encoding="utf-8")]
    else:
        handlers = [logging.StreamHandler()]

    logging.basicConfig(level=numeric, format=LOG_FORMAT, handlers=handlers, force=True)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(numeric, logging.WARNING))
