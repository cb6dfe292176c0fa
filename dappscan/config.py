"""Configuration management for dappscan."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from dotenv import load_dotenv

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


DEFAULT_ETHERSCAN_API_URL = "https://api.etherscan.io/v2/api"
DEFAULT_RPC_URL = "https://eth.llamarpc.com"
DEFAULT_SIGNATURE_DB_URL = "https://www.4byte.directory/api/v1/signatures/"

# Default heuristics for contract risk detection and control discovery. These
# can be overridden via config/heuristics.yaml without touching code.
DEFAULT_DANGEROUS_FUNCTIONS: list[str] = [
    "transferOwnership",
    "selfdestruct",
    "suicide",
    "delegatecall",
    "changeImplementation",
]

DEFAULT_CLICKABLE_SELECTORS: list[str] = [
    "button",
    '[role="button"]',
    ".btn",
    'input[type="submit"]',
    'input[type="button"]',
    'a[href*="connect"]',
    'a[href*="wallet"]',
]

DEFAULT_LARGE_CONTRACT_THRESHOLD = 50000


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Config:
    """Application configuration loaded from environment."""

    # Code sources
    etherscan_api_key: str = ""
    etherscan_api_url: str = DEFAULT_ETHERSCAN_API_URL
    chain_id: int = 1
    rpc_url: str = DEFAULT_RPC_URL

    # Signature database (4byte.directory compatible)
    signature_db_url: str = DEFAULT_SIGNATURE_DB_URL

    # Browser probing (seconds)
    page_load_timeout: float = 30.0
    settle_delay: float = 3.0
    post_click_wait: float = 1.0
    headless: bool = True
    disable_chromium_sandbox: bool = False

    # Probing limits
    max_controls: int = 20
    max_tested_controls: int = 10

    # Contract analysis limits
    max_contracts: int = 5
    max_selector_lookups: int = 10
    selector_lookup_delay: float = 0.1
    lookup_timeout: float = 5.0
    code_fetch_timeout: float = 10.0
    lookup_retries: int = 0

    # Whole-scan deadline
    scan_timeout: float = 120.0

    # API server
    api_host: str = "127.0.0.1"
    api_port: int = 3001

    # Paths
    reports_dir: Path = field(default_factory=lambda: Path("./reports"))
    config_dir: Path = field(default_factory=lambda: Path("./config"))

    # Heuristics (override via config/heuristics.yaml)
    dangerous_functions: list[str] = field(
        default_factory=lambda: list(DEFAULT_DANGEROUS_FUNCTIONS)
    )
    clickable_selectors: list[str] = field(
        default_factory=lambda: list(DEFAULT_CLICKABLE_SELECTORS)
    )
    large_contract_threshold: int = DEFAULT_LARGE_CONTRACT_THRESHOLD

    def __post_init__(self):
        self.reports_dir = Path(self.reports_dir)
        self.config_dir = Path(self.config_dir)


def _load_heuristics(config_dir: Path) -> dict:
    """Load heuristic overrides from config/heuristics.yaml (optional)."""
    path = Path(config_dir or ".") / "heuristics.yaml"
    if not path.exists():
        return {}

    try:
        data = yaml.safe_load(path.read_text()) or {}
    except Exception as exc:
        logger.warning("Failed to parse heuristics.yaml: %s", exc)
        return {}

    if not isinstance(data, dict):
        logger.warning("Ignoring heuristics.yaml: top level must be a mapping")
        return {}

    def _coerce_strings(raw) -> list[str] | None:
        if not isinstance(raw, list):
            return None
        items = [str(item).strip() for item in raw if str(item or "").strip()]
        return items or None

    contracts_cfg = data.get("contracts", {}) or {}
    browser_cfg = data.get("browser", {}) or {}

    overrides: dict = {}
    dangerous = _coerce_strings(contracts_cfg.get("dangerous_functions"))
    if dangerous:
        overrides["dangerous_functions"] = dangerous

    threshold = contracts_cfg.get("large_contract_threshold")
    if threshold is not None:
        try:
            overrides["large_contract_threshold"] = int(threshold)
        except (TypeError, ValueError):
            logger.warning("Invalid large_contract_threshold in heuristics.yaml: %r", threshold)

    selectors = _coerce_strings(browser_cfg.get("clickable_selectors"))
    if selectors:
        overrides["clickable_selectors"] = selectors

    return overrides


def load_config() -> Config:
    """Load configuration from environment variables."""
    load_dotenv()

    config_dir = Path(os.getenv("CONFIG_DIR", "./config"))
    heuristics = _load_heuristics(config_dir)

    rpc_url = os.getenv("RPC_URL") or os.getenv("CUSTOM_RPC_URL") or DEFAULT_RPC_URL

    try:
        return Config(
            etherscan_api_key=os.getenv("ETHERSCAN_API_KEY", ""),
            etherscan_api_url=os.getenv("ETHERSCAN_API_URL", DEFAULT_ETHERSCAN_API_URL),
            chain_id=int(os.getenv("CHAIN_ID", "1")),
            rpc_url=rpc_url,
            signature_db_url=os.getenv("SIGNATURE_DB_URL", DEFAULT_SIGNATURE_DB_URL),
            page_load_timeout=float(os.getenv("PAGE_LOAD_TIMEOUT", "30")),
            settle_delay=float(os.getenv("SETTLE_DELAY", "3")),
            post_click_wait=float(os.getenv("POST_CLICK_WAIT", "1")),
            headless=_env_bool("HEADLESS", "true"),
            disable_chromium_sandbox=os.getenv("DAPPSCAN_DISABLE_CHROMIUM_SANDBOX") == "1",
            max_controls=int(os.getenv("MAX_CONTROLS", "20")),
            max_tested_controls=int(os.getenv("MAX_TESTED_CONTROLS", "10")),
            max_contracts=int(os.getenv("MAX_CONTRACTS", "5")),
            max_selector_lookups=int(os.getenv("MAX_SELECTOR_LOOKUPS", "10")),
            selector_lookup_delay=float(os.getenv("SELECTOR_LOOKUP_DELAY", "0.1")),
            lookup_timeout=float(os.getenv("LOOKUP_TIMEOUT", "5")),
            code_fetch_timeout=float(os.getenv("CODE_FETCH_TIMEOUT", "10")),
            lookup_retries=int(os.getenv("LOOKUP_RETRIES", "0")),
            scan_timeout=float(os.getenv("SCAN_TIMEOUT", "120")),
            api_host=os.getenv("API_HOST", "127.0.0.1"),
            api_port=int(os.getenv("API_PORT", "3001")),
            reports_dir=Path(os.getenv("REPORTS_DIR", "./reports")),
            config_dir=config_dir,
            **heuristics,
        )
    except ValueError as exc:
        raise ConfigurationError(f"Invalid configuration value: {exc}") from exc


def validate_config(config: Config) -> list[str]:
    """Validate configuration and return list of error messages."""
    errors: list[str] = []

    for name in ("page_load_timeout", "lookup_timeout", "code_fetch_timeout", "scan_timeout"):
        if getattr(config, name) <= 0:
            errors.append(f"{name.upper()} must be positive")
    for name in ("settle_delay", "post_click_wait", "selector_lookup_delay"):
        if getattr(config, name) < 0:
            errors.append(f"{name.upper()} must not be negative")
    for name in ("max_controls", "max_tested_controls", "max_contracts", "max_selector_lookups"):
        if getattr(config, name) < 0:
            errors.append(f"{name.upper()} must not be negative")
    if config.lookup_retries < 0:
        errors.append("LOOKUP_RETRIES must not be negative")
    if not (config.rpc_url or "").startswith(("http://", "https://")):
        errors.append("RPC_URL must be an http(s) URL")

    if not config.etherscan_api_key:
        # Bytecode still comes from the RPC fallback, but nothing will be reported as verified.
        logger.info("No ETHERSCAN_API_KEY configured; contract verification status will be unavailable")

    return errors
