"""
src/config.py

Environment-driven settings, display formatting and logging setup.
"""


import logging
import os
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Dict, List, Union

from dotenv import load_dotenv


load_dotenv()


class Currency(str, Enum):

    GBP = "GBP"
    USD = "USD"
    EUR = "EUR"


# Defaults
DEFAULT_CURRENCY: Currency = Currency.GBP
DEFAULT_MODEL: str = "gpt-4o"
DEFAULT_AZURE_API_VERSION: str = "2024-06-01"
DEFAULT_MAX_TOOL_ROUNDS: int = 8            # Tool-call rounds per chat request
DEFAULT_USER_ID: int = 1                    # Demo owner of chat-created expenses
DEFAULT_REVIEWER_ID: int = 2                # Fixed reviewer for chat approvals
DEFAULT_WORKSPACE_PATH: Path = Path(__file__).resolve().parents[1] / "data" / "workspace.json"
CURRENCY_SYMBOLS: Dict[str, str] = {
    "GBP": "£",
    "USD": "$",
    "EUR": "€"
}

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _env_int(key: str, default: int) -> int:

    raw = os.getenv(key, "").strip()

    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logging.getLogger(__name__).warning("Ignoring non-integer %s=%r", key, raw)
        return default

def _env_float(key: str, default: float) -> float:

    raw = os.getenv(key, "").strip()

    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logging.getLogger(__name__).warning("Ignoring non-numeric %s=%r", key, raw)
        return default


@dataclass
class Settings:
    """Process-wide configuration, read from the environment (and .env) on construction."""

    openai_api_key: str = field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""))
    azure_endpoint: str = field(default_factory=lambda: os.getenv("AZURE_OPENAI_ENDPOINT", ""))
    azure_api_key: str = field(default_factory=lambda: os.getenv("AZURE_OPENAI_API_KEY", ""))
    azure_api_version: str = field(
        default_factory=lambda: os.getenv("AZURE_OPENAI_API_VERSION", DEFAULT_AZURE_API_VERSION)
    )
    model: str = field(default_factory=lambda: os.getenv("OPENAI_MODEL", DEFAULT_MODEL))
    temperature: float = field(default_factory=lambda: _env_float("OPENAI_TEMPERATURE", 0.2))
    max_tool_rounds: int = field(default_factory=lambda: _env_int("MAX_TOOL_ROUNDS", DEFAULT_MAX_TOOL_ROUNDS))
    default_user_id: int = field(default_factory=lambda: _env_int("DEFAULT_USER_ID", DEFAULT_USER_ID))
    default_reviewer_id: int = field(default_factory=lambda: _env_int("DEFAULT_REVIEWER_ID", DEFAULT_REVIEWER_ID))
    workspace_path: Path = field(
        default_factory=lambda: Path(os.getenv("WORKSPACE_PATH", str(DEFAULT_WORKSPACE_PATH)))
    )
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    def __post_init__(self) -> None:

        self.max_tool_rounds = max(1, int(self.max_tool_rounds))

    @property
    def use_azure(self) -> bool:

        return bool(self.azure_endpoint.strip())

    @property
    def ai_enabled(self) -> bool:
        """True when some inference endpoint can be reached with the current settings."""

        return self.use_azure or bool(self.openai_api_key.strip())

    def validate(self) -> List[str]:
        """Return a list of configuration problems (empty when usable)."""

        errors = []

        if self.use_azure and not (self.azure_api_key or self.openai_api_key):
            errors.append("AZURE_OPENAI_API_KEY (or OPENAI_API_KEY) is required with AZURE_OPENAI_ENDPOINT")
        if not self.model:
            errors.append("OPENAI_MODEL must not be empty")
        if not 0.0 <= self.temperature <= 2.0:
            errors.append("OPENAI_TEMPERATURE must be between 0 and 2")

        return errors


def format_money(amount: Union[float, Decimal], currency: Currency = DEFAULT_CURRENCY) -> str:
    """Very simple currency formatter"""

    sym = CURRENCY_SYMBOLS[Currency(currency).value]

    return f"{sym}{amount:,.2f}"

def format_date(d: date) -> str:
    """DD/MM/YYYY, the house display format."""

    return d.strftime("%d/%m/%Y")

def configure_logging(level: str = "INFO") -> None:

    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
# EOF
