import os, json, logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from errors import ConfigError

# Lambda@Edge functions cannot carry environment variables, so the deploy
# stack writes this file into the asset next to the handlers.
CONFIG_FILE = Path(__file__).with_name("fallback.json")

STRATEGIES = ("probe", "infer")


@dataclass(frozen=True)
class FallbackSettings:
    bucket: Optional[str] = None
    region: str = "us-east-1"
    strategy: str = "probe"
    log_level: str = "INFO"

    def require_bucket(self) -> str:
        if not self.bucket:
            raise ConfigError("FALLBACK_BUCKET is required for the probe strategy")
        return self.bucket


def load_settings(environ: Mapping[str, str] = None, path: Path = CONFIG_FILE) -> FallbackSettings:
    """Read fallback.json (if present), then let environment variables override it."""
    environ = os.environ if environ is None else environ
    values = {}
    if path.exists():
        try:
            values = json.loads(path.read_text())
        except ValueError as e:
            raise ConfigError(f"{path.name} is not valid JSON: {e}") from e

    settings = FallbackSettings(
        bucket=environ.get("FALLBACK_BUCKET") or values.get("bucket"),
        region=environ.get("FALLBACK_REGION") or values.get("region") or "us-east-1",
        strategy=(environ.get("FALLBACK_STRATEGY") or values.get("strategy") or "probe").lower(),
        log_level=(environ.get("LOG_LEVEL") or values.get("log_level") or "INFO").upper(),
    )
    if settings.strategy not in STRATEGIES:
        raise ConfigError(f"unknown fallback strategy {settings.strategy!r}, expected one of {STRATEGIES}")
    return settings


def configure_logging(settings: FallbackSettings) -> logging.Logger:
    # The Lambda runtime installs its own handler on the root logger.
    root = logging.getLogger()
    root.setLevel(getattr(logging, settings.log_level, logging.INFO))
    return root
