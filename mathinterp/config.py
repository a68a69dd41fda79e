"""Configuration loading from pyproject.toml."""

import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Error in mathinterp configuration."""


@dataclass(slots=True, frozen=True)
class MathInterpConfig:
    """Defaults for the plot range, overridable from the command line."""

    x_min: float = -10.0
    x_max: float = 10.0
    step_size: float = 0.5


def find_pyproject_toml(start_dir: Path | None = None) -> Path | None:
    """Find pyproject.toml by walking up from start_dir.

    Args:
        start_dir: Starting directory. Defaults to current working directory.

    Returns:
        Path to pyproject.toml if found, None otherwise.

    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = start_dir.resolve()

    while True:
        candidate = current / "pyproject.toml"
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            # Reached filesystem root
            return None
        current = parent


def _parse_number(section: dict[str, object], key: str, default: float) -> float:
    if key not in section:
        return default
    value = section[key]
    # bool is an int subclass, but `x_min = true` is certainly a mistake
    if isinstance(value, bool) or not isinstance(value, int | float):
        msg = f"Invalid [tool.mathinterp].{key}: expected a number, got {value!r}"
        raise ConfigError(msg)
    return float(value)


def load_config(pyproject_path: Path) -> MathInterpConfig:
    """Load and validate [tool.mathinterp] config from pyproject.toml.

    Args:
        pyproject_path: Path to pyproject.toml

    Returns:
        Parsed MathInterpConfig

    Raises:
        ConfigError: If the configuration is invalid

    """
    with pyproject_path.open("rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {pyproject_path}: {e}"
            raise ConfigError(msg) from e

    section = data.get("tool", {}).get("mathinterp", {})
    if not section:
        return MathInterpConfig()

    defaults = MathInterpConfig()
    config = MathInterpConfig(
        x_min=_parse_number(section, "x_min", defaults.x_min),
        x_max=_parse_number(section, "x_max", defaults.x_max),
        step_size=_parse_number(section, "step_size", defaults.step_size),
    )
    logger.debug(f"Loaded {config} from {pyproject_path}")
    return config


def get_config() -> MathInterpConfig:
    """Get config from pyproject.toml in current directory or parents.

    Returns:
        MathInterpConfig (defaults if no pyproject.toml or no [tool.mathinterp] section)

    """
    pyproject_path = find_pyproject_toml()
    if pyproject_path is None:
        return MathInterpConfig()
    return load_config(pyproject_path)
