"""User configuration for ssh-agent-setup.

Configuration is optional and stored in
~/.config/ssh-agent-setup/config.toml. Every field has a default, so a
missing file behaves exactly like an empty one.

Example::

    keys = ["~/.ssh/id_ed25519"]
    use_picker = false
"""

import logging
import tomllib
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from sshsetup.core.paths import get_config_path

logger = logging.getLogger(__name__)


class SetupConfig(BaseModel):
    """Settings that shape a setup run.

    Attributes:
        keys: Key paths used when none are given on the command line.
        use_picker: Allow fzf for shell selection when it is installed.
        use_dotfile_manager: Patch chezmoi source files instead of deployed ones.
        shells_file: Host declaration of valid login shells.
        template_dir: Directory with unit templates (None = bundled templates).
    """

    model_config = ConfigDict(extra="forbid")

    keys: Annotated[
        list[str],
        Field(description="Default SSH key paths"),
    ] = []
    use_picker: Annotated[
        bool,
        Field(description="Use fzf for shell selection if available"),
    ] = True
    use_dotfile_manager: Annotated[
        bool,
        Field(description="Resolve RC files through chezmoi if available"),
    ] = True
    shells_file: Annotated[
        Path,
        Field(description="Valid login shells declaration"),
    ] = Path("/etc/shells")
    template_dir: Annotated[
        Path | None,
        Field(description="Unit template directory (None = bundled)"),
    ] = None


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""


def load_config(path: Path | None = None) -> SetupConfig:
    """Load configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated SetupConfig. Defaults when the file does not exist.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the file cannot be read or the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        logger.debug("No config file at %s; using defaults", config_path)
        return SetupConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config {config_path}: {e}") from e

    try:
        config = SetupConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config content in {config_path}: {e}") from e

    logger.debug("Loaded config from %s", config_path)
    return config
