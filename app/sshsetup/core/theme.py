"""Output colours for ssh-agent-setup.

Colours come from the bundled ``data/theme.toml``. Any subset can be
overridden in ``~/.config/ssh-agent-setup/theme.toml``; an unreadable or
invalid override is logged and ignored.
"""

import logging
import re
import tomllib
from functools import cache
from importlib import resources
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from rich.theme import Theme

from sshsetup.core.paths import get_app_config_dir

logger = logging.getLogger(__name__)

_HEX_COLOR = re.compile(r"#(?:[0-9a-fA-F]{3}){1,2}")


class ThemeColors(BaseModel):
    """Hex colours for every style the CLI renders."""

    model_config = ConfigDict(extra="forbid")

    header: str = "#69B9A1"
    border: str = "#29526d"
    muted: str = "#b2bec3"
    info: str = "#0ec1c8"
    success: str = "#03b971"
    shell: str = "#ffffff"
    path: str = "#0e8ac8"
    added: str = "#c1ff62"
    skipped: str = "#faf870"

    @field_validator("*", mode="before")
    @classmethod
    def check_hex(cls, value: object) -> str:
        """Accept only #RGB or #RRGGBB strings."""
        if not isinstance(value, str) or not _HEX_COLOR.fullmatch(value.strip()):
            msg = f"expected a #RGB or #RRGGBB colour, got {value!r}"
            raise ValueError(msg)
        return value.strip()


def get_user_theme_path() -> Path:
    """Location of the optional user override."""
    return get_app_config_dir() / "theme.toml"


def get_bundled_theme_path() -> Path:
    """Location of the theme shipped with the package."""
    return Path(str(resources.files("sshsetup.data").joinpath("theme.toml")))


def read_colors(path: Path) -> dict[str, str]:
    """Read the ``[colors]`` table of a theme file.

    Returns:
        Colour names mapped to their values; empty when the file is
        missing, unreadable or has no usable table.
    """
    try:
        with open(path, "rb") as f:
            table = tomllib.load(f).get("colors", {})
    except FileNotFoundError:
        return {}
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Ignoring theme file %s: %s", path, e)
        return {}

    if not isinstance(table, dict):
        logger.warning("Ignoring theme file %s: 'colors' is not a table", path)
        return {}
    return {name: value for name, value in table.items() if isinstance(value, str)}


def load_theme() -> ThemeColors:
    """Merge the user override over the bundled colours and validate them."""
    colors = read_colors(get_bundled_theme_path())
    colors.update(read_colors(get_user_theme_path()))

    try:
        return ThemeColors.model_validate(colors)
    except ValidationError as e:
        logger.warning("Invalid theme colours, using defaults: %s", e)
        return ThemeColors()


def build_rich_theme(colors: ThemeColors) -> Theme:
    """Map theme colours onto the style names used in markup and tables."""
    return Theme(
        {
            "bold_header": f"bold {colors.header}",
            "border": colors.border,
            "muted": colors.muted,
            "info": colors.info,
            "success": colors.success,
            "shell.name": f"bold {colors.shell}",
            "path": colors.path,
            "added": colors.added,
            "skipped": colors.skipped,
        }
    )


@cache
def get_theme() -> Theme:
    """Load the Rich theme once per process."""
    return build_rich_theme(load_theme())
