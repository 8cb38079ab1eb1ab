"""Unit tests for systemd unit installation."""

import logging
import stat
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from sshsetup.core.errors import AgentBinaryNotFoundError, TemplateMissingError
from sshsetup.core.paths import PathSet, get_bundled_template_dir
from sshsetup.services.units import (
    KEYS_MARKER,
    link_agent_unit,
    locate_agent_binary,
    quote_exec_arg,
    render_loader_unit,
    write_loader_unit,
)

SSH_ADD = Path("/usr/bin/ssh-add")

TEMPLATE = """[Service]
Type=oneshot
# INSERT KEYS HERE
RemainAfterExit=yes
"""


@pytest.fixture
def paths(tmp_path: Path) -> PathSet:
    """PathSet with the bundled templates and a temp service directory."""
    service_dir = tmp_path / "systemd" / "user"
    service_dir.mkdir(parents=True)
    return PathSet(service_dir=service_dir, template_dir=get_bundled_template_dir())


class TestQuoteExecArg:
    """Tests for quote_exec_arg function."""

    def test_plain_path_unquoted(self) -> None:
        """Simple paths are written as-is."""
        assert quote_exec_arg("/home/u/.ssh/id_ed25519") == "/home/u/.ssh/id_ed25519"

    def test_space_quoted(self) -> None:
        """Paths with spaces are double-quoted."""
        assert quote_exec_arg("/home/u/my keys/id") == '"/home/u/my keys/id"'

    def test_percent_doubled(self) -> None:
        """systemd specifiers are escaped."""
        assert quote_exec_arg("/keys/100%") == "/keys/100%%"

    def test_dollar_doubled(self) -> None:
        """Environment variable references are escaped."""
        assert quote_exec_arg("/k/a$HOME") == "/k/a$$HOME"
        assert quote_exec_arg("/k/${X} y") == "\"/k/$${X} y\""

    def test_quotes_and_backslashes_escaped(self) -> None:
        """Embedded quotes and backslashes are escaped inside quotes."""
        assert quote_exec_arg('/k/a"b\\c') == '"/k/a\\"b\\\\c"'


class TestRenderLoaderUnit:
    """Tests for render_loader_unit function."""

    def test_one_line_per_key_in_order(self) -> None:
        """N keys produce N ExecStart lines in input order."""
        keys = [Path("/k/zeta"), Path("/k/alpha"), Path("/k/mid")]

        rendered = render_loader_unit(TEMPLATE, keys, SSH_ADD)

        exec_lines = [line for line in rendered.splitlines() if line.startswith("ExecStart=")]
        assert exec_lines == [
            "ExecStart=/usr/bin/ssh-add /k/zeta",
            "ExecStart=/usr/bin/ssh-add /k/alpha",
            "ExecStart=/usr/bin/ssh-add /k/mid",
        ]

    def test_marker_replaced_in_place(self) -> None:
        """Other lines are kept verbatim around the key lines."""
        rendered = render_loader_unit(TEMPLATE, [Path("/k/a")], SSH_ADD)

        assert rendered == (
            "[Service]\nType=oneshot\nExecStart=/usr/bin/ssh-add /k/a\nRemainAfterExit=yes\n"
        )
        assert KEYS_MARKER not in rendered

    def test_only_first_marker_replaced(self) -> None:
        """A second marker line is left alone."""
        template = f"{KEYS_MARKER}\n{KEYS_MARKER}\n"

        rendered = render_loader_unit(template, [Path("/k/a")], SSH_ADD)

        assert rendered == f"ExecStart=/usr/bin/ssh-add /k/a\n{KEYS_MARKER}\n"

    def test_no_marker_unchanged(self, caplog: pytest.LogCaptureFixture) -> None:
        """A template without the marker is returned unchanged."""
        template = "[Service]\nType=oneshot\n"

        with caplog.at_level(logging.WARNING):
            rendered = render_loader_unit(template, [Path("/k/a")], SSH_ADD)

        assert rendered == template
        assert "not found in template" in caplog.text

    def test_no_trailing_newline_preserved(self) -> None:
        """A final line without newline stays without newline."""
        template = f"{KEYS_MARKER}\nRemainAfterExit=yes"
        rendered = render_loader_unit(template, [Path("/k/a")], SSH_ADD)
        assert rendered.endswith("RemainAfterExit=yes")

    def test_bundled_template(self) -> None:
        """The bundled loader template carries the marker."""
        template = (get_bundled_template_dir() / "ssh-add.service").read_text()

        rendered = render_loader_unit(template, [Path("/k/a")], SSH_ADD)

        assert "ExecStart=/usr/bin/ssh-add /k/a\n" in rendered
        assert "Type=oneshot" in rendered
        assert KEYS_MARKER not in rendered


class TestLocateAgentBinary:
    """Tests for locate_agent_binary function."""

    @patch("sshsetup.services.units.shutil.which")
    def test_system_path_first(self, mock_which: MagicMock) -> None:
        """The system PATH lookup wins."""
        mock_which.return_value = "/usr/bin/ssh-add"

        assert locate_agent_binary() == Path("/usr/bin/ssh-add")
        assert "path" in mock_which.call_args_list[0].kwargs

    @patch("sshsetup.services.units.shutil.which")
    def test_user_path_fallback(self, mock_which: MagicMock) -> None:
        """The user PATH is searched when the system PATH has no ssh-add."""
        mock_which.side_effect = [None, "/opt/ssh/bin/ssh-add"]
        assert locate_agent_binary() == Path("/opt/ssh/bin/ssh-add")

    @patch("sshsetup.services.units.shutil.which", return_value=None)
    def test_not_found(self, _mock_which: MagicMock) -> None:
        """Missing ssh-add is fatal."""
        with pytest.raises(AgentBinaryNotFoundError):
            locate_agent_binary()


class TestWriteLoaderUnit:
    """Tests for write_loader_unit function."""

    def test_writes_private_unit(self, paths: PathSet, key_file: Path) -> None:
        """The unit is written with mode 0600 and one ExecStart per key."""
        result = write_loader_unit(paths, [key_file], SSH_ADD)

        assert result == paths.loader_unit
        assert stat.S_IMODE(result.stat().st_mode) == 0o600
        assert f"ExecStart=/usr/bin/ssh-add {key_file}\n" in result.read_text()

    def test_overwrites_existing(self, paths: PathSet) -> None:
        """A previous unit is replaced, not appended to."""
        paths.loader_unit.write_text("old content\n")

        write_loader_unit(paths, [Path("/k/new")], SSH_ADD)

        content = paths.loader_unit.read_text()
        assert "old content" not in content
        assert content.count("ExecStart=") == 1

    def test_no_temp_files_left(self, paths: PathSet) -> None:
        """Only the unit remains in the service directory."""
        write_loader_unit(paths, [Path("/k/a")], SSH_ADD)
        assert [p.name for p in paths.service_dir.iterdir()] == ["ssh-add.service"]

    def test_dry_run_writes_nothing(self, paths: PathSet) -> None:
        """Dry-run returns the destination without creating it."""
        result = write_loader_unit(paths, [Path("/k/a")], SSH_ADD, dry_run=True)

        assert result == paths.loader_unit
        assert not result.exists()

    def test_missing_template(self, tmp_path: Path) -> None:
        """A missing template is fatal."""
        paths = PathSet(service_dir=tmp_path, template_dir=tmp_path / "none")

        with pytest.raises(TemplateMissingError, match="ssh-add.service"):
            write_loader_unit(paths, [Path("/k/a")], SSH_ADD)


class TestLinkAgentUnit:
    """Tests for link_agent_unit function."""

    def test_creates_symlink(self, paths: PathSet) -> None:
        """The agent unit is a symlink to the template."""
        result = link_agent_unit(paths)

        assert result.is_symlink()
        assert result.resolve() == paths.agent_template.resolve()

    def test_replaces_existing(self, paths: PathSet) -> None:
        """An existing file or link is replaced."""
        paths.agent_unit.write_text("stale")

        link_agent_unit(paths)
        link_agent_unit(paths)

        assert paths.agent_unit.is_symlink()
        assert "ExecStart=/usr/bin/ssh-agent" in paths.agent_unit.read_text()

    def test_dry_run(self, paths: PathSet) -> None:
        """Dry-run leaves the service directory untouched."""
        link_agent_unit(paths, dry_run=True)
        assert not paths.agent_unit.exists()

    def test_missing_template(self, tmp_path: Path) -> None:
        """A missing agent template is fatal."""
        paths = PathSet(service_dir=tmp_path, template_dir=tmp_path / "none")

        with pytest.raises(TemplateMissingError, match="ssh-agent.service"):
            link_agent_unit(paths)
