"""Unit tests for chezmoi-aware RC file resolution."""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from sshsetup.dotfiles.chezmoi import (
    MANAGED_COMMAND,
    ChezmoiInventoryError,
    ChezmoiMapper,
    ResolvedRCTarget,
    parse_managed_inventory,
)
from sshsetup.shells.registry import ShellDescriptor
from sshsetup.utils.shell import CommandResult


class TestParseManagedInventory:
    """Tests for parse_managed_inventory function."""

    def test_maps_deployed_to_source(self, mock_chezmoi_output: str, fake_home: Path) -> None:
        """Each record maps its absolute path to its source path."""
        mapping = parse_managed_inventory(mock_chezmoi_output)

        source_dir = fake_home / ".local" / "share" / "chezmoi"
        assert mapping[fake_home / ".bash_profile"] == source_dir / "dot_bash_profile"
        assert len(mapping) == 2

    def test_empty_output(self) -> None:
        """No output means nothing is managed."""
        assert parse_managed_inventory("  \n") == {}

    def test_incomplete_records_skipped(self) -> None:
        """Records without both paths are ignored."""
        output = json.dumps(
            {
                ".a": {"absolute": "/h/.a"},
                ".b": "not-a-record",
                ".c": {"absolute": "/h/.c", "sourceAbsolute": "/s/dot_c"},
            }
        )
        assert parse_managed_inventory(output) == {Path("/h/.c"): Path("/s/dot_c")}

    def test_invalid_json(self) -> None:
        """Garbage output raises ChezmoiInventoryError."""
        with pytest.raises(ChezmoiInventoryError, match="Invalid JSON"):
            parse_managed_inventory("{not json")

    def test_non_object(self) -> None:
        """A JSON list is not an inventory."""
        with pytest.raises(ChezmoiInventoryError, match="Expected a JSON object"):
            parse_managed_inventory("[]")


class TestBuildMapping:
    """Tests for ChezmoiMapper.build_mapping."""

    @patch("sshsetup.dotfiles.chezmoi.run_command")
    @patch("sshsetup.dotfiles.chezmoi.command_exists", return_value=False)
    def test_not_installed(self, _mock_exists: MagicMock, mock_run: MagicMock) -> None:
        """Without chezmoi there is no mapping."""
        assert ChezmoiMapper().build_mapping() is None
        mock_run.assert_not_called()

    @patch("sshsetup.dotfiles.chezmoi.run_command")
    @patch("sshsetup.dotfiles.chezmoi.command_exists", return_value=True)
    def test_disabled(self, _mock_exists: MagicMock, mock_run: MagicMock) -> None:
        """A disabled mapper never runs chezmoi."""
        mapper = ChezmoiMapper(enabled=False)
        assert not mapper.is_available()
        assert mapper.build_mapping() is None
        mock_run.assert_not_called()

    @patch("sshsetup.dotfiles.chezmoi.run_command")
    @patch("sshsetup.dotfiles.chezmoi.command_exists", return_value=True)
    def test_queries_inventory(
        self, _mock_exists: MagicMock, mock_run: MagicMock, mock_chezmoi_output: str
    ) -> None:
        """The managed inventory is queried once with JSON output."""
        mock_run.return_value = CommandResult(stdout=mock_chezmoi_output, stderr="", returncode=0)

        mapping = ChezmoiMapper().build_mapping()

        assert mapping is not None
        assert len(mapping) == 2
        mock_run.assert_called_once()
        assert mock_run.call_args.args[0] == MANAGED_COMMAND

    @patch("sshsetup.dotfiles.chezmoi.run_command")
    @patch("sshsetup.dotfiles.chezmoi.command_exists", return_value=True)
    def test_command_failure(self, _mock_exists: MagicMock, mock_run: MagicMock) -> None:
        """A failing query degrades to no mapping."""
        mock_run.return_value = CommandResult(stdout="", stderr="not a repo", returncode=1)
        assert ChezmoiMapper().build_mapping() is None

    @patch("sshsetup.dotfiles.chezmoi.run_command")
    @patch("sshsetup.dotfiles.chezmoi.command_exists", return_value=True)
    def test_bad_output(self, _mock_exists: MagicMock, mock_run: MagicMock) -> None:
        """Unparseable output degrades to no mapping."""
        mock_run.return_value = CommandResult(stdout="oops", stderr="", returncode=0)
        assert ChezmoiMapper().build_mapping() is None


class TestResolve:
    """Tests for ChezmoiMapper.resolve."""

    def test_unmanaged_file(self, bash_shell: ShellDescriptor) -> None:
        """Without a mapping the resolved RC path is used."""
        target = ChezmoiMapper().resolve(bash_shell, None)

        assert target == ResolvedRCTarget(shell=bash_shell, path=bash_shell.rc_path.resolve())
        assert not target.managed

    def test_managed_file_uses_source(self, bash_shell: ShellDescriptor, fake_home: Path) -> None:
        """A managed RC file is redirected to its source file."""
        source = fake_home / ".local" / "share" / "chezmoi" / "dot_bash_profile"
        source.parent.mkdir(parents=True)
        source.write_text("# managed\n")
        mapping = {bash_shell.rc_path.resolve(): source}

        target = ChezmoiMapper().resolve(bash_shell, mapping)

        assert target.path == source
        assert target.managed

    def test_missing_source_ignored(self, bash_shell: ShellDescriptor, fake_home: Path) -> None:
        """A mapping to a source that does not exist is ignored."""
        mapping = {bash_shell.rc_path.resolve(): fake_home / "gone"}

        target = ChezmoiMapper().resolve(bash_shell, mapping)

        assert target.path == bash_shell.rc_path.resolve()
        assert not target.managed

    def test_symlinked_rc_resolved(self, bash_shell: ShellDescriptor, fake_home: Path) -> None:
        """A symlinked RC file is patched at its target."""
        real = fake_home / "dotfiles" / "bash_profile"
        real.parent.mkdir()
        real.write_text("")
        bash_shell.rc_path.symlink_to(real)

        target = ChezmoiMapper().resolve(bash_shell, None)

        assert target.path == real.resolve()
