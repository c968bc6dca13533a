"""Unit tests for the 'filesort render' command."""

from __future__ import annotations

from pathlib import Path

from click.testing import CliRunner

from filesort.main import cli


class TestRenderCommand:
    def test_single_path_prints_only_output(
        self, cli_runner: CliRunner, isolated_config: Path
    ) -> None:
        result = cli_runner.invoke(
            cli, ["render", "{{ upper(extension) }}/{{ name }}", "photo.jpg"]
        )
        assert result.exit_code == 0
        assert result.output == "JPG/photo.jpg\n"

    def test_multiple_paths_print_tab_separated_lines(
        self, cli_runner: CliRunner, isolated_config: Path
    ) -> None:
        paths = [f"dir/f{i}.txt" for i in range(10)]
        result = cli_runner.invoke(
            cli, ["render", "{{ stem }}", *paths, "--workers", "4"]
        )
        assert result.exit_code == 0
        assert result.output.splitlines() == [f"{p}\tf{i}" for i, p in enumerate(paths)]

    def test_set_binds_extra_variables(
        self, cli_runner: CliRunner, isolated_config: Path
    ) -> None:
        result = cli_runner.invoke(
            cli,
            ["render", "{{ year }}/{{ name }}", "a.pdf", "--set", "year=2024"],
        )
        assert result.exit_code == 0
        assert result.output == "2024/a.pdf\n"

    def test_set_value_may_contain_equals(
        self, cli_runner: CliRunner, isolated_config: Path
    ) -> None:
        result = cli_runner.invoke(
            cli, ["render", "{{ q }}", "a", "--set", "q=x=y"]
        )
        assert result.output == "x=y\n"

    def test_invalid_set_format(
        self, cli_runner: CliRunner, isolated_config: Path
    ) -> None:
        result = cli_runner.invoke(cli, ["render", "{{ x }}", "a", "--set", "novalue"])
        assert result.exit_code == 1
        assert "Invalid --set value: novalue" in result.output

    def test_root_binds_relative_path(
        self, cli_runner: CliRunner, isolated_config: Path
    ) -> None:
        inbox = isolated_config / "inbox"
        result = cli_runner.invoke(
            cli,
            ["render", "{{ relative }}", str(inbox / "a" / "b.txt"), "--root", str(inbox)],
        )
        assert result.exit_code == 0
        assert result.output == "a/b.txt\n"

    def test_metadata_bound_for_existing_file(
        self, cli_runner: CliRunner, isolated_config: Path
    ) -> None:
        (isolated_config / "data.bin").write_bytes(b"12345")
        result = cli_runner.invoke(cli, ["render", "{{ metadata.size }}", "data.bin"])
        assert result.exit_code == 0
        assert result.output == "5\n"

    def test_parse_error_exits_with_failure(
        self, cli_runner: CliRunner, isolated_config: Path
    ) -> None:
        result = cli_runner.invoke(cli, ["render", "{{foo(", "a.txt"])
        assert result.exit_code == 1
        assert "unexpected end of expression" in result.output
        assert "line 1, column 7" in result.output

    def test_failed_path_does_not_stop_others(
        self, cli_runner: CliRunner, isolated_config: Path
    ) -> None:
        (isolated_config / "filesort.yaml").write_text("""
context:
  include_metadata: false
variables:
  - kind: regex
    name: doc
    pattern: '(?P<year>\\d{4})'
""")
        result = cli_runner.invoke(
            cli, ["render", "{{ doc.year }}", "report-2023.pdf", "notes.txt"]
        )
        assert result.exit_code == 1
        assert "report-2023.pdf\t2023" in result.output
        assert "Error: notes.txt: Undefined variable 'year'" in result.output

    def test_configured_variables_are_used(
        self,
        cli_runner: CliRunner,
        isolated_config: Path,
        sample_config_yaml: str,
    ) -> None:
        (isolated_config / "filesort.yaml").write_text(sample_config_yaml)
        result = cli_runner.invoke(
            cli, ["render", "TV/{{ folder }}/{{ name }}", "Lost.S01E02.mkv"]
        )
        assert result.exit_code == 0
        assert result.output == "TV/Lost/Season 01/Lost.S01E02.mkv\n"

    def test_failing_configured_variable_is_reported_per_path(
        self, cli_runner: CliRunner, isolated_config: Path
    ) -> None:
        (isolated_config / "filesort.yaml").write_text("""
variables:
  - kind: template
    name: label
    value: "{{ upper(missing) }}"
""")
        result = cli_runner.invoke(cli, ["render", "{{ label }}", "a.txt"])
        assert result.exit_code == 1
        assert "Error: a.txt: Undefined variable 'missing'" in result.output

    def test_paths_are_required(
        self, cli_runner: CliRunner, isolated_config: Path
    ) -> None:
        result = cli_runner.invoke(cli, ["render", "{{ name }}"])
        assert result.exit_code == 2
