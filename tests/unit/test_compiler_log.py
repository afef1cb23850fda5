"""Unit tests for LaTeX log parsing and build configuration."""

import os

import pytest

from cvbuilder.config import BuildConfig
from cvbuilder.contexts.rendering.compiler import (
    _compiler_env,
    _source_arg,
    compiler_available,
    parse_latex_log,
    read_latex_log,
)
from cvbuilder.contexts.rendering.exceptions import BuildError, CompilationError


@pytest.mark.unit
def test_parse_errors_and_warnings():
    log = "\n".join(
        [
            "(./src/cv.tex",
            "! LaTeX Error: File `moderncv.cls' not found.",
            "! Emergency stop.",
            "LaTeX Warning: There were undefined references.",
            "Package hyperref Warning: Token not allowed in a PDF string",
            "Overfull \\hbox (12.3pt too wide) in paragraph at lines 10--12",
            "Underfull \\hbox (badness 10000) in paragraph at lines 20--21",
        ]
    )

    errors, warnings = parse_latex_log(log)

    assert errors == ["LaTeX Error: File `moderncv.cls' not found.", "Emergency stop."]
    assert warnings == [
        "There were undefined references.",
        "Token not allowed in a PDF string",
        "12.3pt too wide",
        "badness 10000",
    ]


@pytest.mark.unit
def test_parse_scanning_error_without_bang():
    errors, _ = parse_latex_log("Runaway argument?\nFile ended while scanning use of \\textbf.\n")

    assert errors == ["File ended while scanning use of \\textbf."]


@pytest.mark.unit
def test_parse_clean_log():
    assert parse_latex_log("Output written on cv.pdf (1 page).") == ([], [])


@pytest.mark.unit
def test_read_missing_log(tmp_path):
    assert read_latex_log(tmp_path / "cv.log") == ([], [])


@pytest.mark.unit
def test_read_latin1_log(tmp_path):
    log_path = tmp_path / "cv.log"
    log_path.write_bytes("! Missing $ inserted \xe9.\n".encode("latin-1"))

    errors, _ = read_latex_log(log_path)

    assert errors == ["Missing $ inserted \xe9."]


@pytest.mark.unit
def test_compiler_env_does_not_touch_parent_environment(monkeypatch):
    monkeypatch.setenv("TEXINPUTS", "parent-value")

    env = _compiler_env("./src/:./src/fonts/:")

    assert env["TEXINPUTS"] == "./src/:./src/fonts/:"
    assert os.environ["TEXINPUTS"] == "parent-value"
    assert env.get("PATH") == os.environ.get("PATH")


@pytest.mark.unit
def test_source_arg_is_relative_to_working_dir(project):
    config = BuildConfig(working_dir=project)

    assert _source_arg(config.source_path, config.working_dir) == os.path.join("src", "cv.tex")
    assert _source_arg(project.parent / "other.tex", config.working_dir) == str(
        project.parent / "other.tex"
    )


@pytest.mark.unit
def test_compiler_available():
    assert compiler_available("definitely-not-a-latex-compiler") is False


@pytest.mark.unit
def test_build_config_paths(project):
    config = BuildConfig(working_dir=project, source="src/resume.tex")

    assert config.source_path == project.resolve() / "src" / "resume.tex"
    assert config.source_dir == project.resolve() / "src"
    assert config.output_path == project.resolve() / "resume.pdf"


@pytest.mark.unit
def test_build_config_defaults(project):
    config = BuildConfig(working_dir=project)

    assert config.watch_patterns == ("src/*.tex", "src/*.cls", "src/*.sty")
    assert ".synctex.gz" in config.aux_suffixes
    assert len(config.aux_suffixes) == 17
    assert config.source_suffixes == (".tex", ".cls", ".sty")


@pytest.mark.unit
def test_logs_dir_follows_working_dir(project, tmp_path_factory):
    config = BuildConfig(working_dir=project, logs_path="outs/logs")
    assert config.logs_dir == project.resolve() / "outs" / "logs"

    absolute = tmp_path_factory.mktemp("logs")
    assert BuildConfig(working_dir=project, logs_path=absolute).logs_dir == absolute


@pytest.mark.unit
def test_compilation_error_message():
    error = CompilationError(2, stdout="out", stderr="err")

    assert isinstance(error, BuildError)
    assert str(error) == "Compilation failed with exit code 2"
    assert error.stderr == "err"
