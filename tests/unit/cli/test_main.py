"""Unit tests for lokal-cli."""

from __future__ import annotations

import json
import textwrap
from pathlib import Path

import httpx
import pytest
import respx
from typer.testing import CliRunner

from lokal_cli.main import app
from lokal_schemas.config import DEFAULT_ENDPOINT_URL
from lokal_schemas.exit_codes import ExitCode
from lokal_schemas.logs import LogEntry

runner = CliRunner()


def _write_project(tmp_path: Path, source: dict[str, str] | None = None) -> Path:
    config_path = tmp_path / "lokal.toml"
    config_path.write_text(
        textwrap.dedent(
            """
            [retry]
            max_attempts = 1
            delay_s = 0

            [concurrency]
            request_pause_s = 0
            chunk_pause_s = 0

            [logging]
            logs_dir = "logs"
            sinks = [{ type = "file" }]

            [profiles.backend]
            source = "en.json"
            source_shape = "flat"
            output_dir = "out"
            batch_delay_s = 0

            [profiles.checkout]
            source = "en.json"
            source_shape = "flat"
            output_dir = "out/checkout"
            flavor = "checkout"
            batch_delay_s = 0
            """
        ),
        encoding="utf-8",
    )
    document = source if source is not None else {"Save": "Save", "Pay": "Pay"}
    (tmp_path / "en.json").write_text(json.dumps(document), encoding="utf-8")
    return config_path


def _completion(content: str) -> dict[str, object]:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _read_log_entries(logs_dir: Path) -> list[LogEntry]:
    entries: list[LogEntry] = []
    for path in sorted(logs_dir.glob("*.jsonl")):
        with path.open("r", encoding="utf-8") as handle:
            for line in handle:
                if line.strip():
                    entries.append(LogEntry.model_validate_json(line))
    return entries


def test_version_command() -> None:
    """Test version command outputs version string."""
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "0.1.0" in result.stdout


def test_list_languages_json() -> None:
    """Test list-languages emits the catalog in a response envelope."""
    result = runner.invoke(app, ["list-languages", "--json"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["error"] is None
    codes = [language["code"] for language in payload["data"]]
    assert "es" in codes
    assert "zh-Hans" in codes


def test_list_languages_table() -> None:
    """Test list-languages renders a table by default."""
    result = runner.invoke(app, ["list-languages"])

    assert result.exit_code == 0
    assert "Spanish" in result.stdout


@respx.mock
def test_translate_writes_artifact(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test translate creates the artifact and reports success."""
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-test")
    config_path = _write_project(tmp_path)
    respx.post(DEFAULT_ENDPOINT_URL).mock(
        return_value=httpx.Response(200, json=_completion("Traducido"))
    )

    result = runner.invoke(
        app, ["translate", "--language", "es", "--config", str(config_path)]
    )

    assert result.exit_code == 0, result.stdout
    payload = json.loads(result.stdout)
    assert payload["error"] is None
    assert payload["data"]["status"] == "completed"
    assert payload["data"]["attempted"] == 2
    artifact = json.loads((tmp_path / "out" / "spanish.json").read_text("utf-8"))
    assert artifact == {"Save": "Traducido", "Pay": "Traducido"}
    assert (tmp_path / "out" / "spanish.summary.md").exists()
    events = {entry.event for entry in _read_log_entries(tmp_path / "logs")}
    assert "language_run_completed" in events


@respx.mock
def test_translate_reads_api_key_from_dotenv(tmp_path: Path) -> None:
    """Test the .env next to the config supplies the credential."""
    config_path = _write_project(tmp_path)
    (tmp_path / ".env").write_text("OPENROUTER_API_KEY=sk-dotenv\n", encoding="utf-8")
    route = respx.post(DEFAULT_ENDPOINT_URL).mock(
        return_value=httpx.Response(200, json=_completion("Hola"))
    )

    result = runner.invoke(
        app, ["translate", "-l", "es", "-c", str(config_path)]
    )

    assert result.exit_code == 0, result.stdout
    assert route.calls.last.request.headers["Authorization"] == "Bearer sk-dotenv"


def test_translate_without_api_key_is_config_error(tmp_path: Path) -> None:
    """Test a missing credential exits with the config error code."""
    config_path = _write_project(tmp_path)

    result = runner.invoke(
        app, ["translate", "--language", "es", "--config", str(config_path)]
    )

    assert result.exit_code == ExitCode.CONFIG_ERROR
    payload = json.loads(result.stdout)
    assert payload["error"]["code"] == "config_error"
    assert "OPENROUTER_API_KEY" in payload["error"]["message"]


def test_translate_missing_config(tmp_path: Path) -> None:
    """Test a missing config file exits with the config error code."""
    result = runner.invoke(
        app,
        ["translate", "--language", "es", "--config", str(tmp_path / "nope.toml")],
    )

    assert result.exit_code == ExitCode.CONFIG_ERROR
    assert "Config not found" in json.loads(result.stdout)["error"]["message"]


def test_translate_unknown_profile(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test an unknown profile exits with the config error code."""
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-test")
    config_path = _write_project(tmp_path)

    result = runner.invoke(
        app,
        ["translate", "-l", "es", "-c", str(config_path), "--profile", "mobile"],
    )

    assert result.exit_code == ExitCode.CONFIG_ERROR
    assert "mobile" in json.loads(result.stdout)["error"]["message"]


def test_translate_invalid_config_reports_field(tmp_path: Path) -> None:
    """Test validation errors name the offending field."""
    config_path = tmp_path / "lokal.toml"
    config_path.write_text(
        '[retry]\nmax_attempts = 0\n\n[profiles.backend]\nsource = "en.json"\n'
        'source_shape = "flat"\noutput_dir = "out"\n',
        encoding="utf-8",
    )

    result = runner.invoke(
        app, ["translate", "-l", "es", "-c", str(config_path)]
    )

    assert result.exit_code == ExitCode.CONFIG_ERROR
    message = json.loads(result.stdout)["error"]["message"]
    assert message.startswith("Config validation failed: retry.max_attempts")


def test_translate_unknown_language(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test an unsupported language exits with the config error code."""
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-test")
    config_path = _write_project(tmp_path)

    result = runner.invoke(
        app, ["translate", "--language", "xx", "--config", str(config_path)]
    )

    assert result.exit_code == ExitCode.CONFIG_ERROR
    payload = json.loads(result.stdout)
    assert payload["error"]["code"] == "orchestration.unknown_language"
    assert payload["data"]["stage"] == "resolve_language"
    assert not (tmp_path / "out").exists()


def test_translate_missing_source_is_source_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test a missing local source exits with the source error code."""
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-test")
    config_path = _write_project(tmp_path)
    (tmp_path / "en.json").unlink()

    result = runner.invoke(
        app, ["translate", "--language", "es", "--config", str(config_path)]
    )

    assert result.exit_code == ExitCode.SOURCE_ERROR
    payload = json.loads(result.stdout)
    assert payload["error"]["code"] == "source.not_found"
    assert payload["error"]["details"]["stage"] == "fetch"


@respx.mock
def test_translate_below_ratio_gate_fails(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test provider failures fail the run with the translation exit code."""
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-test")
    config_path = _write_project(tmp_path)
    respx.post(DEFAULT_ENDPOINT_URL).mock(return_value=httpx.Response(500))

    result = runner.invoke(
        app, ["translate", "--language", "es", "--config", str(config_path)]
    )

    assert result.exit_code == ExitCode.TRANSLATION_FAILED
    payload = json.loads(result.stdout)
    assert payload["data"]["succeeded"] == 0
    assert payload["error"]["code"] == "orchestration.success_ratio_below_threshold"


@respx.mock
def test_batch_reports_each_language(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test batch translates comma-separated and repeated languages."""
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-test")
    config_path = _write_project(tmp_path)
    respx.post(DEFAULT_ENDPOINT_URL).mock(
        return_value=httpx.Response(200, json=_completion("ok"))
    )

    result = runner.invoke(
        app,
        [
            "batch",
            "--languages",
            "es,fr",
            "-l",
            "hi",
            "--profile",
            "checkout",
            "--config",
            str(config_path),
        ],
    )

    assert result.exit_code == 0, result.stdout
    payload = json.loads(result.stdout)
    assert payload["data"]["results"] == {"es": True, "fr": True, "hi": True}
    checkout_dir = tmp_path / "out" / "checkout"
    assert sorted(p.name for p in checkout_dir.glob("*.json")) == [
        "es.json",
        "fr.json",
        "hi.json",
    ]


def test_batch_stop_on_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test stop-on-error aborts after the first failed language."""
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-test")
    config_path = _write_project(tmp_path, source={})

    result = runner.invoke(
        app,
        [
            "batch",
            "-l",
            "xx,es",
            "--stop-on-error",
            "--config",
            str(config_path),
        ],
    )

    assert result.exit_code == ExitCode.TRANSLATION_FAILED
    payload = json.loads(result.stdout)
    assert payload["data"]["results"] == {"xx": False}
    assert payload["data"]["aborted"] is True
    assert payload["error"]["code"] == "translation_failed"


def test_status_json(tmp_path: Path) -> None:
    """Test status reports artifact existence and counts."""
    config_path = _write_project(tmp_path)
    out_dir = tmp_path / "out"
    out_dir.mkdir()
    (out_dir / "spanish.json").write_text(
        json.dumps({"Save": "Guardar"}), encoding="utf-8"
    )
    (out_dir / "german.json").write_text("{broken", encoding="utf-8")

    result = runner.invoke(app, ["status", "--config", str(config_path), "--json"])

    assert result.exit_code == 0
    report = json.loads(result.stdout)["data"]
    rows = {row["language_code"]: row for row in report["rows"]}
    assert rows["es"]["exists"] is True
    assert rows["es"]["entry_count"] == 1
    assert rows["fr"]["exists"] is False
    assert rows["de"]["error"] is not None


def test_status_table(tmp_path: Path) -> None:
    """Test status renders a table with every language."""
    config_path = _write_project(tmp_path)

    result = runner.invoke(app, ["status", "--config", str(config_path)])

    assert result.exit_code == 0
    assert "Spanish" in result.stdout
    assert "Translation Status" in result.stdout
