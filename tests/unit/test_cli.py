import json

from click.testing import CliRunner

from content_generation import __version__, cli as cli_module
from content_generation.cli import cli
from content_generation.exceptions import ServiceUnavailableError
from content_generation.models import CleanupResult


def test_version_text():
    result = CliRunner().invoke(cli, ["version"])
    assert result.exit_code == 0
    assert result.output.strip() == f"v{__version__}"


def test_version_json():
    result = CliRunner().invoke(cli, ["version", "--format", "json"])
    assert json.loads(result.output) == {"version": __version__}


def test_generate(monkeypatch):
    seen = {}

    async def fake_generate(request, user_id=None, use_fallbacks=True):
        seen.update(request=request, user_id=user_id, use_fallbacks=use_fallbacks)
        return "Ship faster."

    monkeypatch.setattr(cli_module, "run_generate", fake_generate)

    result = CliRunner().invoke(
        cli,
        ["generate", "--type", "tagline", "--context", "B2B SaaS", "--keyword", "speed", "--user-id", "u1"],
    )

    assert result.exit_code == 0
    assert result.output.strip() == "Ship faster."
    assert seen["request"].keywords == ("speed",)
    assert seen["user_id"] == "u1"
    assert seen["use_fallbacks"] is True


def test_generate_failure_exits_nonzero(monkeypatch):
    async def failing_generate(request, user_id=None, use_fallbacks=True):
        raise ServiceUnavailableError("down", status_code=503)

    monkeypatch.setattr(cli_module, "run_generate", failing_generate)

    result = CliRunner().invoke(cli, ["generate", "--type", "cta", "--no-fallback"])

    assert result.exit_code == 1


def test_cleanup(monkeypatch):
    async def fake_cleanup():
        return CleanupResult(success=True, message="Removed 12 expired cache entries", entries_removed=12)

    monkeypatch.setattr(cli_module, "run_cleanup", fake_cleanup)

    result = CliRunner().invoke(cli, ["cleanup"])

    assert result.exit_code == 0
    assert "Removed 12" in result.output
