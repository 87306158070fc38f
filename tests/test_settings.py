from pathlib import Path

import pytest

from embedpad import EmbedSettings, SandboxPolicy
from embedpad import settings as settings_module


def test_bundled_defaults() -> None:
    settings = EmbedSettings()
    assert settings.reconcile_delay_ms == 1250
    assert settings.compile_timeout_seconds == 60
    assert settings.compiler == "local"
    assert "os" in settings.sandbox.blocked_imports
    assert "eval" in settings.sandbox.blocked_builtins


def test_fallback_matches_bundled_toml(tmp_path: Path) -> None:
    bundled = settings_module._read_settings_toml(settings_module._default_settings_path())
    assert bundled == settings_module._FALLBACK_SETTINGS

    missing = settings_module._read_settings_toml(tmp_path / "absent.toml")
    assert missing == bundled
    missing["sandbox"]["blocked_imports"].append("math")
    assert "math" not in settings_module._FALLBACK_SETTINGS["sandbox"]["blocked_imports"]


def test_from_file_overrides_and_keeps_defaults(tmp_path: Path) -> None:
    config = tmp_path / "embed.toml"
    config.write_text(
        (
            "[embed]\n"
            "reconcile_delay_ms = 300\n"
            "compiler = \"http\"\n"
            "compile_url = \"http://localhost:8080/api/\"\n"
            "\n"
            "[sandbox]\n"
            "timeout_seconds = 3\n"
            "blocked_imports = [\"math\"]\n"
        ),
        encoding="utf-8",
    )

    settings = EmbedSettings.from_file(str(config))

    assert settings.reconcile_delay_ms == 300
    assert settings.compile_timeout_seconds == 60
    assert settings.compiler == "http"
    assert settings.sandbox.timeout_seconds == 3
    assert settings.sandbox.blocked_imports == ["math"]
    assert settings.sandbox.memory_limit_mb == 256
    assert settings.config_path == str(config)


def test_http_compiler_requires_url() -> None:
    with pytest.raises(ValueError, match="compile_url"):
        EmbedSettings(compiler="http")


def test_unknown_compiler_rejected() -> None:
    with pytest.raises(ValueError, match="'local' or 'http'"):
        EmbedSettings(compiler="wasm")


@pytest.mark.parametrize("field", ["reconcile_delay_ms", "compile_timeout_seconds"])
def test_non_positive_timing_rejected(field: str) -> None:
    with pytest.raises(ValueError, match=field):
        EmbedSettings(**{field: 0})


def test_bad_list_type_rejected(tmp_path: Path) -> None:
    config = tmp_path / "embed.toml"
    config.write_text("[sandbox]\nblocked_imports = \"os\"\n", encoding="utf-8")
    with pytest.raises(ValueError, match="blocked_imports"):
        EmbedSettings.from_file(str(config))


def test_missing_file_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="not found"):
        EmbedSettings.from_file(str(tmp_path / "missing.toml"))


def test_sandbox_payload() -> None:
    policy = SandboxPolicy(memory_limit_mb=64, blocked_imports=["os"], blocked_builtins=["open"])
    assert policy.to_payload() == {
        "memory_limit_mb": 64,
        "blocked_imports": ["os"],
        "blocked_builtins": ["open"],
    }
