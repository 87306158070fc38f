from __future__ import annotations

import copy
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

COMPILERS = ("local", "http")

# Mirrors default_settings.toml for installs that lack the data file.
_FALLBACK_SETTINGS: dict[str, Any] = {
    "embed": {
        "reconcile_delay_ms": 1250,
        "compile_timeout_seconds": 60,
        "compiler": "local",
        "compile_url": "",
    },
    "sandbox": {
        "timeout_seconds": 10,
        "memory_limit_mb": 256,
        "blocked_imports": ["os", "subprocess", "socket", "ctypes", "importlib", "shutil"],
        "blocked_builtins": ["eval", "exec", "open", "compile", "breakpoint", "input"],
    },
}


def _default_settings_path() -> Path:
    """Return the bundled default settings TOML path.

    Example:
        ```python
        path = _default_settings_path()
        ```
    """
    return Path(__file__).with_name("default_settings.toml")


def _read_settings_toml(path: Path) -> dict[str, Any]:
    """Read a settings TOML file into a dictionary of tables.

    Example:
        ```python
        raw = _read_settings_toml(Path("/tmp/embed.toml"))
        ```
    """
    if not path.exists():
        return copy.deepcopy(_FALLBACK_SETTINGS)
    raw = tomllib.loads(path.read_text(encoding="utf-8"))
    for table in ("embed", "sandbox"):
        if table in raw and not isinstance(raw[table], dict):
            raise ValueError(f"'{table}' must be a TOML table")
    return raw


def _list_of_str(value: Any, field_name: str) -> list[str]:
    """Validate and normalize a list-of-strings settings field.

    Example:
        ```python
        blocked = _list_of_str(["os", "subprocess"], "blocked_imports")
        ```
    """
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"'{field_name}' must be a list of strings")
    out: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"'{field_name}' must contain only strings")
        out.append(item)
    return out


def _positive(value: Any, field_name: str) -> float:
    """Validate a strictly positive number settings field.

    Example:
        ```python
        timeout = _positive(raw.get("timeout_seconds", 10), "timeout_seconds")
        ```
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{field_name}' must be a number")
    if value <= 0:
        raise ValueError(f"'{field_name}' must be positive")
    return value


_DEFAULTS_RAW = _read_settings_toml(_default_settings_path())
_EMBED_RAW: dict[str, Any] = _DEFAULTS_RAW.get("embed", {})
_SANDBOX_RAW: dict[str, Any] = _DEFAULTS_RAW.get("sandbox", {})

DEFAULT_RECONCILE_DELAY_MS = int(_EMBED_RAW.get("reconcile_delay_ms", 1250))
DEFAULT_COMPILE_TIMEOUT_SECONDS = float(_EMBED_RAW.get("compile_timeout_seconds", 60))
DEFAULT_COMPILER = str(_EMBED_RAW.get("compiler", "local"))
DEFAULT_COMPILE_URL = str(_EMBED_RAW.get("compile_url", ""))
DEFAULT_SANDBOX_TIMEOUT_SECONDS = float(_SANDBOX_RAW.get("timeout_seconds", 10))
DEFAULT_MEMORY_LIMIT_MB = int(_SANDBOX_RAW.get("memory_limit_mb", 256))
DEFAULT_BLOCKED_IMPORTS = _list_of_str(_SANDBOX_RAW.get("blocked_imports", []), "blocked_imports")
DEFAULT_BLOCKED_BUILTINS = _list_of_str(
    _SANDBOX_RAW.get("blocked_builtins", []), "blocked_builtins"
)


@dataclass(slots=True)
class SandboxPolicy:
    """Guardrails applied by the local sandbox to each run.

    Example:
        ```python
        policy = SandboxPolicy(timeout_seconds=5, blocked_imports=["os"])
        ```
    """

    timeout_seconds: float = DEFAULT_SANDBOX_TIMEOUT_SECONDS
    memory_limit_mb: int = DEFAULT_MEMORY_LIMIT_MB
    blocked_imports: list[str] = field(default_factory=lambda: DEFAULT_BLOCKED_IMPORTS.copy())
    blocked_builtins: list[str] = field(default_factory=lambda: DEFAULT_BLOCKED_BUILTINS.copy())

    def __post_init__(self) -> None:
        """Reject non-positive timeout and memory limits.

        Example:
            ```python
            SandboxPolicy(timeout_seconds=0)  # ValueError
            ```
        """
        _positive(self.timeout_seconds, "timeout_seconds")
        _positive(self.memory_limit_mb, "memory_limit_mb")

    def to_payload(self) -> dict[str, Any]:
        """Serialize the policy for the worker process.

        Example:
            ```python
            payload = SandboxPolicy().to_payload()
            ```
        """
        return {
            "memory_limit_mb": self.memory_limit_mb,
            "blocked_imports": list(self.blocked_imports),
            "blocked_builtins": list(self.blocked_builtins),
        }


@dataclass(slots=True)
class EmbedSettings:
    """Effective configuration of one embed instance.

    Example:
        ```python
        settings = EmbedSettings(reconcile_delay_ms=500, compile_timeout_seconds=20)
        ```
    """

    reconcile_delay_ms: int = DEFAULT_RECONCILE_DELAY_MS
    compile_timeout_seconds: float = DEFAULT_COMPILE_TIMEOUT_SECONDS
    compiler: str = DEFAULT_COMPILER
    compile_url: str = DEFAULT_COMPILE_URL
    sandbox: SandboxPolicy = field(default_factory=SandboxPolicy)
    config_path: str | None = None

    def __post_init__(self) -> None:
        """Validate compiler selection and timing values.

        Example:
            ```python
            EmbedSettings(compiler="http", compile_url="http://localhost:8080/api/")
            ```
        """
        if self.compiler not in COMPILERS:
            raise ValueError("compiler must be 'local' or 'http'")
        if self.compiler == "http" and not self.compile_url:
            raise ValueError("compiler 'http' requires 'compile_url'")
        _positive(self.reconcile_delay_ms, "reconcile_delay_ms")
        _positive(self.compile_timeout_seconds, "compile_timeout_seconds")

    @classmethod
    def from_file(cls, config_path: str) -> "EmbedSettings":
        """Create settings from a TOML file with `[embed]` and `[sandbox]` tables.

        Missing keys fall back to the bundled defaults.

        Example:
            ```python
            settings = EmbedSettings.from_file("/tmp/embed.toml")
            ```
        """
        path = Path(config_path)
        if not path.exists():
            raise ValueError(f"Settings file not found: {config_path}")
        raw = _read_settings_toml(path)
        embed = raw.get("embed", {})
        sandbox = raw.get("sandbox", {})
        return cls(
            reconcile_delay_ms=int(_positive(
                embed.get("reconcile_delay_ms", DEFAULT_RECONCILE_DELAY_MS), "reconcile_delay_ms"
            )),
            compile_timeout_seconds=float(_positive(
                embed.get("compile_timeout_seconds", DEFAULT_COMPILE_TIMEOUT_SECONDS),
                "compile_timeout_seconds",
            )),
            compiler=str(embed.get("compiler", DEFAULT_COMPILER)),
            compile_url=str(embed.get("compile_url", DEFAULT_COMPILE_URL)),
            sandbox=SandboxPolicy(
                timeout_seconds=float(_positive(
                    sandbox.get("timeout_seconds", DEFAULT_SANDBOX_TIMEOUT_SECONDS), "timeout_seconds"
                )),
                memory_limit_mb=int(_positive(
                    sandbox.get("memory_limit_mb", DEFAULT_MEMORY_LIMIT_MB), "memory_limit_mb"
                )),
                blocked_imports=_list_of_str(
                    sandbox.get("blocked_imports", DEFAULT_BLOCKED_IMPORTS), "blocked_imports"
                ),
                blocked_builtins=_list_of_str(
                    sandbox.get("blocked_builtins", DEFAULT_BLOCKED_BUILTINS), "blocked_builtins"
                ),
            ),
            config_path=config_path,
        )
