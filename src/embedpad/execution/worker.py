from __future__ import annotations

import json
import sys
import traceback
from typing import Any, Callable

_resource: Any
try:
    import resource as _resource_module  # POSIX only
    _resource = _resource_module
except ImportError:  # pragma: no cover - platform specific
    _resource = None

DEFAULT_ENTRY_POINT = "main"


def _set_limits(memory_limit_mb: int) -> list[str]:
    """Apply RLIMIT_AS and return the limits that could not be set.

    Example:
        ```python
        errors = _set_limits(256)
        ```
    """
    errors: list[str] = []
    if _resource is None:
        errors.append("RLIMIT limits unavailable on this platform")
        return errors

    mem_bytes = int(memory_limit_mb) * 1024 * 1024

    try:
        _, current_hard = _resource.getrlimit(_resource.RLIMIT_AS)
        if current_hard in (-1, _resource.RLIM_INFINITY):
            target_hard = mem_bytes
        else:
            target_hard = min(mem_bytes, current_hard)
        target_soft = min(mem_bytes, target_hard)
        _resource.setrlimit(_resource.RLIMIT_AS, (target_soft, target_hard))
    except (ValueError, OSError) as exc:
        errors.append(f"RLIMIT_AS not applied: {exc}")

    return errors


def _safe_import_factory(blocked_imports: set[str]) -> Callable[..., Any]:
    """Build an `__import__` replacement that rejects blocked top-level modules.

    Example:
        ```python
        safe_import = _safe_import_factory({"os", "socket"})
        ```
    """

    def _safe_import(
        name: str,
        globals: dict[str, Any] | None = None,
        locals: dict[str, Any] | None = None,
        fromlist: Any = (),
        level: int = 0,
    ) -> Any:
        """Import `name` unless its top-level package is blocked.

        Example:
            ```python
            json_module = _safe_import("json")
            ```
        """
        root = name.split(".")[0]
        if root in blocked_imports:
            raise ImportError(f"Import '{name}' is blocked by policy")
        return __import__(name, globals, locals, fromlist, level)

    return _safe_import


def _build_safe_builtins(blocked_builtins: set[str], safe_import: Any) -> dict[str, Any]:
    """Copy the builtins without the blocked names, with `safe_import` installed.

    Example:
        ```python
        builtins = _build_safe_builtins({"eval", "open"}, safe_import)
        ```
    """
    raw_builtins = __builtins__
    if isinstance(raw_builtins, dict):
        builtins_obj: dict[str, Any] = raw_builtins
    else:
        builtins_obj = vars(raw_builtins)

    safe = {name: value for name, value in builtins_obj.items() if name not in blocked_builtins}
    safe["__import__"] = safe_import
    return safe


def main() -> int:
    """Run one artifact read as JSON from stdin, streaming its output.

    Output goes straight to this process's stdout and stderr so the parent
    can relay it line by line.

    Example:
        ```python
        # echo '{"code": "print(1)"}' | python -u worker.py
        ```
    """
    req = json.loads(sys.stdin.read() or "{}")
    code: str = req.get("code", "")
    entry_point = str(req.get("entry_point") or DEFAULT_ENTRY_POINT)
    policy = req.get("policy", {})

    memory_limit_mb = int(policy.get("memory_limit_mb", 256))
    blocked_imports = set(policy.get("blocked_imports", []))
    blocked_builtins = set(policy.get("blocked_builtins", []))

    try:
        byte_code = compile(code, "<snippet>", "exec")
    except SyntaxError as exc:
        sys.stderr.write(f"SyntaxError: {exc.msg} (line {exc.lineno})\n")
        return 1

    for warning in _set_limits(memory_limit_mb):
        sys.stderr.write(f"{warning}\n")

    safe_import = _safe_import_factory(blocked_imports)
    exec_globals: dict[str, Any] = {
        "__builtins__": _build_safe_builtins(blocked_builtins, safe_import),
        "__name__": "__snippet__",
    }

    try:
        exec(byte_code, exec_globals, exec_globals)
        entry = exec_globals.get(entry_point)
        if callable(entry):
            entry()
        elif req.get("entry_point"):
            sys.stderr.write(f"Entry point '{entry_point}' is not defined\n")
            return 1
    except SystemExit as exc:
        if exc.code in (None, 0):
            return 0
        if isinstance(exc.code, int):
            return exc.code
        sys.stderr.write(f"{exc.code}\n")
        return 1
    except MemoryError:
        sys.stderr.write("Memory limit exceeded\n")
        return 2
    except Exception:
        traceback.print_exc()
        return 1
    finally:
        sys.stdout.flush()
        sys.stderr.flush()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
