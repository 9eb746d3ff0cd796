"""
Engine settings loader and file watcher.

- Engine settings from <CONFIG_DIR>/exporter.yaml (paths, schedule, env prefix, logging, admin server).
- Environment variable injection: ${ENV_VAR} replacement in YAML values.
- Missing exporter.yaml: all defaults.
- File watcher: watchdog observer calling back when the properties file is modified.
"""

import os
import re
from pathlib import Path
from typing import Any, Callable

import yaml
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from metrics_exporter.config.schemas import EngineSettings

ENGINE_SETTINGS_FILE = "exporter.yaml"

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


def _substitute_env(value: Any) -> Any:
    """Replace ${VAR} and $VAR in strings; recurse into dict/list. Unset variables are left as written."""
    if isinstance(value, str):
        def repl(m: re.Match[str]) -> str:
            name = m.group(1) or m.group(2) or ""
            return os.environ.get(name, m.group(0))
        return _ENV_PATTERN.sub(repl, value)
    if isinstance(value, dict):
        return {k: _substitute_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env(v) for v in value]
    return value


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML mapping with env substitution; missing file -> {}."""
    if not path.exists():
        return {}
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top-level YAML must be a mapping, got {type(data).__name__}")
    return _substitute_env(data)


def _config_dir(config_dir: str | None) -> Path:
    """Explicit argument, else CONFIG_DIR env, else 'conf'."""
    return Path(config_dir or os.environ.get("CONFIG_DIR", "conf")).resolve()


def load_engine_settings(config_dir: str | None = None) -> EngineSettings:
    """
    Load and validate engine settings.

    Args:
        config_dir: Override config directory (default CONFIG_DIR env or 'conf').

    Returns:
        Validated EngineSettings; config_dir is always the directory actually used.

    Raises:
        ValidationError: exporter.yaml holds invalid values.
    """
    base = _config_dir(config_dir)
    data = _load_yaml(base / ENGINE_SETTINGS_FILE)
    data["config_dir"] = str(base)
    return EngineSettings.model_validate(data)


def properties_path(settings: EngineSettings) -> Path:
    """Absolute path of the backing properties file."""
    return Path(settings.config_dir).resolve() / settings.properties_file


class _PropertiesFileHandler(FileSystemEventHandler):
    def __init__(self, path: Path, callback: Callable[[str, str], None]):
        super().__init__()
        self._path = path
        self._callback = callback

    def _dispatch_if_ours(self, event_type: str, src_path: str) -> None:
        if Path(src_path).resolve() == self._path:
            self._callback(event_type, src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._dispatch_if_ours("modified", str(event.src_path))

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._dispatch_if_ours("created", str(event.src_path))

    def on_moved(self, event: FileSystemEvent) -> None:
        # Editors that save via rename show up as a move onto the watched path.
        if not event.is_directory:
            self._dispatch_if_ours("moved", str(event.dest_path))


def start_file_watcher(path: Path, callback: Callable[[str, str], None]) -> Any | None:
    """
    Start a watchdog observer on the file's directory; call callback(event_type, path) on change.

    Returns the started observer (caller stops and joins it), or None when the directory does not exist.
    """
    path = path.resolve()
    if not path.parent.exists():
        return None
    observer = Observer()
    observer.daemon = True
    observer.schedule(_PropertiesFileHandler(path, callback), str(path.parent), recursive=False)
    observer.start()
    return observer
