"""Where specgraph keeps its files and how settings are layered.

Directories follow the XDG base directory layout on Linux and the BSDs and
live under ``~/.specgraph/`` everywhere else:

=========  ================================  ========================
purpose    XDG location                      fallback
=========  ================================  ========================
config     ``$XDG_CONFIG_HOME/specgraph``    ``~/.specgraph``
cache      ``$XDG_CACHE_HOME/specgraph``     ``~/.specgraph/cache``
data       ``$XDG_DATA_HOME/specgraph``      ``~/.specgraph/data``
=========  ================================  ========================

The data directory holds the default graph, the tool index and crash logs;
the cache directory holds downloaded OpenAPI documents.

Settings come from :class:`~specgraph.models.GlobalConfig` (``config.json``
in the config directory), an optional ``./specgraph.json`` next to the
project, ``SPECGRAPH_*`` environment variables and CLI flags. See
:func:`resolve_config` for the order.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from specgraph.exceptions import ConfigError
from specgraph.models import GlobalConfig

_APP_NAME = "specgraph"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "specgraph.json"

ENV_GRAPH = "SPECGRAPH_GRAPH"
ENV_TOOLS = "SPECGRAPH_TOOLS"

DEFAULT_GRAPH_FILENAME = "dependency-graph.json"
DEFAULT_TOOL_INDEX_FILENAME = "tool-index.json"

# purpose -> (XDG variable, default below $HOME, subdirectory of ~/.specgraph)
_DIRECTORIES: dict[str, tuple[str, tuple[str, ...], Optional[str]]] = {
    "config": ("XDG_CONFIG_HOME", (".config",), None),
    "cache": ("XDG_CACHE_HOME", (".cache",), "cache"),
    "data": ("XDG_DATA_HOME", (".local", "share"), "data"),
}


def _is_xdg_platform() -> bool:
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(purpose: str) -> Path:
    """Resolve and create the directory used for *purpose*."""
    env_var, home_default, fallback_sub = _DIRECTORIES[purpose]
    if _is_xdg_platform():
        root = os.environ.get(env_var) or str(Path.home().joinpath(*home_default))
        path = Path(root) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
        if fallback_sub:
            path = path / fallback_sub
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    return _app_dir("config")


def get_cache_dir() -> Path:
    """Directory for downloaded specs; safe to delete at any time."""
    return _app_dir("cache")


def get_data_dir() -> Path:
    return _app_dir("data")


def _atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* in one rename.

    The text is written to a hidden sibling file, synced and then moved over
    *path*, so readers see either the old document or the new one. The
    sibling is removed when anything fails.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        mode="w",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
        encoding="utf-8",
    )
    try:
        with handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(handle.name, path)
    except BaseException:
        Path(handle.name).unlink(missing_ok=True)
        raise


def load_global_config() -> GlobalConfig:
    """Read ``config.json`` from the config directory.

    A missing file yields the defaults.

    Raises:
        ConfigError: The file is not valid JSON or does not match
            :class:`~specgraph.models.GlobalConfig`.
    """
    path = get_config_dir() / _CONFIG_FILENAME
    if not path.is_file():
        return GlobalConfig()
    try:
        return GlobalConfig.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except ValueError as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    text = json.dumps(config.model_dump(mode="json"), indent=2) + "\n"
    _atomic_write(get_config_dir() / _CONFIG_FILENAME, text)


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./specgraph.json``.

    Recognised keys are ``graph_path``, ``tool_index_path`` and
    ``max_depth``; relative paths are resolved against the current
    directory.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def resolve_config(
    cli_graph: Optional[str] = None,
    cli_tools: Optional[str] = None,
    cli_format: Optional[str] = None,
) -> GlobalConfig:
    """Resolve the effective configuration.

    Precedence (high to low):
        1. CLI flags (``--graph``, ``--tools``, output format flags)
        2. Environment variables (``SPECGRAPH_GRAPH``, ``SPECGRAPH_TOOLS``)
        3. Project config (``./specgraph.json``)
        4. User config (``~/.config/specgraph/config.json``)
        5. Defaults (graph in :func:`get_data_dir`, tool index next to
           the graph)

    Returns:
        A :class:`~specgraph.models.GlobalConfig` whose ``graph`` section
        always carries concrete ``graph_path`` and ``tool_index_path``.
    """
    cfg = load_global_config()

    project = load_project_config()
    if project is not None:
        if project.get("graph_path"):
            cfg.graph.graph_path = str(Path(project["graph_path"]).resolve())
        if project.get("tool_index_path"):
            cfg.graph.tool_index_path = str(Path(project["tool_index_path"]).resolve())
        if project.get("max_depth") is not None:
            try:
                cfg.graph.max_depth = int(project["max_depth"])
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"Invalid max_depth in project config: {exc}") from exc

    env_graph = os.environ.get(ENV_GRAPH)
    if env_graph:
        cfg.graph.graph_path = env_graph
    env_tools = os.environ.get(ENV_TOOLS)
    if env_tools:
        cfg.graph.tool_index_path = env_tools

    if cli_graph is not None:
        cfg.graph.graph_path = cli_graph
    if cli_tools is not None:
        cfg.graph.tool_index_path = cli_tools
    if cli_format is not None:
        cfg.output.format = cli_format

    if not cfg.graph.graph_path:
        cfg.graph.graph_path = str(get_data_dir() / DEFAULT_GRAPH_FILENAME)
    if not cfg.graph.tool_index_path:
        graph_dir = Path(cfg.graph.graph_path).parent
        cfg.graph.tool_index_path = str(graph_dir / DEFAULT_TOOL_INDEX_FILENAME)

    return cfg
