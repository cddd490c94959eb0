"""Configuration loader for nestable.toml."""

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

NEST_NAME = ".notebook.nest"


@dataclass
class NestConfig:
    """Location of the nest database."""
    path: Path


@dataclass
class SearchConfig:
    """Full-text search configuration."""
    stop_words: list[str] = field(default_factory=list)
    snippet_tokens: int = 20
    limit: int = 50


@dataclass
class WebConfig:
    """Web viewer configuration."""
    host: str = "127.0.0.1"
    port: int = 3000


@dataclass
class ExportConfig:
    """Export configuration."""
    out: Path | None = None


@dataclass
class UIConfig:
    """UI configuration."""
    colors: bool = True
    head_length: int = 80


@dataclass
class NestableConfig:
    """Complete nestable configuration."""
    nest: NestConfig
    search: SearchConfig
    web: WebConfig
    export: ExportConfig
    ui: UIConfig


def default_nest_path(home: Path | None = None) -> Path:
    """
    Pick the nest used when none is configured.

    A nest in the working directory wins over the one in the home directory;
    when neither exists the home location is returned so `init` creates it there.
    """
    local = Path.cwd() / NEST_NAME
    if local.exists():
        return local
    return (home or Path.home()) / NEST_NAME


def load_config(config_path: Path | None = None, home: Path | None = None) -> NestableConfig:
    """
    Load configuration from nestable.toml.

    Search order:
    1. config_path (if provided)
    2. cwd/nestable.toml
    3. ~/.nestable.toml

    Args:
        config_path: Explicit path to config file
        home: Home directory override, mostly for tests

    Returns:
        NestableConfig with resolved settings
    """
    toml_data: dict[str, Any] = {}
    home = home or Path.home()

    search_paths = []
    if config_path:
        search_paths.append(config_path)
    search_paths.append(Path.cwd() / "nestable.toml")
    search_paths.append(home / ".nestable.toml")

    for path in search_paths:
        if path.exists():
            with open(path, "rb") as f:
                toml_data = tomllib.load(f)
            break

    nest_data = toml_data.get("nest", {})
    if "path" in nest_data:
        nest_path = Path(nest_data["path"]).expanduser()
    else:
        nest_path = default_nest_path(home)

    search_data = toml_data.get("search", {})
    search_config = SearchConfig(
        stop_words=list(search_data.get("stop_words", [])),
        snippet_tokens=search_data.get("snippet_tokens", 20),
        limit=search_data.get("limit", 50),
    )

    web_data = toml_data.get("web", {})
    web_config = WebConfig(
        host=web_data.get("host", "127.0.0.1"),
        port=web_data.get("port", 3000),
    )

    export_data = toml_data.get("export", {})
    export_out = export_data.get("out")
    export_config = ExportConfig(out=Path(export_out) if export_out else None)

    ui_data = toml_data.get("ui", {})
    ui_config = UIConfig(
        colors=ui_data.get("colors", True),
        head_length=ui_data.get("head_length", 80),
    )

    return NestableConfig(
        nest=NestConfig(path=nest_path),
        search=search_config,
        web=web_config,
        export=export_config,
        ui=ui_config,
    )
