"""infragraph configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site - not in this module)
  2. Environment variables  (INFRAGRAPH_DB, INFRAGRAPH_LOG_LEVEL)
  3. Per-project infragraph.yaml
  4. Global ~/.infragraph/config.yaml
  5. Hardcoded defaults

All YAML reads use yaml.safe_load() - never yaml.load().
"""

from __future__ import annotations

import logging
import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from infragraph.graph.projector import (
    DEFAULT_DOMAIN_COLOR,
    DEFAULT_DOMAIN_STRENGTH_CAP,
    VIEW_FULL,
    VIEW_MODES,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".infragraph"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "infragraph.yaml"

DEFAULT_DB_PATH = ".infragraph.db"

_HEX_COLOR_RE: re.Pattern[str] = re.compile(r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")
_LOG_LEVELS: frozenset[str] = frozenset(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])

# Known top-level sections - unknown keys produce a warning
_KNOWN_SECTIONS: frozenset[str] = frozenset(["database", "builder", "graph", "logging"])


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class DatabaseCfg:
    """Catalogue database location (infragraph.yaml: database:)."""

    path: str = DEFAULT_DB_PATH


@dataclass
class BuilderCfg:
    """Connection builder policy (infragraph.yaml: builder:).

    Attributes:
        preserve_manual_connections: When true, a rebuild only replaces the
            edges it generated itself (connection_type 'domain'); manually
            entered 'direct' and 'inferred' edges are kept. When false every
            edge in the rebuild scope is deleted first.
    """

    preserve_manual_connections: bool = True


@dataclass
class GraphCfg:
    """Graph projection defaults (infragraph.yaml: graph:)."""

    view_mode: str = VIEW_FULL  # full | domains
    include_isolated: bool = False
    domain_color: str = DEFAULT_DOMAIN_COLOR
    domain_strength_cap: float = DEFAULT_DOMAIN_STRENGTH_CAP


@dataclass
class LoggingCfg:
    """Log verbosity (infragraph.yaml: logging:)."""

    level: str = "WARNING"

    @property
    def level_no(self) -> int:
        return logging.getLevelName(self.level)


@dataclass
class InfragraphConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    database: DatabaseCfg = field(default_factory=DatabaseCfg)
    builder: BuilderCfg = field(default_factory=BuilderCfg)
    graph: GraphCfg = field(default_factory=GraphCfg)
    logging: LoggingCfg = field(default_factory=LoggingCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' - ignored.",
                UserWarning,
                stacklevel=4,
            )


def _validate(cfg: InfragraphConfig) -> None:
    """Raise ConfigError on values the engine cannot run with."""
    if cfg.graph.view_mode not in VIEW_MODES:
        raise ConfigError(
            f"graph.view_mode must be one of {', '.join(VIEW_MODES)}, "
            f"got '{cfg.graph.view_mode}'"
        )
    if cfg.graph.domain_strength_cap <= 0:
        raise ConfigError(
            f"graph.domain_strength_cap must be > 0, got {cfg.graph.domain_strength_cap}"
        )
    if not _HEX_COLOR_RE.match(cfg.graph.domain_color):
        raise ConfigError(
            f"graph.domain_color must be a hex colour like '#409eff', "
            f"got '{cfg.graph.domain_color}'"
        )
    if cfg.logging.level not in _LOG_LEVELS:
        raise ConfigError(
            f"logging.level must be one of {', '.join(sorted(_LOG_LEVELS))}, "
            f"got '{cfg.logging.level}'"
        )
    if not cfg.database.path:
        raise ConfigError("database.path must not be empty")


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> InfragraphConfig:
    """Build an *InfragraphConfig* from a merged raw YAML dict."""
    cfg = InfragraphConfig()

    if "database" in data:
        d = data["database"] or {}
        cfg.database = DatabaseCfg(path=str(d.get("path", cfg.database.path)))

    if "builder" in data:
        b = data["builder"] or {}
        cfg.builder = BuilderCfg(
            preserve_manual_connections=bool(
                b.get("preserve_manual_connections", cfg.builder.preserve_manual_connections)
            ),
        )

    if "graph" in data:
        g = data["graph"] or {}
        cfg.graph = GraphCfg(
            view_mode=str(g.get("view_mode", cfg.graph.view_mode)),
            include_isolated=bool(g.get("include_isolated", cfg.graph.include_isolated)),
            domain_color=str(g.get("domain_color", cfg.graph.domain_color)),
            domain_strength_cap=float(
                g.get("domain_strength_cap", cfg.graph.domain_strength_cap)
            ),
        )

    if "logging" in data:
        lg = data["logging"] or {}
        cfg.logging = LoggingCfg(level=str(lg.get("level", cfg.logging.level)).upper())

    return cfg


def _apply_env_overrides(cfg: InfragraphConfig) -> InfragraphConfig:
    """Apply INFRAGRAPH_* environment variable overrides (layer 2)."""
    if db_path := os.environ.get("INFRAGRAPH_DB"):
        cfg.database.path = db_path
    if level := os.environ.get("INFRAGRAPH_LOG_LEVEL"):
        cfg.logging.level = level.upper()
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> InfragraphConfig:
    """Load and return a merged *InfragraphConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *infragraph.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Returns:
        Fully merged *InfragraphConfig* with env var overrides applied.

    Raises:
        ConfigError: If any merged value is invalid (unknown view mode,
            non-positive strength cap, bad colour, unknown log level).
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    # Layer 1: global config
    if global_path.exists():
        raw_global = yaml.safe_load(global_path.read_text(encoding="utf-8")) or {}
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    # Layer 2: per-project config
    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = yaml.safe_load(project_cfg_path.read_text(encoding="utf-8")) or {}
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    try:
        cfg = _cfg_from_dict(merged)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid config value: {exc}") from exc

    # Layer 3: env var overrides
    cfg = _apply_env_overrides(cfg)

    _validate(cfg)
    return cfg


def ensure_project_config(project_dir: Path | None = None) -> Path:
    """Create ``infragraph.yaml`` with commented defaults if it does not exist.

    Args:
        project_dir: Target directory. Defaults to CWD.

    Returns:
        Path to the project config file.
    """
    target = (project_dir if project_dir is not None else Path.cwd()) / _PROJECT_CONFIG_NAME

    if not target.exists():
        content = (
            "# infragraph project configuration.\n"
            "\n"
            "database:\n"
            f"  path: {DEFAULT_DB_PATH}\n"
            "\n"
            "builder:\n"
            "  # false = a rebuild also deletes manually entered connections\n"
            "  preserve_manual_connections: true\n"
            "\n"
            "graph:\n"
            "  view_mode: full          # full | domains\n"
            "  include_isolated: false\n"
            f"  domain_color: '{DEFAULT_DOMAIN_COLOR}'\n"
            f"  domain_strength_cap: {DEFAULT_DOMAIN_STRENGTH_CAP}\n"
            "\n"
            "logging:\n"
            "  level: WARNING\n"
        )
        target.write_text(content, encoding="utf-8")

    return target
