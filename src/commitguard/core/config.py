"""Configuration management for commitguard (commitguard.toml + environment)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping

from commitguard.core.errors import ConfigError
from commitguard.core.models import CancelPolicy, ReviewMode, Severity

try:
    import tomllib
except ImportError:
    try:
        import tomli as tomllib  # type: ignore[no-redef]
    except ImportError:
        tomllib = None  # type: ignore[assignment]

logger = logging.getLogger("commitguard.config")

CONFIG_FILENAME = "commitguard.toml"
SKIP_ENV_VAR = "COMMITGUARD_SKIP"

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")


@dataclass(frozen=True)
class ScanConfig:
    exclude: tuple[str, ...] = (
        "package-lock.json",
        "yarn.lock",
        "pnpm-lock.yaml",
        ".gitignore",
        ".env",
        ".env.local",
        ".env.example",
        "node_modules/",
        ".git/",
        "dist/",
        "build/",
        ".next/",
        "coverage/",
        "*.min.js",
        "*.map",
        ".DS_Store",
        "Thumbs.db",
    )
    disabled_rules: tuple[str, ...] = ()
    severity: dict[str, Severity] = field(default_factory=dict)


@dataclass(frozen=True)
class FixConfig:
    backup_suffix: str = ".guard-backup"
    auto_recommit: bool = True
    commit_message: str | None = None


@dataclass(frozen=True)
class ReviewConfig:
    """Policy for the confirmation controller.

    Attributes:
        default_on_cancel: Resolution applied when a prompt times out, is
                           closed, or cannot be shown at all.
        prompt_timeout_ms: Upper bound on a single prompt; ``0`` waits forever.
        force_prompt:      Prompt even when stdin/stdout are not terminals.
        simulate:          Fixed answer for headless runs. When set, no prompt
                           is ever shown.
        mode:              Review granularity (whole session, per file, per fix).
        auto_open_editor:  Open files at actionable issues that have no fix.
        show_diff:         Render literal before/after text of each fix.
        editor_timeout_ms: How long to wait on the editor launcher.
    """

    default_on_cancel: CancelPolicy = CancelPolicy.SKIP
    prompt_timeout_ms: int = 30000
    force_prompt: bool = False
    simulate: str | None = None
    mode: ReviewMode = ReviewMode.FILE
    auto_open_editor: bool = False
    show_diff: bool = True
    editor_timeout_ms: int = 2000


@dataclass(frozen=True)
class RemoteConfig:
    api_key: str | None = None
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 1000
    timeout_ms: int = 30000
    skip_on_rate_limit: bool = False

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)


@dataclass(frozen=True)
class GuardConfig:
    """Complete commitguard configuration."""

    scan: ScanConfig = field(default_factory=ScanConfig)
    fix: FixConfig = field(default_factory=FixConfig)
    review: ReviewConfig = field(default_factory=ReviewConfig)
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    log_level: str = "WARNING"
    source_file: Path | None = None


def load_config(
    project_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> GuardConfig:
    """Build the configuration from defaults, commitguard.toml, then the environment."""
    if project_path is None:
        project_path = Path.cwd()
    if environ is None:
        environ = os.environ

    config = GuardConfig()
    config_file = project_path / CONFIG_FILENAME
    if config_file.exists():
        config = _apply_toml(config, _read_toml(config_file))
        config = replace(config, source_file=config_file)

    return _apply_env(config, environ)


def is_hook_skipped(environ: Mapping[str, str] | None = None) -> bool:
    """Return True when the hook bypass variable is active."""
    if environ is None:
        environ = os.environ
    return environ.get(SKIP_ENV_VAR, "").strip().lower() in _TRUE


def _read_toml(config_file: Path) -> dict[str, Any]:
    if tomllib is None:
        logger.warning("No TOML parser available; ignoring %s", config_file)
        return {}
    try:
        with open(config_file, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid {config_file.name}: {exc}") from exc


def _apply_toml(config: GuardConfig, data: dict[str, Any]) -> GuardConfig:
    scan = config.scan
    if "scan" in data:
        s = data["scan"]
        if "exclude" in s:
            scan = replace(scan, exclude=tuple(s["exclude"]))
        if "disabled_rules" in s:
            scan = replace(scan, disabled_rules=tuple(s["disabled_rules"]))
        overrides = {}
        for rule_id, value in s.get("severity", {}).items():
            severity = _parse_enum(Severity, value, f"scan.severity.{rule_id}")
            if severity is not None:
                overrides[rule_id] = severity
        if overrides:
            scan = replace(scan, severity=overrides)

    fix = config.fix
    if "fix" in data:
        fx = data["fix"]
        if "backup_suffix" in fx:
            fix = replace(fix, backup_suffix=fx["backup_suffix"])
        if "auto_recommit" in fx:
            fix = replace(fix, auto_recommit=bool(fx["auto_recommit"]))
        if "commit_message" in fx:
            fix = replace(fix, commit_message=fx["commit_message"])

    review = config.review
    if "review" in data:
        r = data["review"]
        changes: dict[str, Any] = {}
        if "default_on_cancel" in r:
            policy = _parse_enum(CancelPolicy, r["default_on_cancel"], "review.default_on_cancel")
            if policy is not None:
                changes["default_on_cancel"] = policy
        if "mode" in r:
            mode = _parse_enum(ReviewMode, r["mode"], "review.mode")
            if mode is not None:
                changes["mode"] = mode
        for attr in ("prompt_timeout_ms", "editor_timeout_ms"):
            if attr in r:
                changes[attr] = max(0, int(r[attr]))
        for attr in ("force_prompt", "auto_open_editor", "show_diff"):
            if attr in r:
                changes[attr] = bool(r[attr])
        if "simulate" in r:
            changes["simulate"] = str(r["simulate"])
        review = replace(review, **changes)

    remote = config.remote
    if "remote" in data:
        rm = data["remote"]
        for attr in ("model", "max_tokens", "timeout_ms", "skip_on_rate_limit"):
            if attr in rm:
                remote = replace(remote, **{attr: rm[attr]})

    log_level = data.get("general", {}).get("log_level", config.log_level)

    return replace(config, scan=scan, fix=fix, review=review, remote=remote, log_level=log_level)


def _apply_env(config: GuardConfig, environ: Mapping[str, str]) -> GuardConfig:
    review_changes: dict[str, Any] = {}

    policy = _parse_enum(CancelPolicy, environ.get("AI_DEFAULT_ON_CANCEL"), "AI_DEFAULT_ON_CANCEL")
    if policy is not None:
        review_changes["default_on_cancel"] = policy

    mode = _parse_enum(ReviewMode, environ.get("AI_REVIEW_MODE"), "AI_REVIEW_MODE")
    if mode is not None:
        review_changes["mode"] = mode

    timeout = _env_int(environ, "AI_PROMPT_TIMEOUT_MS")
    if timeout is not None:
        review_changes["prompt_timeout_ms"] = max(0, timeout)

    for env_name, attr in (
        ("AI_FORCE_PROMPT", "force_prompt"),
        ("AI_AUTO_OPEN_EDITOR", "auto_open_editor"),
        ("AI_SHOW_DIFF", "show_diff"),
    ):
        flag = _env_bool(environ, env_name)
        if flag is not None:
            review_changes[attr] = flag

    simulate = environ.get("AI_NONINTERACTIVE_CHOICE", "").strip()
    if simulate:
        review_changes["simulate"] = simulate

    fix_changes: dict[str, Any] = {}
    recommit = _env_bool(environ, "AI_AUTO_RECOMMIT")
    if recommit is not None:
        fix_changes["auto_recommit"] = recommit
    if environ.get("COMMIT_MSG"):
        fix_changes["commit_message"] = environ["COMMIT_MSG"]

    remote_changes: dict[str, Any] = {}
    if environ.get("ANTHROPIC_API_KEY"):
        remote_changes["api_key"] = environ["ANTHROPIC_API_KEY"]
    if environ.get("AI_MODEL"):
        remote_changes["model"] = environ["AI_MODEL"]
    api_timeout = _env_int(environ, "API_TIMEOUT")
    if api_timeout is not None:
        remote_changes["timeout_ms"] = max(1, api_timeout)
    skip_rate = _env_bool(environ, "SKIP_ON_RATE_LIMIT")
    if skip_rate is not None:
        remote_changes["skip_on_rate_limit"] = skip_rate

    log_level = environ.get("LOG_LEVEL", "").strip().upper() or config.log_level

    return replace(
        config,
        review=replace(config.review, **review_changes),
        fix=replace(config.fix, **fix_changes),
        remote=replace(config.remote, **remote_changes),
        log_level=log_level,
    )


def _parse_enum(enum_cls, value: Any, name: str):
    if value is None or str(value).strip() == "":
        return None
    raw = str(value).strip().lower()
    # accept "auto_apply" as well as "auto-apply"
    for candidate in (raw, raw.replace("_", "-")):
        try:
            return enum_cls(candidate)
        except ValueError:
            continue
    logger.warning("Ignoring invalid value %r for %s", value, name)
    return None


def _env_bool(environ: Mapping[str, str], name: str) -> bool | None:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return None
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    logger.warning("Ignoring invalid boolean %r for %s", raw, name)
    return None


def _env_int(environ: Mapping[str, str], name: str) -> int | None:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw.strip())
    except ValueError:
        logger.warning("Ignoring invalid integer %r for %s", raw, name)
        return None
