"""Configuration for building a LinUCB model from env vars or YAML files."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from linbandit.bandit.errors import InvalidConfiguration
from linbandit.bandit.hybrid import HybridLinUCB
from linbandit.bandit.linucb import ContextualPolicy, LinUCB


@dataclass
class BanditConfig:
    d: int
    n_arms: int
    alpha: float = 1.0
    k: int = 0                  # shared features; 0 means disjoint LinUCB
    seed: Optional[int] = None
    log_level: str = "WARNING"

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "BanditConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise InvalidConfiguration(f"unknown config keys: {unknown}")
        missing = sorted(k for k in ("d", "n_arms") if k not in raw)
        if missing:
            raise InvalidConfiguration(f"missing config keys: {missing}")
        return cls(**raw)

    @classmethod
    def from_env(cls, prefix: str = "LINBANDIT_", environ: Optional[Dict[str, str]] = None) -> "BanditConfig":
        """
        Read LINBANDIT_D, LINBANDIT_N_ARMS, LINBANDIT_ALPHA, LINBANDIT_K,
        LINBANDIT_SEED and LINBANDIT_LOG_LEVEL.
        """
        env = os.environ if environ is None else environ
        casts = {"d": int, "n_arms": int, "alpha": float, "k": int, "seed": int, "log_level": str}
        raw: Dict[str, Any] = {}
        for name, cast in casts.items():
            value = env.get(prefix + name.upper())
            if value is None or value == "":
                continue
            try:
                raw[name] = cast(value)
            except ValueError as exc:
                raise InvalidConfiguration(f"{prefix}{name.upper()}={value!r}: {exc}") from exc
        return cls.from_dict(raw)


def _load_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r") as handle:
        return yaml.safe_load(handle) or {}


def _merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    result = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and key in result and isinstance(result[key], dict):
            result[key] = _merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


def _resolve_yaml_like(p: Path) -> Path:
    """Accept 'base', 'base.yaml' or 'base.yml' for a defaults entry."""
    p = p.resolve()
    if p.is_file():
        return p
    if not p.suffix:
        for suffix in (".yaml", ".yml"):
            candidate = p.with_suffix(suffix)
            if candidate.is_file():
                return candidate
    raise FileNotFoundError(f"Could not resolve defaults include: {p}")


def load_config(path: Union[str, Path]) -> BanditConfig:
    """
    Load a YAML config. A top-level `defaults:` list names other YAML files
    (relative to this one) merged underneath, in order.
    """
    return BanditConfig.from_dict(_load_raw(Path(path)))


def _load_raw(path: Path) -> Dict[str, Any]:
    cfg = _load_yaml(path)
    if not isinstance(cfg, dict):
        raise InvalidConfiguration(f"{path}: expected a mapping, got {type(cfg).__name__}")
    if "defaults" in cfg:
        defaults_list = cfg.pop("defaults")
        if not isinstance(defaults_list, (list, tuple)):
            raise InvalidConfiguration(f"'defaults' must be a list, got: {type(defaults_list)}")
        merged: Dict[str, Any] = {}
        for default in defaults_list:
            if not isinstance(default, str):
                raise InvalidConfiguration(f"defaults entries must be strings, got: {type(default)} in {path}")
            merged = _merge_dicts(merged, _load_raw(_resolve_yaml_like(path.parent / default)))
        cfg = _merge_dicts(merged, cfg)
    return cfg


def build_policy(cfg: BanditConfig) -> ContextualPolicy:
    if cfg.k:
        return HybridLinUCB(d=cfg.d, k=cfg.k, n_arms=cfg.n_arms, alpha=cfg.alpha, rng=cfg.seed)
    return LinUCB(d=cfg.d, n_arms=cfg.n_arms, alpha=cfg.alpha, rng=cfg.seed)


def configure_logging(level: Union[str, int] = "WARNING") -> None:
    """Install a stderr handler and set the level of the linbandit loggers."""
    if isinstance(level, str):
        level = level.upper()
    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger("linbandit").setLevel(level)


def policy_from_config(cfg: BanditConfig) -> ContextualPolicy:
    """Apply the logging level of `cfg`, then build its model."""
    configure_logging(cfg.log_level)
    return build_policy(cfg)
