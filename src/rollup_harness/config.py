"""Configuration for a verification run."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

from .constants import DEFAULT_GAS_PRICE_SCALE_PERCENT
from .errors import ErrorCode, HarnessError
from .types import Layer

_TRUTHY = ("true", "1", "yes")


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUTHY


def _url(value: Any) -> Optional[str]:
    return str(value) if value else None


@dataclass
class HarnessConfig:
    """Endpoints and mode flags, built once per run and passed explicitly."""

    l1_rpc: Optional[str] = None
    l2_rpc: Optional[str] = None

    # Fast mode disables assertions that need withdrawal finalization on L1.
    fast_mode: bool = False

    request_timeout: float = 30.0
    gas_price_scale_percent: int = DEFAULT_GAS_PRICE_SCALE_PERCENT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "HarnessConfig":
        """Load configuration from environment variables."""
        env = os.environ if environ is None else environ
        config = cls()

        config.l1_rpc = env.get("L1_RPC_URL") or None
        config.l2_rpc = env.get("L2_RPC_URL") or None
        config.fast_mode = _flag(env.get("ROLLUP_HARNESS_FAST_MODE", ""))

        try:
            if "ROLLUP_HARNESS_REQUEST_TIMEOUT" in env:
                config.request_timeout = float(env["ROLLUP_HARNESS_REQUEST_TIMEOUT"])
            if "ROLLUP_HARNESS_GAS_PRICE_SCALE" in env:
                config.gas_price_scale_percent = int(env["ROLLUP_HARNESS_GAS_PRICE_SCALE"])
        except ValueError as exc:
            raise HarnessError(ErrorCode.INVALID_CONFIG, str(exc)) from exc

        return config

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "HarnessConfig":
        """Load configuration from a YAML mapping with the field names as keys."""
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise HarnessError(ErrorCode.INVALID_CONFIG, f"{path}: {exc}") from exc
        if not isinstance(data, dict):
            raise HarnessError(ErrorCode.INVALID_CONFIG, f"{path}: expected a mapping")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise HarnessError(
                ErrorCode.INVALID_CONFIG, f"{path}: unknown keys {', '.join(unknown)}"
            )

        config = cls()
        config.l1_rpc = _url(data.get("l1_rpc"))
        config.l2_rpc = _url(data.get("l2_rpc"))
        config.fast_mode = _flag(data.get("fast_mode", False))

        try:
            if "request_timeout" in data:
                config.request_timeout = float(data["request_timeout"])
            if "gas_price_scale_percent" in data:
                config.gas_price_scale_percent = int(data["gas_price_scale_percent"])
        except (TypeError, ValueError) as exc:
            raise HarnessError(ErrorCode.INVALID_CONFIG, f"{path}: {exc}") from exc

        return config

    def endpoint(self, layer: Layer) -> str:
        url = self.l1_rpc if layer == Layer.L1 else self.l2_rpc
        if not url:
            raise HarnessError(ErrorCode.INVALID_CONFIG, f"no RPC endpoint for {layer.name}")
        return url
