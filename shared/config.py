"""
Hoontr Configuration Management
================================

Centralized configuration for the Hoontr scanner using Python dataclasses
and TOML-based persistence.

Command-line flags always take precedence; the TOML file only supplies
defaults for options the user did not pass.

References:
    - Wiggins, A. (2011). The Twelve-Factor App. https://12factor.net/
    - TOML v1.0.0 Specification. https://toml.io/en/v1.0.0
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[no-redef]


# ---------------------------------------------------------------------------
# Default configuration file path relative to the project root
# ---------------------------------------------------------------------------
_DEFAULT_CONFIG_PATH: Path = Path(__file__).resolve().parent.parent / "config.toml"


# ========================== Tool-Specific Config ===========================


@dataclass(frozen=False, slots=True)
class ScannerConfig:
    """Defaults for the Hoontr scan pipeline.

    ``workers = 0`` means one worker per logical CPU.  ``max_file_size``
    bounds how much a single worker reads into memory; larger files are
    reported as unreadable.
    """

    default_path: str = r"C:\Windows\System32"
    recurse: bool = False
    include_all_pe: bool = False
    arch: str = "all"
    workers: int = 0
    max_file_size: int = 268_435_456  # 256 MiB
    no_cfg: bool = False
    match_case: bool = False


# =========================== Global Settings ===============================


@dataclass(frozen=False, slots=True)
class GlobalConfig:
    """Logging and output settings."""

    log_level: str = "WARNING"
    log_file: str | None = None
    log_json: bool = False
    show_banner: bool = True
    debug: bool = False


# =========================== Master Config =================================


@dataclass(frozen=False, slots=True)
class HoontrConfig:
    """Master configuration aggregating global and scanner settings.

    Usage:
        >>> config = HoontrConfig.load()                  # from default path
        >>> config = HoontrConfig.load("custom.toml")     # from custom path
        >>> config.scanner.arch
        'all'
    """

    global_settings: GlobalConfig = field(default_factory=GlobalConfig)
    scanner: ScannerConfig = field(default_factory=ScannerConfig)

    # ------------------------------------------------------------------ #
    #  TOML Loading
    # ------------------------------------------------------------------ #

    @classmethod
    def load(cls, path: str | Path | None = None) -> HoontrConfig:
        """Load configuration from a TOML file.

        If *path* is ``None`` the loader looks for ``config.toml`` in the
        project root.  Missing keys fall back to dataclass defaults.

        The file has two tables::

            [global]
            log_level = "INFO"

            [hoontr]
            workers = 8
            include_all_pe = true

        Args:
            path: Filesystem path to a TOML configuration file.

        Returns:
            A fully-populated :class:`HoontrConfig` instance.

        Raises:
            FileNotFoundError: If *path* was given explicitly and does
                not exist.
            tomllib.TOMLDecodeError: If the file is not valid TOML.
        """
        config_path = Path(path) if path is not None else _DEFAULT_CONFIG_PATH

        if not config_path.exists():
            if path is not None:
                raise FileNotFoundError(
                    f"Configuration file not found: {config_path}"
                )
            return cls()

        with open(config_path, "rb") as fh:
            raw: dict[str, Any] = tomllib.load(fh)

        return cls(
            global_settings=cls._build_section(GlobalConfig, raw.get("global", {})),
            scanner=cls._build_section(ScannerConfig, raw.get("hoontr", {})),
        )

    # ------------------------------------------------------------------ #
    #  Serialisation helpers
    # ------------------------------------------------------------------ #

    def to_dict(self) -> dict[str, Any]:
        """Serialise the entire configuration tree to a plain dictionary."""
        return asdict(self)

    # ------------------------------------------------------------------ #
    #  Internal helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _build_section(cls: type, data: dict[str, Any]) -> Any:
        """Instantiate a dataclass *cls* using only the keys it declares.

        Unknown keys in the TOML source are silently ignored.
        """
        valid_keys = {f.name for f in cls.__dataclass_fields__.values()}  # type: ignore[attr-defined]
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        return cls(**filtered)
