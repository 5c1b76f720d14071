"""Runtime configuration for the PDFium adapter."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Mapping, Optional

ENV_PREFIX = "PDFIUM_ADAPTER_"
_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(value: str) -> bool:
    return value.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class AdapterConfig:
    """
    Rendering and text-layout settings shared by a document and its pages.

    Attributes:
        dpi_x: Horizontal resolution the host lays pages out at
        dpi_y: Vertical resolution the host lays pages out at
        render_annotations: Draw annotation appearances when rasterizing
        lcd_text: Use LCD-optimised text anti-aliasing
        reverse_byte_order: Produce RGBA instead of the engine's native BGRA
        zero_size_tolerance: Glyph boxes at or below this size are control characters
        toc_max_depth: Maximum outline nesting followed when building the synopsis
    """

    dpi_x: float = 72.0
    dpi_y: float = 72.0
    render_annotations: bool = True
    lcd_text: bool = True
    reverse_byte_order: bool = True
    zero_size_tolerance: float = 1e-5
    toc_max_depth: int = 64

    @property
    def pixel_format(self) -> str:
        return "RGBA" if self.reverse_byte_order else "BGRA"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AdapterConfig":
        """Build a configuration from ``PDFIUM_ADAPTER_*`` environment variables.

        Unset variables keep their defaults; values that do not parse raise
        :class:`ValueError` naming the variable.
        """
        environ = os.environ if environ is None else environ
        overrides = {}
        for field_info in fields(cls):
            env_name = ENV_PREFIX + field_info.name.upper()
            raw = environ.get(env_name)
            if raw is None:
                continue
            default = field_info.default
            try:
                if isinstance(default, bool):
                    overrides[field_info.name] = _env_flag(raw)
                elif isinstance(default, int):
                    overrides[field_info.name] = int(raw)
                else:
                    overrides[field_info.name] = float(raw)
            except ValueError as exc:
                raise ValueError(f"Invalid value for {env_name}: {raw!r}") from exc
        return cls(**overrides)


DEFAULT_CONFIG = AdapterConfig()
