"""LOD generation configuration and validation.

All checks here run before any document I/O. A config that passes
``LODConfig.validate()`` is guaranteed to produce chains whose coverage
list is exactly one longer than their alternate list.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from notso_lod.errors import ConfigError

COVERAGE_ORDERS: tuple[str, ...] = ("descending", "ascending")


@dataclass(frozen=True)
class LODLevel:
    """Simplification target for one LOD level."""

    ratio: float
    error: float


@dataclass(frozen=True)
class TextureSize:
    """Maximum texture dimensions for one LOD level."""

    width: int
    height: int

    def as_tuple(self) -> tuple[int, int]:
        return self.width, self.height

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass
class LODConfig:
    """Configuration for one LOD generation run.

    Attributes:
        levels: One entry per LOD level, highest detail first
        coverages: Screen coverage thresholds, ``len(levels) + 1`` values
        texture_sizes: Empty, or one target size per level
        interleaved: Write interleaved vertex buffers
        coverage_order: Expected monotonicity of ``coverages``
            ("descending", "ascending", or None to skip the check)
    """

    levels: list[LODLevel]
    coverages: list[float]
    texture_sizes: list[TextureSize] = field(default_factory=list)
    interleaved: bool = False
    coverage_order: str | None = "descending"

    @property
    def level_count(self) -> int:
        return len(self.levels)

    def validate(self) -> LODConfig:
        """Raise ConfigError if the config is inconsistent; return self."""
        for i, level in enumerate(self.levels, start=1):
            _validate_level(i, level)

        if len(self.coverages) != len(self.levels) + 1:
            raise ConfigError(
                f"expected {len(self.levels) + 1} coverage values for "
                f"{len(self.levels)} level(s), got {len(self.coverages)}"
            )
        for value in self.coverages:
            if not math.isfinite(value):
                raise ConfigError(f"coverage values must be finite, got {value}")
        _validate_coverage_order(self.coverages, self.coverage_order)

        if self.texture_sizes and len(self.texture_sizes) != len(self.levels):
            raise ConfigError(
                f"expected {len(self.levels)} texture size(s) to match the "
                f"levels, got {len(self.texture_sizes)}"
            )
        for size in self.texture_sizes:
            if size.width <= 0 or size.height <= 0:
                raise ConfigError(f"texture size must be positive, got {size}")

        return self

    @classmethod
    def from_strings(
        cls,
        ratio: str | None,
        error: str | None,
        coverage: str | None,
        texture: str | None = None,
        *,
        interleaved: bool = False,
        coverage_order: str | None = "descending",
    ) -> LODConfig:
        """
        Build a validated config from comma-separated option values.

        Example:
            LODConfig.from_strings("0.5,0.1", "0.01,0.05", "0.7,0.3,0.0",
                                   "512x512,128x128")
        """
        ratios = parse_float_list(ratio, "ratio")
        errors = parse_float_list(error, "error")
        if len(ratios) != len(errors):
            raise ConfigError(
                f"got {len(ratios)} ratio value(s) but {len(errors)} error value(s)"
            )

        config = cls(
            levels=[LODLevel(r, e) for r, e in zip(ratios, errors)],
            coverages=parse_float_list(coverage, "coverage"),
            texture_sizes=parse_texture_sizes(texture),
            interleaved=interleaved,
            coverage_order=coverage_order,
        )
        return config.validate()


def _validate_level(index: int, level: LODLevel) -> None:
    if isinstance(level.ratio, bool) or isinstance(level.error, bool):
        raise ConfigError(f"level {index}: ratio/error must be numbers, bool provided")
    if not (0.0 < level.ratio <= 1.0):
        raise ConfigError(f"level {index}: ratio must be in (0.0, 1.0], got {level.ratio}")
    if not (level.error >= 0.0) or not math.isfinite(level.error):
        raise ConfigError(f"level {index}: error must be >= 0, got {level.error}")


def _validate_coverage_order(coverages: list[float], order: str | None) -> None:
    if order is None:
        return
    if order not in COVERAGE_ORDERS:
        raise ConfigError(
            f"coverage order must be one of {', '.join(COVERAGE_ORDERS)}, got {order!r}"
        )
    pairs = list(zip(coverages, coverages[1:]))
    if order == "descending":
        ok = all(a >= b for a, b in pairs)
    else:
        ok = all(a <= b for a, b in pairs)
    if not ok:
        raise ConfigError(f"coverage values must be {order}, got {coverages}")


def parse_float_list(value: str | None, option: str) -> list[float]:
    """Parse "0.5,0.1" into floats. None or empty string yields []."""
    if not value:
        return []
    result: list[float] = []
    for part in value.split(","):
        try:
            result.append(float(part.strip()))
        except ValueError:
            raise ConfigError(f"{option}: not a number: {part!r}") from None
    return result


def parse_texture_sizes(value: str | None) -> list[TextureSize]:
    """Parse "512x512,128x128" into TextureSize entries."""
    if not value:
        return []
    sizes: list[TextureSize] = []
    for part in value.split(","):
        dims = part.strip().lower().split("x")
        if len(dims) != 2:
            raise ConfigError(f"texture: expected WIDTHxHEIGHT, got {part!r}")
        try:
            sizes.append(TextureSize(int(dims[0]), int(dims[1])))
        except ValueError:
            raise ConfigError(f"texture: expected integer sizes, got {part!r}") from None
    return sizes
