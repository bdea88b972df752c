"""Value range for user overrides."""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field, model_validator

from mindful.core.utils.math import snap_to_step

SESSION_OVERRIDES_KEY = "yoga-session-customizations"
PROGRAM_OVERRIDES_KEY = "yoga-program-customizations"
OVERRIDES_VERSION = 1


class OverrideRange(BaseModel):
    """Allowed override values: multiples of ``step`` within ``[minimum, maximum]``.

    Defaults describe pose durations in seconds (15s steps, 15s-5min).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    step: int = Field(default=15, gt=0)
    minimum: int = Field(default=15)
    maximum: int = Field(default=300)

    @model_validator(mode="after")
    def _check_bounds(self) -> OverrideRange:
        if self.minimum > self.maximum:
            raise ValueError(f"minimum {self.minimum} exceeds maximum {self.maximum}")
        return self

    def normalize(self, raw: float) -> int:
        """Snap ``raw`` to the step grid and clamp into range.

        Infinities clamp to the nearer bound; NaN maps to ``minimum``.

        Example:
            >>> OverrideRange().normalize(52)
            45
            >>> OverrideRange().normalize(1000)
            300
            >>> OverrideRange().normalize(float("inf"))
            300
        """
        if isinstance(raw, float) and not math.isfinite(raw):
            if math.isnan(raw):
                return self.minimum
            return self.maximum if raw > 0 else self.minimum
        return snap_to_step(raw, self.step, self.minimum, self.maximum)

    def contains(self, value: int) -> bool:
        return self.minimum <= value <= self.maximum and value % self.step == 0
