"""Configuration management for benchwatch.

This module provides the detection configuration (threshold policy,
baseline policy and per-benchmark metric direction) loaded from YAML,
and the environment-driven Settings used by the command line.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing_extensions import Self

from benchwatch.core.exceptions import ConfigurationError


class Direction(str, Enum):
    """Which way a metric moves when performance gets better."""

    LOWER_IS_BETTER = "lower_is_better"
    HIGHER_IS_BETTER = "higher_is_better"


class BaselineStrategy(str, Enum):
    """How the comparison baseline is chosen from history."""

    PREVIOUS = "previous"
    WINDOW = "window"


def _parse_ratio(value: Any) -> Any:
    """Accept ``1.5`` as well as the ``"150%"`` alert notation."""
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("%"):
            try:
                return float(text[:-1]) / 100
            except ValueError:
                return value
    return value


class ThresholdPolicy(BaseModel):
    """Relative threshold policy for regression detection.

    Attributes:
        relative_threshold: Multiplicative threshold, e.g. 1.5 flags values
            beyond 150% of the baseline. Must be greater than 1.0.
        error_margin_aware: Widen the acceptance band by the baseline's
            error margin.
        fail_threshold: Regressions beyond this multiple are critical.
            Defaults to ``relative_threshold``.

    Example:
        >>> policy = ThresholdPolicy(relative_threshold="150%")
        >>> policy.relative_threshold
        1.5
    """

    model_config = {"frozen": True}

    relative_threshold: float = Field(default=2.0, description="Multiplicative alert threshold")
    error_margin_aware: bool = Field(default=True, description="Fold the baseline error margin into the band")
    fail_threshold: float | None = Field(default=None, description="Multiplicative critical threshold")

    @field_validator("relative_threshold", "fail_threshold", mode="before")
    @classmethod
    def _percent_notation(cls, value: Any) -> Any:
        return _parse_ratio(value)

    @field_validator("relative_threshold")
    @classmethod
    def _check_relative_threshold(cls, value: float) -> float:
        if not value > 1.0:
            raise ValueError(f"relative_threshold must be greater than 1.0, got {value}")
        return value

    @model_validator(mode="after")
    def _check_fail_threshold(self) -> Self:
        if self.fail_threshold is not None and self.fail_threshold < self.relative_threshold:
            raise ValueError(
                f"fail_threshold ({self.fail_threshold}) must not be below "
                f"relative_threshold ({self.relative_threshold})"
            )
        return self

    @property
    def critical_threshold(self) -> float:
        """Threshold above which a regression is critical."""
        return self.fail_threshold if self.fail_threshold is not None else self.relative_threshold


class BaselinePolicy(BaseModel):
    """Baseline selection policy.

    Attributes:
        strategy: ``previous`` compares against the immediately preceding
            run, ``window`` against the last ``window_size`` runs.
        window_size: Number of trailing runs aggregated by ``window``.
    """

    model_config = {"frozen": True}

    strategy: BaselineStrategy = Field(default=BaselineStrategy.PREVIOUS, description="Selection strategy")
    window_size: int = Field(default=1, ge=1, description="Trailing runs aggregated by the window strategy")


class DetectionConfig(BaseModel):
    """Complete configuration of the regression detection engine.

    Direction lookup order is the per-benchmark override, then the
    per-tool default, then ``default_direction``. Directions are never
    guessed from benchmark names.

    Example:
        >>> config = DetectionConfig.from_yaml("benchwatch.yaml")
        >>> config.direction_for("throughput", tool="cargo")
        <Direction.HIGHER_IS_BETTER: 'higher_is_better'>
    """

    model_config = {"frozen": True}

    threshold: ThresholdPolicy = Field(default_factory=ThresholdPolicy, description="Threshold policy")
    baseline: BaselinePolicy = Field(default_factory=BaselinePolicy, description="Baseline policy")
    default_direction: Direction = Field(default=Direction.LOWER_IS_BETTER, description="Fallback direction")
    directions: dict[str, Direction] = Field(default_factory=dict, description="Per-benchmark directions")
    tool_directions: dict[str, Direction] = Field(
        default_factory=lambda: {
            "customBiggerIsBetter": Direction.HIGHER_IS_BETTER,
            "customSmallerIsBetter": Direction.LOWER_IS_BETTER,
        },
        description="Per-tool default directions",
    )

    def direction_for(self, name: str, tool: str | None = None) -> Direction:
        """Resolve the metric direction for a benchmark.

        Args:
            name: Benchmark name.
            tool: Harness identifier of the run.

        Returns:
            The configured direction.
        """
        if name in self.directions:
            return self.directions[name]
        if tool is not None and tool in self.tool_directions:
            return self.tool_directions[tool]
        return self.default_direction

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> DetectionConfig:
        """Build a validated configuration from plain data.

        Args:
            data: Mapping, optionally nested under a ``detection`` key.

        Returns:
            DetectionConfig built from the data.

        Raises:
            ConfigurationError: If the data is invalid.
        """
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigurationError(f"Detection configuration must be a mapping, got {type(data).__name__}")

        detection = data.get("detection", data)
        try:
            return cls.model_validate(detection)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid detection configuration: {e}") from e

    @classmethod
    def from_yaml(cls, path: Path | str) -> DetectionConfig:
        """Load the detection configuration from a YAML file.

        Args:
            path: Path to the YAML configuration file.

        Returns:
            DetectionConfig loaded from the file.

        Raises:
            ConfigurationError: If the file is missing or invalid.
        """
        import yaml

        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {path}")

        try:
            data = yaml.safe_load(path.read_text())
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

        return cls.from_dict(data)

    def to_yaml(self, path: Path | str) -> None:
        """Save the detection configuration to a YAML file.

        Args:
            path: Path to the output YAML file.
        """
        import yaml

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {"detection": self.model_dump(mode="json", exclude_none=True)}
        path.write_text(yaml.dump(data, default_flow_style=False, sort_keys=False))

    def with_overrides(
        self,
        relative_threshold: float | str | None = None,
        window_size: int | None = None,
    ) -> DetectionConfig:
        """Return a copy with command-line overrides applied and re-validated.

        Raises:
            ConfigurationError: If an override is invalid.
        """
        data = self.model_dump(mode="json")
        if relative_threshold is not None:
            data["threshold"]["relative_threshold"] = relative_threshold
        if window_size is not None:
            data["baseline"]["window_size"] = window_size
            if window_size > 1:
                data["baseline"]["strategy"] = BaselineStrategy.WINDOW.value
        return DetectionConfig.from_dict(data)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be configured via environment variables with
    the BENCHWATCH_ prefix.

    Attributes:
        data_file: Path of the persisted history document.
        suite: Suite key inside the document's ``entries``.
        config_file: Optional YAML detection configuration.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        relative_threshold: Default alert threshold when no config file is given.
        window_size: Default baseline window when no config file is given.

    Environment Variables:
        BENCHWATCH_DATA_FILE: History document (default: dev/bench/data.js)
        BENCHWATCH_SUITE: Suite key (default: Benchmark)
        BENCHWATCH_CONFIG_FILE: Detection config YAML (optional)
        BENCHWATCH_LOG_LEVEL: Logging level (default: WARNING)
        BENCHWATCH_RELATIVE_THRESHOLD: Alert threshold (default: 2.0)
        BENCHWATCH_WINDOW_SIZE: Baseline window (default: 1)
    """

    model_config = SettingsConfigDict(
        env_prefix="BENCHWATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    data_file: str = Field(
        default="dev/bench/data.js",
        description="Path of the persisted history document",
    )
    suite: str = Field(
        default="Benchmark",
        description="Suite key inside the history document",
    )
    config_file: str | None = Field(
        default=None,
        description="Optional YAML detection configuration",
    )
    log_level: str = Field(
        default="WARNING",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    relative_threshold: float = Field(
        default=2.0,
        gt=1.0,
        description="Default alert threshold",
    )
    window_size: int = Field(
        default=1,
        ge=1,
        description="Default baseline window",
    )

    @classmethod
    def load(cls) -> Settings:
        """Read settings from the environment and ``.env``.

        Raises:
            ConfigurationError: If a BENCHWATCH_ variable is invalid.
        """
        try:
            return cls()
        except ValidationError as e:
            raise ConfigurationError(f"Invalid BENCHWATCH_ settings: {e}") from e

    def detection_config(self) -> DetectionConfig:
        """Build the detection configuration these settings describe.

        Raises:
            ConfigurationError: If the config file is missing or invalid.
        """
        if self.config_file:
            return DetectionConfig.from_yaml(self.config_file)
        return DetectionConfig().with_overrides(
            relative_threshold=self.relative_threshold,
            window_size=self.window_size,
        )
