"""Strong-typed records of a multiply run and its verification."""

import math
from enum import Enum
from typing import Annotated, Dict, List, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    field_validator,
    model_validator,
)

Label = Annotated[str, StringConstraints(min_length=1, strip_whitespace=True)]
"""A device name or timestamp; blank values are rejected."""


class ReportRecord(BaseModel):
    """Base of every report record.

    Attribute docstrings become field descriptions in the JSON schema, and non-finite
    errors such as a NaN maximum or an infinite throughput serialize as strings.
    """

    model_config = ConfigDict(use_attribute_docstrings=True, ser_json_inf_nan="strings")


class Mismatch(ReportRecord):
    """One output element whose device value differs from the reference beyond tolerance."""

    row: int = Field(ge=0)
    """Row of the element in C."""
    col: int = Field(ge=0)
    """Column of the element in C."""
    expected: float
    """Value computed by the reference multiplier."""
    actual: float
    """Value computed by the tiled kernel."""
    diff: float
    """Absolute difference between actual and expected."""


class Correctness(ReportRecord):
    """Outcome of comparing the device result with the reference result."""

    tolerance: float = Field(ge=0.0)
    """Absolute tolerance every element had to meet."""
    max_absolute_error: float = Field(default=0.0)
    """Maximum absolute error observed across all output elements."""
    relative_l2_error: float = Field(default=0.0)
    """L2 norm of the error divided by the L2 norm of the reference."""
    mismatch_count: int = Field(default=0, ge=0)
    """Total number of elements beyond tolerance, listed or not."""
    mismatches: List[Mismatch] = Field(default_factory=list)
    """The first mismatching elements in row-major order, bounded by the listing limit."""

    @field_validator("max_absolute_error", "relative_l2_error")
    @classmethod
    def non_negative_or_nan(cls, v: float):
        if math.isnan(v):
            return v
        if v < 0:
            raise ValueError("must be non-negative or NaN")
        return v

    @model_validator(mode="after")
    def _validate_listing(self) -> "Correctness":
        if len(self.mismatches) > self.mismatch_count:
            raise ValueError(
                f"{len(self.mismatches)} mismatches listed but mismatch_count is "
                f"{self.mismatch_count}"
            )
        return self

    @property
    def passed(self) -> bool:
        return self.mismatch_count == 0


class Performance(ReportRecord):
    """Timing of the batch of kernel launches."""

    iterations: int = Field(ge=1)
    """Number of timed launches."""
    total_seconds: float = Field(ge=0.0)
    """Wall-clock time across all timed launches, including the closing synchronize."""
    msec_per_iteration: float = Field(ge=0.0)
    """Average time of one launch in milliseconds."""
    flop_count: int = Field(ge=0)
    """Floating-point operations of one multiply, ``2 * H * WA * WB``."""
    gflops: float = Field(ge=0.0)
    """Throughput in billions of floating-point operations per second."""
    workgroup_size: int = Field(ge=1)
    """Workers per execution group, ``block_size ** 2``."""


class Environment(ReportRecord):
    """Device and library versions the run executed on."""

    hardware: Label
    """Device name, e.g. 'NVIDIA A100-SXM4-80GB' or 'SIMULATOR'."""
    device_index: int = Field(ge=0)
    """Index of the device that was used."""
    compute_capability: Tuple[int, int]
    """(major, minor) compute capability of the device."""
    libs: Dict[str, str] = Field(default_factory=dict)
    """Dictionary of library names to version strings."""


class Dimensions(ReportRecord):
    """Matrix dimensions of the multiply."""

    height_a: int = Field(ge=1)
    """Rows of A and C."""
    width_a: int = Field(ge=1)
    """Columns of A, rows of B."""
    width_b: int = Field(ge=1)
    """Columns of B and C."""


class RunStatus(str, Enum):
    """Verification outcome of a run. Fatal device errors never produce a report."""

    PASSED = "PASSED"
    """Every element is within tolerance of the reference."""
    INCORRECT_NUMERICAL = "INCORRECT_NUMERICAL"
    """At least one element differs from the reference beyond tolerance."""


class RunReport(ReportRecord):
    """Complete record of one warm-up, timed batch and verification."""

    status: RunStatus
    """Overall verification status."""
    environment: Environment
    """Where the run executed."""
    dimensions: Dimensions
    """Shape of the multiply."""
    block_size: int = Field(ge=1)
    """Tile edge length used by the kernel."""
    seed: int
    """Seed of the generator that filled A and B."""
    correctness: Correctness
    """Comparison against the reference multiplier."""
    performance: Performance
    """Timing of the kernel launches."""
    timestamp: Label
    """ISO timestamp of the end of the run."""

    @model_validator(mode="after")
    def _validate_status(self) -> "RunReport":
        if (self.status == RunStatus.PASSED) != self.correctness.passed:
            raise ValueError(
                f"Status {self.status.value} contradicts "
                f"{self.correctness.mismatch_count} mismatching elements"
            )
        return self

    @property
    def passed(self) -> bool:
        return self.status == RunStatus.PASSED
