"""Element-wise comparison of a device result against the reference result."""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import groupby
from typing import List, Sequence

import torch

from tiled_matmul.data import Correctness, Matrix, Mismatch


@dataclass
class VerificationResult:
    """Result of comparing a device result with the reference."""

    passed: bool
    """Whether every element is within tolerance."""
    tolerance: float
    """Absolute tolerance used for the decision."""
    mismatch_count: int = 0
    """Total number of elements beyond tolerance."""
    mismatches: List[Mismatch] = field(default_factory=list)
    """The first mismatching elements in row-major order."""
    max_absolute_error: float = 0.0
    relative_l2_error: float = 0.0

    def to_correctness(self) -> Correctness:
        return Correctness(
            tolerance=self.tolerance,
            max_absolute_error=self.max_absolute_error,
            relative_l2_error=self.relative_l2_error,
            mismatch_count=self.mismatch_count,
            mismatches=list(self.mismatches),
        )


def _relative_l2_error(reference: torch.Tensor, abs_diff: torch.Tensor) -> float:
    ref_norm = torch.linalg.vector_norm(reference.double()).item()
    err_norm = torch.linalg.vector_norm(abs_diff.double()).item()
    if ref_norm == 0.0:
        return 0.0 if err_norm == 0.0 else float("inf")
    return err_norm / ref_norm


def verify(
    reference: Matrix, result: Matrix, tolerance: float = 1e-6, max_listed: int = 100
) -> VerificationResult:
    """Compare ``result`` against ``reference`` element by element.

    The run passes iff ``|result - reference| <= tolerance`` holds for every element. NaN
    values never satisfy the bound. A mismatch is a diagnostic outcome, never an exception.

    Parameters
    ----------
    reference : Matrix
        Output of the reference multiplier.
    result : Matrix
        Output copied back from the device.
    tolerance : float
        Absolute tolerance per element (default: 1e-6).
    max_listed : int
        Upper bound on the number of mismatches listed (default: 100). The total count is
        always reported.

    Returns
    -------
    VerificationResult
        Pass/fail decision, error statistics and the bounded mismatch listing.

    Raises
    ------
    ValueError
        If the two matrices have different dimensions.
    """
    if (reference.height, reference.width) != (result.height, result.width):
        raise ValueError(
            f"Cannot compare {result.height}x{result.width} result with "
            f"{reference.height}x{reference.width} reference"
        )

    abs_diff = (result.data - reference.data).abs()
    bad = ~(abs_diff <= tolerance)
    mismatch_count = int(bad.sum().item())

    mismatches: List[Mismatch] = []
    if mismatch_count and max_listed:
        indices = torch.nonzero(bad).flatten()[:max_listed].tolist()
        for idx in indices:
            row, col = divmod(idx, reference.width)
            mismatches.append(
                Mismatch(
                    row=row,
                    col=col,
                    expected=reference.data[idx].item(),
                    actual=result.data[idx].item(),
                    diff=abs_diff[idx].item(),
                )
            )

    return VerificationResult(
        passed=mismatch_count == 0,
        tolerance=tolerance,
        mismatch_count=mismatch_count,
        mismatches=mismatches,
        max_absolute_error=abs_diff.max().item(),
        relative_l2_error=_relative_l2_error(reference.data, abs_diff),
    )


def format_diff(mismatches: Sequence[Mismatch], total: int, tolerance: float) -> str:
    """Render a mismatch listing grouped by row.

    Parameters
    ----------
    mismatches : Sequence[Mismatch]
        The listed mismatches in row-major order.
    total : int
        Total number of mismatching elements, including those not listed.
    tolerance : float
        Tolerance the listing was produced with.
    """
    lines = [f"Listing first {len(mismatches)} Differences > {tolerance:.6g}..."]
    for row, entries in groupby(mismatches, key=lambda m: m.row):
        entries = list(entries)
        lines.append(f" Row {row}:")
        for m in entries:
            lines.append(
                f"    Loc({m.row},{m.col})\tCPU={m.expected:.5f}\tGPU={m.actual:.5f}"
                f"\tDiff={m.diff:.6f}"
            )
        lines.append(f" Row {row}: Listed Errors = {len(entries)}")
    lines.append(f" Total Errors = {total}")
    if total > len(mismatches):
        lines.append(f" ({total - len(mismatches)} not listed)")
    return "\n".join(lines)
