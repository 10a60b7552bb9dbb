"""
Least-squares curve fitting for AI lap time prediction.

Based on the approach of r3e-adaptive-ai-primer by pixeljetstream:
https://github.com/pixeljetstream/r3e-adaptive-ai-primer
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np


@dataclass
class FitResult:
    """Fitted curve y = a + b*x + c*x^2."""
    a: float  # Intercept
    b: float  # Linear coefficient
    c: float = 0.0  # Quadratic coefficient (0 for linear fits)

    def __call__(self, x: float) -> float:
        return self.a + self.b * x + self.c * x * x


def _fit(x_values: Sequence[float], y_values: Sequence[float], degree: int) -> FitResult:
    if len(x_values) != len(y_values) or len(x_values) < degree + 1:
        raise ValueError(
            f"Invalid input: x and y must have same length and at least {degree + 1} points"
        )
    if len(set(x_values)) < degree + 1:
        raise ValueError(f"Invalid input: need at least {degree + 1} distinct x values")

    # polyfit returns the highest power first
    coeffs = np.polyfit(np.asarray(x_values, dtype=float), np.asarray(y_values, dtype=float), degree)
    if degree == 1:
        return FitResult(a=float(coeffs[1]), b=float(coeffs[0]))
    return FitResult(a=float(coeffs[2]), b=float(coeffs[1]), c=float(coeffs[0]))


def fit_linear(x_values: Sequence[float], y_values: Sequence[float]) -> FitResult:
    """
    Linear least-squares regression: y = a + b*x.

    Raises:
        ValueError: On mismatched lengths or fewer than 2 distinct x values.
    """
    return _fit(x_values, y_values, 1)


def fit_parabola(x_values: Sequence[float], y_values: Sequence[float]) -> FitResult:
    """
    Quadratic least-squares regression: y = a + b*x + c*x^2.

    Raises:
        ValueError: On mismatched lengths or fewer than 3 distinct x values.
    """
    return _fit(x_values, y_values, 2)


def fit_curve(x_values: Sequence[float], y_values: Sequence[float], degree: int = 1) -> FitResult:
    """Fit a linear (degree 1) or parabolic (degree 2) curve."""
    if degree == 1:
        return fit_linear(x_values, y_values)
    if degree == 2:
        return fit_parabola(x_values, y_values)
    raise ValueError(f"Unsupported fit degree: {degree}")
