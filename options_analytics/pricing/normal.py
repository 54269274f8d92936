"""
Standard normal CDF/PDF.

The CDF is the Abramowitz & Stegun 26.2.17 rational polynomial (absolute
error below 7.5e-8). Pricing and Greeks both go through these two functions
so decimal outputs stay reproducible; do not swap in erf or scipy.
"""

import math

ONE_OVER_SQRT_2PI = 0.3989422804014327

_P = 0.2316419
_B1 = 0.319381530
_B2 = -0.356563782
_B3 = 1.781477937
_B4 = -1.821255978
_B5 = 1.330274429


def norm_pdf(x: float) -> float:
    """Standard normal density."""
    return ONE_OVER_SQRT_2PI * math.exp(-0.5 * x * x)


def norm_cdf(x: float) -> float:
    """Standard normal cumulative distribution, symmetric so N(x) + N(-x) == 1."""
    t = 1.0 / (1.0 + _P * abs(x))
    tail = norm_pdf(x) * t * (_B1 + t * (_B2 + t * (_B3 + t * (_B4 + t * _B5))))
    return 1.0 - tail if x > 0 else tail
