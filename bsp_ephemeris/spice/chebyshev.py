"""
Chebyshev Polynomial Evaluation
===============================

Clenshaw evaluation of Chebyshev expansions and their first derivative, as
used by SPK type 2 and type 3 segments.
"""
import numpy as np

from typing import Callable, Union


# Slack allowed outside [-1, 1] for rounding at interval boundaries
DOMAIN_TOLERANCE = 1.0e-10


def _check_domain(
  x      : float,
  strict : bool,
) -> None:
  if not np.isfinite(x):
    raise ValueError(f"Chebyshev argument {x} is not finite")
  if strict and abs(x) > 1.0 + DOMAIN_TOLERANCE:
    raise ValueError(f"Chebyshev argument {x} lies outside [-1, 1]")


def chebyshev_value(
  coefficients : np.ndarray,
  x            : float,
  strict       : bool = True,
) -> Union[float, np.ndarray]:
  """
  Evaluate sum_k c_k T_k(x) with the Clenshaw recurrence.

  Input:
  ------
    coefficients : np.ndarray
      Coefficients along the last axis, shape (n,) or (m, n) for m components.
    x : float
      Normalized argument in [-1, 1].
    strict : bool
      Reject arguments outside [-1, 1] (beyond rounding slack).

  Output:
  -------
    value : float | np.ndarray
      Value of the expansion, one per component.
  """
  _check_domain(x, strict)
  coefficients = np.asarray(coefficients, dtype=float)

  b1 = np.zeros(coefficients.shape[:-1])
  b2 = np.zeros(coefficients.shape[:-1])
  two_x = 2.0 * x
  for k in range(coefficients.shape[-1] - 1, 0, -1):
    b1, b2 = coefficients[..., k] + two_x * b1 - b2, b1
  return coefficients[..., 0] + x * b1 - b2


def chebyshev_value_and_derivative(
  coefficients : np.ndarray,
  x            : float,
  strict       : bool = True,
) -> tuple[Union[float, np.ndarray], Union[float, np.ndarray]]:
  """
  Evaluate a Chebyshev expansion and its derivative with respect to x.

  Input:
  ------
    coefficients : np.ndarray
      Coefficients along the last axis, shape (n,) or (m, n) for m components.
    x : float
      Normalized argument in [-1, 1].
    strict : bool
      Reject arguments outside [-1, 1] (beyond rounding slack).

  Output:
  -------
    value : float | np.ndarray
      Value of the expansion.
    derivative : float | np.ndarray
      d(value)/dx. Divide by the interval radius to get a time derivative.
  """
  _check_domain(x, strict)
  coefficients = np.asarray(coefficients, dtype=float)

  shape = coefficients.shape[:-1]
  w1, w2   = np.zeros(shape), np.zeros(shape)
  dw1, dw2 = np.zeros(shape), np.zeros(shape)
  two_x = 2.0 * x
  for k in range(coefficients.shape[-1] - 1, 0, -1):
    w1, w2   = coefficients[..., k] + two_x * w1 - w2, w1
    dw1, dw2 = 2.0 * w2 + two_x * dw1 - dw2, dw1

  value      = coefficients[..., 0] + x * w1 - w2
  derivative = w1 + x * dw1 - dw2
  return value, derivative


def chebyshev_fit(
  func   : Callable[[np.ndarray], np.ndarray],
  degree : int,
) -> np.ndarray:
  """
  Coefficients of the interpolant of func at the Chebyshev nodes of [-1, 1].

  Input:
  ------
    func : callable
      Maps an array of n arguments to n values, shape (n,) or (n, m).
    degree : int
      Degree of the interpolating polynomial.

  Output:
  -------
    coefficients : np.ndarray
      Shape (degree+1,) or (m, degree+1).
  """
  if degree < 0:
    raise ValueError(f"Chebyshev degree must be non-negative, got {degree}")

  nodes  = np.polynomial.chebyshev.chebpts1(degree + 1)
  values = np.asarray(func(nodes), dtype=float)
  coefficients = np.polynomial.chebyshev.chebfit(nodes, values, degree)
  return coefficients.T
