# coding: utf-8
## --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022, CentraleSupelec
# License: GPLv3 (see LICENSE)
## --------------------------------------------------------------
import numpy as np


def twobumps(x):
    """
    Computes the response Z of the TwoBumps function at X.

    The TwoBumps function is defined as:

       TwoBumps(x) = - (0.7x + sin(5x + 1) + 0.1 sin(10x))

    Parameters
    ----------
    x : numpy.ndarray
        Input array of shape (n,) or (n, 1)

    Returns
    -------
    numpy.ndarray
        Output array of shape (n,)
    """
    x = np.asarray(x, dtype=float).reshape(-1)
    return -(0.7 * x + np.sin(5 * x + 1) + 0.1 * np.sin(10 * x))


def branin(x):
    """Branin-Hoo function on [-5, 10] x [0, 15].

    .. math::
        f(x) = (x_2 - b x_1^2 + c x_1 - 6)^2 + 10 (1 - t) \\cos(x_1) + 10

    with :math:`b = 5.1 / (4 \\pi^2)`, :math:`c = 5 / \\pi`,
    :math:`t = 1 / (8 \\pi)`. Global minimum 0.397887 at
    (-pi, 12.275), (pi, 2.275) and (9.42478, 2.475).

    Parameters
    ----------
    x : numpy.ndarray, shape (n, 2)

    Returns
    -------
    numpy.ndarray, shape (n,)
    """
    x = np.atleast_2d(np.asarray(x, dtype=float))
    b = 5.1 / (4 * np.pi**2)
    c = 5 / np.pi
    t = 1 / (8 * np.pi)
    x1, x2 = x[:, 0], x[:, 1]
    return (x2 - b * x1**2 + c * x1 - 6) ** 2 + 10 * (1 - t) * np.cos(x1) + 10


def nvs09(x):
    """MINLPLib problem nvs09, integer variables in [3, 9]^10.

    .. math::
        f(x) = \\sum_{i=1}^{10} \\left[\\ln(x_i - 2)^2 + \\ln(10 - x_i)^2\\right]
               - \\left(\\prod_{i=1}^{10} x_i\\right)^{0.2}

    Parameters
    ----------
    x : numpy.ndarray, shape (n, 10)

    Returns
    -------
    numpy.ndarray, shape (n,)
    """
    x = np.atleast_2d(np.asarray(x, dtype=float))
    if x.shape[1] != 10:
        raise ValueError(f"nvs09 is defined in dimension 10, got {x.shape[1]}")
    logs = np.log(x - 2) ** 2 + np.log(10 - x) ** 2
    return np.sum(logs, axis=1) - np.prod(x, axis=1) ** 0.2


# Bounds of the test problems, as (lower, upper) lists.
BOUNDS = {
    "twobumps": ([-1.0], [1.0]),
    "branin": ([-5.0, 0.0], [10.0, 15.0]),
    "nvs09": ([3.0] * 10, [9.0] * 10),
}
