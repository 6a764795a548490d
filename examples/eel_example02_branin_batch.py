"""
Batch prediction of the Branin function with a run log

The Branin function is sampled on a 4 x 4 grid of its domain. The
surrogate is evaluated at a set of test points with run_batch, which
reuses the cached inverted covariance matrix and records one log line
per test point.

Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
Copyright (c) 2022-2024, CentraleSupelec
License: GPLv3 (see LICENSE)
"""

import numpy as np
import eelsurrogate as es


def generate_data():
    lower, upper = es.misc.testfunctions.BOUNDS["branin"]
    g1 = np.linspace(lower[0], upper[0], 4)
    g2 = np.linspace(lower[1], upper[1], 4)
    x1, x2 = np.meshgrid(g1, g2)
    xi = np.column_stack((x1.ravel(), x2.ravel()))
    zi = es.misc.testfunctions.branin(xi)

    rng = np.random.default_rng(0)
    xt = lower + rng.random((10, 2)) * (np.asarray(upper) - np.asarray(lower))
    return xt, xi, zi


def main():
    xt, xi, zi = generate_data()
    theta, variance = 0.05, 1.0

    result = es.run_batch(xi, zi, xt, theta, variance)
    zref = es.misc.reference.ordinary_kriging(xi, zi, xt, theta, variance)

    print('\nRun log')
    print('-------')
    for line in result.log:
        print(line)
    print(f'{result.succeeded} succeeded, {result.failed} failed')
    print(f'max |device - reference| = {np.max(np.abs(result.estimates - zref)):.3e}')

    es.config.clear_caches("covariance")
    return result, zref


if __name__ == '__main__':
    main()
