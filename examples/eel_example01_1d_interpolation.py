"""
Ordinary kriging interpolation of a one-dimensional function

The TwoBumps function is sampled on a regular design and predicted on a
finer grid with the device pipeline. Predictions are compared with the
SciPy reference solution of the same kriging system.

Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
Copyright (c) 2022-2024, CentraleSupelec
License: GPLv3 (see LICENSE)
"""

import numpy as np
import eelsurrogate as es


def generate_data():
    """
    Data generation.

    Returns
    -------
    tuple
        (xt, zt): target data
        (xi, zi): input dataset
    """
    xt = np.linspace(-1.0, 1.0, 21).reshape(-1, 1)
    zt = es.misc.testfunctions.twobumps(xt)

    ni = 7
    xi = np.linspace(-1.0, 1.0, ni).reshape(-1, 1)
    zi = es.misc.testfunctions.twobumps(xi)

    return xt, zt, xi, zi


def main():
    xt, zt, xi, zi = generate_data()
    theta, variance = 10.0, 1.0

    surrogate = es.KrigingSurrogate(xi, zi, theta=theta, variance=variance)
    zpm = surrogate.predict_many(xt)

    zref = es.misc.reference.ordinary_kriging(xi, zi, xt, theta, variance)

    print('\nPrediction')
    print('----------')
    print(f'max |device - reference| = {np.max(np.abs(zpm - zref)):.3e}')
    print(f'max |prediction - truth| = {np.max(np.abs(zpm - zt)):.3e}')

    return zpm, zref


if __name__ == '__main__':
    main()
