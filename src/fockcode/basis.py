"""
The `fockcode.basis` module includes functions that catalog the symmetric Fock basis of $n$ photons in $m$ optical
modes, by enumerating its states in lexicographic order with `FockState.increment`.
"""

from functools import cache
from typing import Iterator

import numpy as np

from fockcode.state import FockState


@cache
def calc_symm_dim(n: int, m: int) -> int:
    """Calculate the dimension of the symmetric Fock basis.

    Args:
        n: number of photons, $n$
        m: number of optical modes, $m$

    Returns:
        Dimension of the symmetric Fock basis, $N$
    """

    # store the top of {n + m - 1 \choose n}
    top = n + m - 1

    # evaluate the simplified version of {n + m - 1 \choose n}
    i = 0
    numerator = 1
    denominator = 1
    while top - i >= m:
        numerator *= top - i
        i += 1
        denominator *= i

    return numerator // denominator


def iter_symm_states(n: int, m: int) -> Iterator[FockState]:
    """Enumerate all states of the symmetric Fock basis, starting with all photons in the first mode.

    Args:
        n: number of photons, $n$
        m: number of optical modes, $m$

    Yields:
        Each state of the basis, as an independent copy
    """
    fs = FockState(m, n)
    while fs.is_defined:
        yield fs.copy()
        fs.increment()


@cache
def build_symm_mode_basis(n: int, m: int) -> np.ndarray:
    """Generate a catalog of all states in the symmetric Fock basis, denoted with $n$ slots where each slot specifies which mode $m$ the photon resides in.

    Args:
        n: number of photons, $n$
        m: number of optical modes, $m$

    Returns:
        $N\\times n$ array that catalogs all states in the $N$-dimensional symmetric Fock basis, expressed in mode-specifying form
    """
    return np.array([fs.to_modes() for fs in iter_symm_states(n, m)], dtype=int)


@cache
def build_symm_basis(n: int, m: int) -> np.ndarray:
    """Generate a catalog of all states in the symmetric Fock basis.

    Args:
        n: number of photons, $n$
        m: number of optical modes, $m$

    Returns:
        $N\\times m$ array that catalogs all states in the $N$-dimensional symmetric Fock basis
    """

    # initialize array to store the catalog of basis states
    N = calc_symm_dim(n, m)
    fockBasis = np.zeros((N, m), dtype=int)

    # insert the number of photons in each mode of each basis state
    for i, fs in enumerate(iter_symm_states(n, m)):
        fockBasis[i, :] = fs.to_vect()

    return fockBasis
