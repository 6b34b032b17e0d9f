"""
The `fockcode.utils` module includes the normalization factors of multi-photon amplitudes between Fock states.
"""

import jax.numpy as jnp
from jax import vmap
from jax.scipy.special import factorial

from fockcode.state import FockState


@vmap
def vectorial_factorial(x: int | float) -> int | float:
    """Compute the factorial on the input vectorially.

    Args:
        x: integer to compute the factorial of

    Returns:
        Factorial of the input
    """
    return factorial(x)  # type: ignore


def calc_norm(S: FockState, T: FockState) -> float:
    """Calculate the normalization factor for an element of a symmetric multi-photon unitary.

    The factor equals $1/\\sqrt{\\prod_i s_i!\\prod_i t_i!}$, i.e. the inverse square root of the product of
    `FockState.prodnfact` for both states.

    Args:
        S: state $\\left| S\\right\\rangle$ corresponding to the row of the multi-photon unitary
        T: state $\\left| T\\right\\rangle$ corresponding to the column of the multi-photon unitary

    Returns:
        Normalization factor for symmetric multi-photon unitary element $\\left\\langle S\\right|\\boldsymbol{\\Phi}(\\mathbf{U})\\left| T\\right\\rangle$
    """
    occupations = jnp.concatenate((jnp.asarray(S.to_vect()), jnp.asarray(T.to_vect())))
    return float(1.0 / jnp.sqrt(jnp.prod(vectorial_factorial(occupations))))
