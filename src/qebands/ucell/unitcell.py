"""Basis changes between Cartesian and fractional coordinates.

Extended Summary
----------------
Lattices in this package store their basis vectors as the *columns* of a
3x3 matrix, while positions and k-points are stored one per *row*. The
functions here move data between the two bases with a dedicated 3x3 inverse
that refuses singular input instead of returning garbage.

Routine Listings
----------------
SINGULAR_TOLERANCE : float
    Default relative determinant tolerance of `inverse_3x3`
inverse_3x3 : function
    Inverse of a 3x3 matrix with an explicit singularity check
cart_to_frac : function
    Cartesian rows to fractional rows for a column lattice
frac_to_cart : function
    Fractional rows to Cartesian rows for a column lattice
lattice_lengths_angles : function
    Basis-vector lengths and inter-vector angles of a column lattice

Notes
-----
The singularity check needs concrete values, so `inverse_3x3` and the
functions built on it are meant to run eagerly, not under ``jax.jit``.
"""

import jax
import jax.numpy as jnp
from beartype.typing import Optional, Tuple
from jaxtyping import Array, Float

from qebands._typing_utils import beartype, jaxtyped
from qebands.errors import InvariantViolationError

jax.config.update("jax_enable_x64", True)

SINGULAR_TOLERANCE: float = 1e-12


@jaxtyped(typechecker=beartype)
def inverse_3x3(
    matrix: Float[Array, "3 3"],
    tolerance: float = SINGULAR_TOLERANCE,
    location: Optional[str] = None,
) -> Float[Array, "3 3"]:
    """Invert a 3x3 matrix through its adjugate.

    Parameters
    ----------
    matrix : Float[Array, "3 3"]
        Matrix to invert.
    tolerance : float, optional
        Relative tolerance on the determinant. The matrix is rejected when
        ``|det| <= tolerance * |c1| * |c2| * |c3|`` with ``ci`` its columns,
        i.e. when the parallelepiped volume is negligible compared to the
        largest volume those column lengths could span. Default is
        `SINGULAR_TOLERANCE`.
    location : str, optional
        Schema location reported in the error, if any.

    Returns
    -------
    Float[Array, "3 3"]
        The inverse matrix.

    Raises
    ------
    InvariantViolationError
        If the matrix is singular within `tolerance`.

    Notes
    -----
    Algorithm:

    - Take the rows r0, r1, r2 of the matrix
    - The adjugate columns are r1 x r2, r2 x r0 and r0 x r1
    - The determinant is r0 . (r1 x r2)
    - Compare |det| against the product of the column norms
    - Divide the adjugate by the determinant
    """
    matrix = jnp.asarray(matrix, dtype=jnp.float64)
    r0, r1, r2 = matrix[0], matrix[1], matrix[2]
    adjugate: Float[Array, "3 3"] = jnp.stack(
        [jnp.cross(r1, r2), jnp.cross(r2, r0), jnp.cross(r0, r1)], axis=1
    )
    determinant = float(jnp.dot(r0, adjugate[:, 0]))
    volume_bound = float(jnp.prod(jnp.linalg.norm(matrix, axis=0)))
    if volume_bound == 0.0 or abs(determinant) <= tolerance * volume_bound:
        raise InvariantViolationError(
            f"Singular 3x3 matrix (determinant {determinant:.3e})", location
        )
    return adjugate / determinant


@jaxtyped(typechecker=beartype)
def cart_to_frac(
    lattice: Float[Array, "3 3"],
    cart: Float[Array, "N 3"],
    location: Optional[str] = None,
) -> Float[Array, "N 3"]:
    """Convert Cartesian rows to fractional rows.

    Both arguments must be expressed in the same length unit; the result is
    unit-free.

    Parameters
    ----------
    lattice : Float[Array, "3 3"]
        Basis vectors as columns.
    cart : Float[Array, "N 3"]
        Cartesian coordinates, one point per row.
    location : str, optional
        Schema location reported if `lattice` is singular.

    Returns
    -------
    Float[Array, "N 3"]
        Fractional coordinates, one point per row.
    """
    inverse = inverse_3x3(lattice, location=location)
    return jnp.asarray(cart, dtype=jnp.float64) @ inverse.T


@jaxtyped(typechecker=beartype)
def frac_to_cart(
    lattice: Float[Array, "3 3"],
    frac: Float[Array, "N 3"],
) -> Float[Array, "N 3"]:
    """Convert fractional rows to Cartesian rows in the lattice's unit."""
    return jnp.asarray(frac, dtype=jnp.float64) @ jnp.asarray(lattice).T


@jaxtyped(typechecker=beartype)
def lattice_lengths_angles(
    lattice: Float[Array, "3 3"],
) -> Tuple[Float[Array, "3"], Float[Array, "3"]]:
    """Compute basis-vector lengths and angles of a column lattice.

    Parameters
    ----------
    lattice : Float[Array, "3 3"]
        Basis vectors a, b, c as columns.

    Returns
    -------
    Tuple[Float[Array, "3"], Float[Array, "3"]]
        Lengths [|a|, |b|, |c|] in the lattice's unit, and angles
        [alpha, beta, gamma] in degrees, where alpha is between b and c,
        beta between a and c, gamma between a and b.
    """
    lattice = jnp.asarray(lattice, dtype=jnp.float64)
    lengths: Float[Array, "3"] = jnp.linalg.norm(lattice, axis=0)
    a, b, c = lattice[:, 0], lattice[:, 1], lattice[:, 2]

    def angle(u: Float[Array, "3"], v: Float[Array, "3"]) -> Float[Array, ""]:
        cosine = jnp.dot(u, v) / (jnp.linalg.norm(u) * jnp.linalg.norm(v))
        return jnp.degrees(jnp.arccos(jnp.clip(cosine, -1.0, 1.0)))

    angles: Float[Array, "3"] = jnp.stack([angle(b, c), angle(a, c), angle(a, b)])
    return lengths, angles
