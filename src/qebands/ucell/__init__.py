"""Unit conversions and unit-cell basis changes.

Extended Summary
----------------
This module provides the fixed Hartree-atomic-unit conversion factors used
throughout the package, and the 3x3 linear algebra that moves positions and
k-points between Cartesian and fractional coordinates.

Routine Listings
----------------
AUTOEV : float
    One Hartree in eV
RYTOEV : float
    One Rydberg in eV
BOHR_RADIUS_ANGS : float
    One Bohr in Angstrom
ANGSTROM_AU : float
    One Angstrom in Bohr
HARTREE_SI : float
    One Hartree in Joule
ELECTRONVOLT_SI : float
    One electronvolt in Joule
SINGULAR_TOLERANCE : float
    Default relative determinant tolerance of `inverse_3x3`
inverse_3x3 : function
    Inverse of a 3x3 matrix with an explicit singularity check
cart_to_frac : function
    Cartesian rows to fractional rows for a column lattice
frac_to_cart : function
    Fractional rows to Cartesian rows for a column lattice
lattice_lengths_angles : function
    Basis-vector lengths and angles of a column lattice
"""

from .unitcell import (
    SINGULAR_TOLERANCE,
    cart_to_frac,
    frac_to_cart,
    inverse_3x3,
    lattice_lengths_angles,
)
from .units import (
    ANGSTROM_AU,
    AUTOEV,
    BOHR_RADIUS_ANGS,
    ELECTRONVOLT_SI,
    HARTREE_SI,
    RYTOEV,
)

__all__ = [
    "ANGSTROM_AU",
    "AUTOEV",
    "BOHR_RADIUS_ANGS",
    "ELECTRONVOLT_SI",
    "HARTREE_SI",
    "RYTOEV",
    "SINGULAR_TOLERANCE",
    "cart_to_frac",
    "frac_to_cart",
    "inverse_3x3",
    "lattice_lengths_angles",
]
