"""Physical conversion factors between Hartree atomic units and eV/Angstrom.

Values follow ``Modules/constants.f90`` of Quantum ESPRESSO (CODATA 2018),
so converted quantities match what pw.x itself prints.

Routine Listings
----------------
BOHR_RADIUS_ANGS : float
    One Bohr in Angstrom
ANGSTROM_AU : float
    One Angstrom in Bohr
HARTREE_SI : float
    One Hartree in Joule
ELECTRONVOLT_SI : float
    One electronvolt in Joule
AUTOEV : float
    One Hartree in eV
RYTOEV : float
    One Rydberg in eV
"""

BOHR_RADIUS_ANGS: float = 0.529177210903
ANGSTROM_AU: float = 1.0 / BOHR_RADIUS_ANGS

HARTREE_SI: float = 4.3597447222071e-18
ELECTRONVOLT_SI: float = 1.602176634e-19
AUTOEV: float = HARTREE_SI / ELECTRONVOLT_SI
RYTOEV: float = AUTOEV / 2.0

__all__ = [
    "BOHR_RADIUS_ANGS",
    "ANGSTROM_AU",
    "HARTREE_SI",
    "ELECTRONVOLT_SI",
    "AUTOEV",
    "RYTOEV",
]
