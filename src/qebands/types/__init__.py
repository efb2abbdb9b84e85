"""Custom types and data structures for extracted electronic structures.

Extended Summary
----------------
This module defines the immutable JAX-compatible records produced by the
readers in `qebands.inout`. All records are NamedTuple PyTrees, so they can
be passed through ``jax.jit``, ``jax.vmap`` and friends; string metadata such
as atom labels is kept in the PyTree auxiliary data.

Routine Listings
----------------
AtomSite : class
    One atom: fractional position and label
CrystalLattice : class
    Direct lattice with fractional atom positions and alat
SpinlessBands : class
    Band energies without separate spin channels
CollinearSpinBands : class
    Spin-up and spin-down band energies
BandEnergies : TypeAlias
    Union of the two band variants
ElectronicStructure : class
    The complete extraction result
create_crystal_lattice : function
    Factory function to create CrystalLattice instances
create_spinless_bands : function
    Factory function to create SpinlessBands instances
create_collinear_spin_bands : function
    Factory function to create CollinearSpinBands instances
create_electronic_structure : function
    Factory function to create ElectronicStructure instances

Type Aliases
------------
- `scalar_float`:
    Union type for scalar float values (float or JAX scalar array)
"""

from .band_types import (
    BandEnergies,
    CollinearSpinBands,
    ElectronicStructure,
    SpinlessBands,
    create_collinear_spin_bands,
    create_electronic_structure,
    create_spinless_bands,
)
from .custom_types import scalar_float
from .structure_types import AtomSite, CrystalLattice, create_crystal_lattice

__all__ = [
    "AtomSite",
    "CrystalLattice",
    "create_crystal_lattice",
    "SpinlessBands",
    "CollinearSpinBands",
    "BandEnergies",
    "ElectronicStructure",
    "create_spinless_bands",
    "create_collinear_spin_bands",
    "create_electronic_structure",
    "scalar_float",
]
