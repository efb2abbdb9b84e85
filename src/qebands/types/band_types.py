"""Data structures and factory functions for band energies and the full
electronic-structure record.

Extended Summary
----------------
Band energies come in exactly one of two shapes, selected once when the
document is read:

- `SpinlessBands` holds a single (n_bands, n_kpoints) matrix. It covers
  non-magnetic runs and noncollinear/spin-orbit runs, where spin channels
  are not stored separately.
- `CollinearSpinBands` holds one such matrix per spin channel. It covers
  collinear spin-polarized (``lsda``) runs without spin-orbit coupling.

`BandEnergies` is the union of the two. Code that needs to treat both alike
should go through ``bands.channels()`` rather than probing for fields.

Routine Listings
----------------
SpinlessBands : PyTree
    Band energies of a run without separate spin channels
CollinearSpinBands : PyTree
    Spin-up and spin-down band energies of a collinear magnetic run
BandEnergies : TypeAlias
    Union of the two band variants
ElectronicStructure : PyTree
    Lattice, atoms, reciprocal lattice, k-points, bands and Fermi energy
create_spinless_bands : function
    Factory function to create SpinlessBands instances with validation
create_collinear_spin_bands : function
    Factory function to create CollinearSpinBands instances with validation
create_electronic_structure : function
    Factory function to create ElectronicStructure instances with validation
"""

from typing import TypeAlias

import jax
import jax.numpy as jnp
from beartype.typing import NamedTuple, Sequence, Tuple, Union
from jax.tree_util import register_pytree_node_class
from jaxtyping import Array, Float

from qebands._typing_utils import beartype
from qebands.errors import InvariantViolationError, MalformedDataError
from qebands.ucell import frac_to_cart

from .custom_types import scalar_float
from .structure_types import AtomSite

jax.config.update("jax_enable_x64", True)


@register_pytree_node_class
class SpinlessBands(NamedTuple):
    """
    Description
    -----------
    Band energies without separate spin channels.

    Attributes
    ----------
    - `energies` (Float[Array, "n_bands n_kpoints"]):
        Eigenvalues in eV; column ``k`` holds the bands of k-point ``k``.
    """

    energies: Float[Array, "n_bands n_kpoints"]

    @property
    def n_bands(self) -> int:
        return self.energies.shape[0]

    @property
    def n_kpoints(self) -> int:
        return self.energies.shape[1]

    @property
    def n_spins(self) -> int:
        return 1

    def channels(self) -> Tuple[Float[Array, "n_bands n_kpoints"], ...]:
        return (self.energies,)

    def tree_flatten(self):
        return ((self.energies,), None)

    @classmethod
    def tree_unflatten(cls, aux_data, children):
        return cls(*children)


@register_pytree_node_class
class CollinearSpinBands(NamedTuple):
    """
    Description
    -----------
    Band energies of a collinear spin-polarized run without spin-orbit
    coupling.

    Attributes
    ----------
    - `energies_up` (Float[Array, "n_bands n_kpoints"]):
        Spin-up eigenvalues in eV.
    - `energies_dn` (Float[Array, "n_bands n_kpoints"]):
        Spin-down eigenvalues in eV.

    Notes
    -----
    Both channels always carry the same number of bands; pw.x pads the
    smaller channel, and `create_collinear_spin_bands` rejects anything else.
    """

    energies_up: Float[Array, "n_bands n_kpoints"]
    energies_dn: Float[Array, "n_bands n_kpoints"]

    @property
    def n_bands(self) -> int:
        return self.energies_up.shape[0]

    @property
    def n_kpoints(self) -> int:
        return self.energies_up.shape[1]

    @property
    def n_spins(self) -> int:
        return 2

    def channels(self) -> Tuple[Float[Array, "n_bands n_kpoints"], ...]:
        return (self.energies_up, self.energies_dn)

    def tree_flatten(self):
        return ((self.energies_up, self.energies_dn), None)

    @classmethod
    def tree_unflatten(cls, aux_data, children):
        return cls(*children)


BandEnergies: TypeAlias = Union[SpinlessBands, CollinearSpinBands]


def _check_band_matrix(
    energies: Float[Array, "n_bands n_kpoints"], name: str
) -> None:
    if not bool(jnp.all(jnp.isfinite(energies))):
        raise MalformedDataError(f"{name} contains non-finite values")


@beartype
def create_spinless_bands(
    energies: Float[Array, "n_bands n_kpoints"],
) -> SpinlessBands:
    """
    Description
    -----------
    Factory function to create a SpinlessBands instance.

    Parameters
    ----------
    - `energies` (Float[Array, "n_bands n_kpoints"]):
        Eigenvalues in eV.

    Returns
    -------
    - `SpinlessBands`:
        Validated band energies.

    Raises
    ------
    MalformedDataError
        If the matrix contains non-finite values.
    """
    energies = jnp.asarray(energies, dtype=jnp.float64)
    _check_band_matrix(energies, "energies")
    return SpinlessBands(energies=energies)


@beartype
def create_collinear_spin_bands(
    energies_up: Float[Array, "n_bands_up n_kpoints_up"],
    energies_dn: Float[Array, "n_bands_dn n_kpoints_dn"],
) -> CollinearSpinBands:
    """
    Description
    -----------
    Factory function to create a CollinearSpinBands instance.

    Parameters
    ----------
    - `energies_up` (Float[Array, "n_bands n_kpoints"]):
        Spin-up eigenvalues in eV.
    - `energies_dn` (Float[Array, "n_bands n_kpoints"]):
        Spin-down eigenvalues in eV.

    Returns
    -------
    - `CollinearSpinBands`:
        Validated band energies.

    Raises
    ------
    InvariantViolationError
        If the two channels do not have the same shape.
    MalformedDataError
        If either matrix contains non-finite values.
    """
    energies_up = jnp.asarray(energies_up, dtype=jnp.float64)
    energies_dn = jnp.asarray(energies_dn, dtype=jnp.float64)
    _check_band_matrix(energies_up, "energies_up")
    _check_band_matrix(energies_dn, "energies_dn")
    if energies_up.shape != energies_dn.shape:
        raise InvariantViolationError(
            f"spin channels differ in shape: {energies_up.shape} (up) "
            f"vs {energies_dn.shape} (down)"
        )
    return CollinearSpinBands(energies_up=energies_up, energies_dn=energies_dn)


@register_pytree_node_class
class ElectronicStructure(NamedTuple):
    """
    Description
    -----------
    Everything extracted from one pw.x XML output, in eV and Angstrom.

    Attributes
    ----------
    - `lattice` (Float[Array, "3 3"]):
        Direct lattice vectors in Angstroms, one per column.
    - `frac_positions` (Float[Array, "n_atoms 3"]):
        Fractional atom positions, one atom per row, in document order.
    - `atom_labels` (Tuple[str, ...]):
        Atom labels, same order as `frac_positions`.
    - `recip_lattice` (Float[Array, "3 3"]):
        Reciprocal lattice vectors in 1/Angstrom, one per column. Read from
        the document, so it is not guaranteed to be exactly
        ``2 * pi * inv(lattice).T``.
    - `kpoints` (Float[Array, "n_kpoints 3"]):
        Fractional k-points with respect to `recip_lattice`, one per row, in
        document order.
    - `bands` (BandEnergies):
        `SpinlessBands` or `CollinearSpinBands`.
    - `fermi_energy` (Float[Array, ""]):
        Fermi energy in eV.

    Notes
    -----
    Registered as a PyTree node. `bands` is itself a PyTree, so the variant
    is preserved in the tree structure.
    """

    lattice: Float[Array, "3 3"]
    frac_positions: Float[Array, "n_atoms 3"]
    atom_labels: Tuple[str, ...]
    recip_lattice: Float[Array, "3 3"]
    kpoints: Float[Array, "n_kpoints 3"]
    bands: BandEnergies
    fermi_energy: Float[Array, ""]

    @property
    def n_atoms(self) -> int:
        return self.frac_positions.shape[0]

    @property
    def n_kpoints(self) -> int:
        return self.kpoints.shape[0]

    @property
    def n_bands(self) -> int:
        return self.bands.n_bands

    @property
    def is_spin_polarized(self) -> bool:
        return isinstance(self.bands, CollinearSpinBands)

    @property
    def atom_sites(self) -> Tuple[AtomSite, ...]:
        return tuple(
            AtomSite(frac_position=position, label=label)
            for position, label in zip(self.frac_positions, self.atom_labels)
        )

    def cart_positions(self) -> Float[Array, "n_atoms 3"]:
        """Cartesian atom positions in Angstroms."""
        return frac_to_cart(self.lattice, self.frac_positions)

    def cart_kpoints(self) -> Float[Array, "n_kpoints 3"]:
        """Cartesian k-points in 1/Angstrom."""
        return frac_to_cart(self.recip_lattice, self.kpoints)

    def tree_flatten(self):
        return (
            (
                self.lattice,
                self.frac_positions,
                self.recip_lattice,
                self.kpoints,
                self.bands,
                self.fermi_energy,
            ),
            self.atom_labels,
        )

    @classmethod
    def tree_unflatten(cls, aux_data, children):
        lattice, frac_positions, recip_lattice, kpoints, bands, fermi_energy = (
            children
        )
        return cls(
            lattice=lattice,
            frac_positions=frac_positions,
            atom_labels=aux_data,
            recip_lattice=recip_lattice,
            kpoints=kpoints,
            bands=bands,
            fermi_energy=fermi_energy,
        )


@beartype
def create_electronic_structure(
    lattice: Float[Array, "3 3"],
    frac_positions: Float[Array, "n_atoms 3"],
    atom_labels: Sequence[str],
    recip_lattice: Float[Array, "3 3"],
    kpoints: Float[Array, "n_kpoints 3"],
    bands: BandEnergies,
    fermi_energy: scalar_float,
) -> ElectronicStructure:
    """
    Description
    -----------
    Factory function to create an ElectronicStructure instance with
    cross-field validation.

    Parameters
    ----------
    - `lattice` (Float[Array, "3 3"]):
        Direct lattice in Angstroms, vectors as columns.
    - `frac_positions` (Float[Array, "n_atoms 3"]):
        Fractional atom positions.
    - `atom_labels` (Sequence[str]):
        One label per atom.
    - `recip_lattice` (Float[Array, "3 3"]):
        Reciprocal lattice in 1/Angstrom, vectors as columns.
    - `kpoints` (Float[Array, "n_kpoints 3"]):
        Fractional k-points.
    - `bands` (BandEnergies):
        Band energies in eV, already built by one of the band factories.
    - `fermi_energy` (scalar_float):
        Fermi energy in eV.

    Returns
    -------
    - `ElectronicStructure`:
        Validated, immutable record.

    Raises
    ------
    MalformedDataError
        If labels and positions differ in count, or if any value is
        non-finite.
    InvariantViolationError
        If the band matrices do not have one column per k-point.

    Flow
    ----
    - Convert arrays to float64 and labels to a tuple
    - Check one label per atom position
    - Check that every array and the Fermi energy are finite
    - Check that the band matrices have n_kpoints columns
    - Create and return the ElectronicStructure
    """
    lattice = jnp.asarray(lattice, dtype=jnp.float64)
    frac_positions = jnp.asarray(frac_positions, dtype=jnp.float64)
    atom_labels = tuple(atom_labels)
    recip_lattice = jnp.asarray(recip_lattice, dtype=jnp.float64)
    kpoints = jnp.asarray(kpoints, dtype=jnp.float64)
    fermi_energy = jnp.asarray(fermi_energy, dtype=jnp.float64)

    if len(atom_labels) != frac_positions.shape[0]:
        raise MalformedDataError(
            f"{len(atom_labels)} atom labels for "
            f"{frac_positions.shape[0]} atom positions"
        )
    for name, value in (
        ("lattice", lattice),
        ("frac_positions", frac_positions),
        ("recip_lattice", recip_lattice),
        ("kpoints", kpoints),
        ("fermi_energy", fermi_energy),
    ):
        if not bool(jnp.all(jnp.isfinite(value))):
            raise MalformedDataError(f"{name} contains non-finite values")
    if bands.n_kpoints != kpoints.shape[0]:
        raise InvariantViolationError(
            f"band energies have {bands.n_kpoints} k-point columns "
            f"but there are {kpoints.shape[0]} k-points"
        )

    return ElectronicStructure(
        lattice=lattice,
        frac_positions=frac_positions,
        atom_labels=atom_labels,
        recip_lattice=recip_lattice,
        kpoints=kpoints,
        bands=bands,
        fermi_energy=fermi_energy,
    )
