"""
Module: types.structure_types
-----------------------------
Data structures and factory functions for the crystal structure read from
pw.x output.

Classes
-------
- `AtomSite`:
    One atom, fractional position plus label
- `CrystalLattice`:
    JAX-compatible direct lattice with fractional atom positions

Factory Functions
-----------------
- `create_crystal_lattice`:
    Factory function to create CrystalLattice instances with data validation
"""

import jax
import jax.numpy as jnp
from beartype.typing import NamedTuple, Sequence, Tuple
from jax.tree_util import register_pytree_node_class
from jaxtyping import Array, Float

from qebands._typing_utils import beartype
from qebands.errors import MalformedDataError
from qebands.ucell import frac_to_cart

from .custom_types import scalar_float

jax.config.update("jax_enable_x64", True)


@register_pytree_node_class
class AtomSite(NamedTuple):
    """
    Description
    -----------
    A single atom of the unit cell.

    Attributes
    ----------
    - `frac_position` (Float[Array, "3"]):
        Fractional coordinates with respect to the direct lattice.
    - `label` (str):
        Atom label exactly as written in the ``name`` attribute of the
        document, e.g. ``"Fe1"``. It is not necessarily a chemical symbol.
    """

    frac_position: Float[Array, "3"]
    label: str

    def tree_flatten(self):
        return ((self.frac_position,), self.label)

    @classmethod
    def tree_unflatten(cls, aux_data, children):
        return cls(frac_position=children[0], label=aux_data)


@register_pytree_node_class
class CrystalLattice(NamedTuple):
    """
    Description
    -----------
    A JAX-compatible data structure for the direct lattice of a pw.x run and
    the atoms it contains.

    Attributes
    ----------
    - `lattice` (Float[Array, "3 3"]):
        Lattice vectors in Angstroms, one vector per column.
    - `frac_positions` (Float[Array, "n_atoms 3"]):
        Fractional atom positions, one atom per row, in document order.
    - `atom_labels` (Tuple[str, ...]):
        One label per atom, same order as `frac_positions`.
    - `alat` (Float[Array, ""]):
        The lattice scale parameter in Angstroms. Reciprocal-space
        quantities in the document are expressed in units of
        ``2 * pi / alat``.

    Notes
    -----
    Registered as a PyTree node; the labels travel in the auxiliary data so
    that only numeric leaves are exposed to JAX transformations.
    """

    lattice: Float[Array, "3 3"]
    frac_positions: Float[Array, "n_atoms 3"]
    atom_labels: Tuple[str, ...]
    alat: Float[Array, ""]

    @property
    def n_atoms(self) -> int:
        return self.frac_positions.shape[0]

    @property
    def atom_sites(self) -> Tuple[AtomSite, ...]:
        return tuple(
            AtomSite(frac_position=position, label=label)
            for position, label in zip(self.frac_positions, self.atom_labels)
        )

    def cart_positions(self) -> Float[Array, "n_atoms 3"]:
        """Cartesian atom positions in Angstroms, one atom per row."""
        return frac_to_cart(self.lattice, self.frac_positions)

    def tree_flatten(self):
        return (
            (self.lattice, self.frac_positions, self.alat),
            self.atom_labels,
        )

    @classmethod
    def tree_unflatten(cls, aux_data, children):
        lattice, frac_positions, alat = children
        return cls(
            lattice=lattice,
            frac_positions=frac_positions,
            atom_labels=aux_data,
            alat=alat,
        )


@beartype
def create_crystal_lattice(
    lattice: Float[Array, "3 3"],
    frac_positions: Float[Array, "n_atoms 3"],
    atom_labels: Sequence[str],
    alat: scalar_float,
) -> CrystalLattice:
    """
    Description
    -----------
    Factory function to create a CrystalLattice instance with validation.

    Parameters
    ----------
    - `lattice` (Float[Array, "3 3"]):
        Lattice vectors in Angstroms as columns.
    - `frac_positions` (Float[Array, "n_atoms 3"]):
        Fractional atom positions, one per row.
    - `atom_labels` (Sequence[str]):
        One label per atom.
    - `alat` (scalar_float):
        Lattice scale parameter in Angstroms.

    Returns
    -------
    - `CrystalLattice`:
        Validated, immutable structure.

    Raises
    ------
    MalformedDataError
        If the number of labels differs from the number of positions, if any
        value is non-finite, or if `alat` is not positive.

    Flow
    ----
    - Convert arrays to float64 and labels to a tuple
    - Check that there is one label per position row
    - Check that lattice and positions are finite
    - Check that alat is finite and positive
    - Create and return the CrystalLattice
    """
    lattice = jnp.asarray(lattice, dtype=jnp.float64)
    frac_positions = jnp.asarray(frac_positions, dtype=jnp.float64)
    atom_labels = tuple(atom_labels)
    alat = jnp.asarray(alat, dtype=jnp.float64)

    if len(atom_labels) != frac_positions.shape[0]:
        raise MalformedDataError(
            f"{len(atom_labels)} atom labels for "
            f"{frac_positions.shape[0]} atom positions"
        )
    if not bool(jnp.all(jnp.isfinite(lattice))):
        raise MalformedDataError("lattice contains non-finite values")
    if not bool(jnp.all(jnp.isfinite(frac_positions))):
        raise MalformedDataError("atom positions contain non-finite values")
    if not bool(jnp.isfinite(alat)) or float(alat) <= 0.0:
        raise MalformedDataError(f"alat must be positive, got {float(alat)}")

    return CrystalLattice(
        lattice=lattice,
        frac_positions=frac_positions,
        atom_labels=atom_labels,
        alat=alat,
    )
