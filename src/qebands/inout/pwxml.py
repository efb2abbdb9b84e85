"""Reader for the XML output of Quantum ESPRESSO's pw.x.

Extended Summary
----------------
pw.x writes ``<prefix>.save/data-file-schema.xml`` (and ``<prefix>.xml``)
following the ``qes`` schema. This module pulls the crystal structure, the
reciprocal lattice and the Kohn-Sham eigenvalues out of its ``<output>``
section and returns them in eV and Angstrom, with atoms and k-points in
fractional coordinates.

Routine Listings
----------------
parse_pwxml : function
    Read a pw.x XML file into an ElectronicStructure
parse_pwxml_string : function
    Read pw.x XML text into an ElectronicStructure
extract_electronic_structure : function
    Build an ElectronicStructure from an already parsed root element
read_atomic_structure : function
    Lattice, fractional positions, labels and alat from ``atomic_structure``
read_reciprocal_lattice : function
    Reciprocal lattice from ``basis_set/reciprocal_lattice``
read_band_structure : function
    Fractional k-points, band energies and Fermi energy from
    ``band_structure``

Notes
-----
Every node read here is mandatory. A missing node raises
`NodeNotFoundError`, unparseable or miscounted data raises
`MalformedDataError`, and inconsistent quantities raise
`InvariantViolationError`. There is no partial result.
"""

import logging
import math
import xml.etree.ElementTree as ET
from pathlib import Path

import jax
import jax.numpy as jnp
import numpy as np
from beartype.typing import Tuple, Union
from jaxtyping import Array, Float

from qebands._typing_utils import beartype, jaxtyped
from qebands.errors import (
    InvariantViolationError,
    MalformedDataError,
    NodeNotFoundError,
)
from qebands.types import (
    BandEnergies,
    CrystalLattice,
    ElectronicStructure,
    create_collinear_spin_bands,
    create_crystal_lattice,
    create_electronic_structure,
    create_spinless_bands,
    scalar_float,
)
from qebands.ucell import AUTOEV, BOHR_RADIUS_ANGS, cart_to_frac

from .xml_access import (
    child_location,
    find_all,
    find_required,
    load_document,
    load_document_string,
    local_name,
    parse_floats,
    read_bool,
    read_float,
    read_float_attribute,
    read_int,
    read_int_attribute,
    read_vector,
    required_attribute,
)

jax.config.update("jax_enable_x64", True)

logger = logging.getLogger(__name__)

ROOT_TAG = "espresso"


@jaxtyped(typechecker=beartype)
def read_atomic_structure(output: ET.Element) -> CrystalLattice:
    """
    Description
    -----------
    Read the direct lattice and the atoms from ``output/atomic_structure``.

    Parameters
    ----------
    - `output` (ET.Element):
        The ``<output>`` element of the document.

    Returns
    -------
    - `CrystalLattice`:
        Lattice in Angstroms (vectors as columns), fractional atom positions
        in document order, atom labels, and alat in Angstroms.

    Raises
    ------
    NodeNotFoundError
        If ``atomic_structure``, its ``alat``/``nat`` attributes,
        ``atomic_positions``, an atom's ``name`` or a cell vector is missing.
    MalformedDataError
        If ``nat`` is negative, differs from the number of ``atom`` elements,
        or any vector does not hold exactly three numbers.
    InvariantViolationError
        If the cell is singular.

    Flow
    ----
    - Read alat (Bohr) and nat
    - Read the nat Cartesian positions (Bohr) and their labels
    - Read a1, a2, a3 (Bohr) as the columns of the lattice
    - Convert positions to fractional with the lattice still in Bohr
    - Only then scale lattice and alat to Angstroms
    """
    location = "output/atomic_structure"
    structure = find_required(output, "atomic_structure", "output")
    alat_bohr = read_float_attribute(structure, "alat", location)
    n_atoms = read_int_attribute(structure, "nat", location)
    if n_atoms < 0:
        raise MalformedDataError(
            f"Number of atoms must be non-negative, got {n_atoms}",
            f"{location}[@nat]",
        )

    positions_location = child_location(location, "atomic_positions")
    positions_element = find_required(structure, "atomic_positions", location)
    atoms = find_all(positions_element, "atom")
    if len(atoms) != n_atoms:
        raise MalformedDataError(
            f"nat declares {n_atoms} atoms but {len(atoms)} were found",
            positions_location,
        )
    cart_bohr = np.zeros((n_atoms, 3), dtype=np.float64)
    labels = []
    for index, atom in enumerate(atoms):
        atom_location = f"{positions_location}/atom[{index + 1}]"
        cart_bohr[index] = parse_floats(atom.text, atom_location, count=3)
        labels.append(required_attribute(atom, "name", atom_location))

    lattice_bohr: Float[Array, "3 3"] = jnp.asarray(
        np.column_stack(
            [read_vector(structure, f"cell/a{i}", location) for i in (1, 2, 3)]
        )
    )
    # alat cancels in the fractional coordinates, so the basis change is done
    # in Bohr before anything is rescaled.
    frac_positions = cart_to_frac(
        lattice_bohr,
        jnp.asarray(cart_bohr),
        location=child_location(location, "cell"),
    )
    logger.debug("Read %d atoms from %s", n_atoms, location)
    return create_crystal_lattice(
        lattice=lattice_bohr * BOHR_RADIUS_ANGS,
        frac_positions=frac_positions,
        atom_labels=labels,
        alat=alat_bohr * BOHR_RADIUS_ANGS,
    )


@jaxtyped(typechecker=beartype)
def read_reciprocal_lattice(
    output: ET.Element,
    alat: scalar_float,
) -> Float[Array, "3 3"]:
    """Read ``output/basis_set/reciprocal_lattice`` in 1/Angstrom.

    The vectors b1, b2, b3 are stored in units of ``2 * pi / alat``; they
    become the columns of the returned matrix after scaling.

    Parameters
    ----------
    output : ET.Element
        The ``<output>`` element of the document.
    alat : scalar_float
        Lattice scale parameter in Angstroms, as returned by
        `read_atomic_structure`.

    Returns
    -------
    Float[Array, "3 3"]
        Reciprocal lattice vectors as columns, in 1/Angstrom.
    """
    location = "output/basis_set/reciprocal_lattice"
    reciprocal = find_required(output, "basis_set/reciprocal_lattice", "output")
    recip_lattice: Float[Array, "3 3"] = jnp.asarray(
        np.column_stack(
            [read_vector(reciprocal, f"b{i}", location) for i in (1, 2, 3)]
        )
    )
    return recip_lattice * (2 * math.pi / alat)


@jaxtyped(typechecker=beartype)
def read_band_structure(
    output: ET.Element,
    alat: scalar_float,
    recip_lattice: Float[Array, "3 3"],
) -> Tuple[Float[Array, "n_kpoints 3"], BandEnergies, Float[Array, ""]]:
    """
    Description
    -----------
    Read k-points, Kohn-Sham eigenvalues and the Fermi energy from
    ``output/band_structure``.

    Parameters
    ----------
    - `output` (ET.Element):
        The ``<output>`` element of the document.
    - `alat` (scalar_float):
        Lattice scale parameter in Angstroms.
    - `recip_lattice` (Float[Array, "3 3"]):
        Reciprocal lattice in 1/Angstrom, as returned by
        `read_reciprocal_lattice`.

    Returns
    -------
    - `kpoints` (Float[Array, "n_kpoints 3"]):
        Fractional k-points in document order.
    - `bands` (BandEnergies):
        `CollinearSpinBands` when ``lsda`` is true and ``spinorbit`` false,
        `SpinlessBands` otherwise. Energies in eV.
    - `fermi_energy` (Float[Array, ""]):
        Fermi energy in eV.

    Raises
    ------
    NodeNotFoundError
        If a mandatory node is missing.
    MalformedDataError
        If ``nks`` or a band count is not positive, the number of
        ``ks_energies`` blocks differs from ``nks``, or an eigenvalue list
        has the wrong length.
    InvariantViolationError
        If ``nbnd_up`` and ``nbnd_dw`` differ.

    Flow
    ----
    - Read nks, lsda, spinorbit and the Fermi energy
    - Decide once whether the run has two collinear spin channels
    - Read nbnd, or nbnd_up and nbnd_dw
    - Read each ks_energies block: Cartesian k-point and eigenvalues
    - Scale k-points by 2 pi / alat, then make them fractional
    - Convert eigenvalues to eV and split them per spin channel
    """
    location = "output/band_structure"
    band_structure = find_required(output, "band_structure", "output")

    n_kpoints = read_int(band_structure, "nks", location)
    if n_kpoints <= 0:
        raise MalformedDataError(
            f"Number of k-points must be positive, got {n_kpoints}",
            child_location(location, "nks"),
        )
    lsda = read_bool(band_structure, "lsda", location)
    spinorbit = read_bool(band_structure, "spinorbit", location)
    fermi_energy = read_float(band_structure, "fermi_energy", location) * AUTOEV

    collinear_spin = lsda and not spinorbit
    if collinear_spin:
        n_bands_up = read_int(band_structure, "nbnd_up", location)
        n_bands_dn = read_int(band_structure, "nbnd_dw", location)
        if n_bands_up != n_bands_dn:
            raise InvariantViolationError(
                f"Spin channels declare different band counts: "
                f"nbnd_up={n_bands_up}, nbnd_dw={n_bands_dn}",
                location,
            )
        n_bands = n_bands_up
        n_values = 2 * n_bands
        count_location = child_location(location, "nbnd_up")
    else:
        n_bands = read_int(band_structure, "nbnd", location)
        n_values = n_bands
        count_location = child_location(location, "nbnd")
    if n_bands <= 0:
        raise MalformedDataError(
            f"Number of bands must be positive, got {n_bands}", count_location
        )
    logger.debug(
        "Band structure: %d k-points, %d bands, collinear spin channels: %s",
        n_kpoints,
        n_bands,
        collinear_spin,
    )

    blocks = find_all(band_structure, "ks_energies")
    if len(blocks) != n_kpoints:
        raise MalformedDataError(
            f"nks declares {n_kpoints} k-points but {len(blocks)} "
            "ks_energies blocks were found",
            child_location(location, "ks_energies"),
        )
    kpoints_cart = np.zeros((n_kpoints, 3), dtype=np.float64)
    eigenvalues = np.zeros((n_values, n_kpoints), dtype=np.float64)
    for ik, block in enumerate(blocks):
        block_location = f"{location}/ks_energies[{ik + 1}]"
        kpoints_cart[ik] = read_vector(block, "k_point", block_location)
        eigenvalues[:, ik] = read_vector(
            block, "eigenvalues", block_location, count=n_values
        )

    kpoints = cart_to_frac(
        recip_lattice,
        jnp.asarray(kpoints_cart) * (2 * math.pi / alat),
        location="output/basis_set/reciprocal_lattice",
    )
    energies = jnp.asarray(eigenvalues) * AUTOEV
    if collinear_spin:
        bands = create_collinear_spin_bands(energies[:n_bands], energies[n_bands:])
    else:
        bands = create_spinless_bands(energies)
    return kpoints, bands, jnp.asarray(fermi_energy, dtype=jnp.float64)


@jaxtyped(typechecker=beartype)
def extract_electronic_structure(root: ET.Element) -> ElectronicStructure:
    """Build an ElectronicStructure from the root of a pw.x XML document.

    Parameters
    ----------
    root : ET.Element
        The ``<qes:espresso>`` root element. Only its local name is checked,
        so any version of the ``qes`` namespace is accepted.

    Returns
    -------
    ElectronicStructure
        Structure, reciprocal lattice, k-points, bands and Fermi energy.

    Raises
    ------
    NodeNotFoundError
        If the root is not ``espresso`` or any mandatory node is missing.
    MalformedDataError
        If any value does not parse or a count does not match.
    InvariantViolationError
        If the spin channels disagree or a lattice is singular.
    """
    if local_name(root.tag) != ROOT_TAG:
        raise NodeNotFoundError(
            f"Expected root element '{ROOT_TAG}', found '{local_name(root.tag)}'",
            ROOT_TAG,
        )
    output = find_required(root, "output", "")
    structure = read_atomic_structure(output)
    recip_lattice = read_reciprocal_lattice(output, structure.alat)
    kpoints, bands, fermi_energy = read_band_structure(
        output, structure.alat, recip_lattice
    )
    return create_electronic_structure(
        lattice=structure.lattice,
        frac_positions=structure.frac_positions,
        atom_labels=structure.atom_labels,
        recip_lattice=recip_lattice,
        kpoints=kpoints,
        bands=bands,
        fermi_energy=fermi_energy,
    )


@beartype
def parse_pwxml(xml_path: Union[str, Path]) -> ElectronicStructure:
    """
    Description
    -----------
    Parse a pw.x XML output file.

    Parameters
    ----------
    - `xml_path` (Union[str, Path]):
        Path to ``data-file-schema.xml`` or ``<prefix>.xml``.

    Returns
    -------
    - `ElectronicStructure`:
        - `lattice`: 3x3, Angstrom, each column a lattice vector
        - `frac_positions`: (n_atoms, 3), fractional
        - `atom_labels`: n_atoms labels
        - `recip_lattice`: 3x3, 1/Angstrom, each column a reciprocal vector
        - `kpoints`: (n_kpoints, 3), fractional
        - `bands`: (n_bands, n_kpoints) eV, one matrix or an up/down pair
        - `fermi_energy`: eV

    Raises
    ------
    FileNotFoundError
        If `xml_path` does not exist.
    PWXmlError
        Any of its subclasses, see `extract_electronic_structure`.
    """
    root = load_document(xml_path)
    result = extract_electronic_structure(root)
    logger.debug(
        "Parsed %s: %d atoms, %d k-points, %d bands",
        xml_path,
        result.n_atoms,
        result.n_kpoints,
        result.n_bands,
    )
    return result


@beartype
def parse_pwxml_string(xml_text: str) -> ElectronicStructure:
    """Parse pw.x XML output held in memory. See `parse_pwxml`."""
    return extract_electronic_structure(load_document_string(xml_text))
