"""Readers for Quantum ESPRESSO output files.

Extended Summary
----------------
This module reads the XML written by pw.x and returns JAX-compatible
records from `qebands.types`, with every quantity converted to eV and
Angstrom and every position expressed in fractional coordinates.

Routine Listings
----------------
parse_pwxml : function
    Read a pw.x XML file into an ElectronicStructure
parse_pwxml_string : function
    Read pw.x XML text into an ElectronicStructure
extract_electronic_structure : function
    Build an ElectronicStructure from a parsed root element
read_atomic_structure : function
    Lattice, fractional positions, labels and alat
read_reciprocal_lattice : function
    Reciprocal lattice in 1/Angstrom
read_band_structure : function
    Fractional k-points, band energies and Fermi energy
load_document : function
    Parse an XML file and return its root element

Notes
-----
Failures raise subclasses of `qebands.errors.PWXmlError`, which is itself a
``ValueError``.
"""

from .pwxml import (
    extract_electronic_structure,
    parse_pwxml,
    parse_pwxml_string,
    read_atomic_structure,
    read_band_structure,
    read_reciprocal_lattice,
)
from .xml_access import load_document

__all__ = [
    "extract_electronic_structure",
    "load_document",
    "parse_pwxml",
    "parse_pwxml_string",
    "read_atomic_structure",
    "read_band_structure",
    "read_reciprocal_lattice",
]
