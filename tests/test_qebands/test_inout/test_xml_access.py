"""Tests for the typed element-tree accessors."""

import tempfile
import xml.etree.ElementTree as ET
from pathlib import Path

import chex
import numpy as np
import pytest
from absl.testing import parameterized

from qebands.errors import MalformedDataError, NodeNotFoundError
from qebands.inout.xml_access import (
    find_all,
    find_required,
    load_document,
    load_document_string,
    local_name,
    parse_bool,
    parse_float,
    parse_floats,
    parse_int,
    read_bool,
    read_float_attribute,
    read_int,
    read_int_attribute,
    read_vector,
    required_attribute,
)

SAMPLE_XML = """<?xml version="1.0" encoding="UTF-8"?>
<qes:espresso xmlns:qes="http://www.quantum-espresso.org/ns/qes/qes-1.0">
  <output>
    <atomic_structure nat="2" alat="10.2">
      <atomic_positions>
        <atom name="Si" index="1">0.0 0.0 0.0</atom>
        <atom name="Si" index="2">-2.55 2.55 2.55</atom>
      </atomic_positions>
      <cell>
        <a1>-5.1 0.0 5.1</a1>
      </cell>
    </atomic_structure>
    <band_structure>
      <lsda>false</lsda>
      <nks>  3 </nks>
    </band_structure>
  </output>
</qes:espresso>
"""


class TestScalarParsing(chex.TestCase, parameterized.TestCase):
    """Text to typed scalar conversion."""

    @parameterized.named_parameters(
        ("lower_true", "true", True),
        ("lower_false", "false", False),
        ("upper_true", "TRUE", True),
        ("padded", "  false\n", False),
        ("one", "1", True),
        ("zero", "0", False),
    )
    def test_parse_bool(self, text: str, expected: bool) -> None:
        assert parse_bool(text, "x") is expected

    @parameterized.named_parameters(
        ("yes", "yes"),
        ("empty", ""),
        ("fortran", ".true."),
    )
    def test_parse_bool_invalid(self, text: str) -> None:
        with pytest.raises(MalformedDataError, match="boolean"):
            parse_bool(text, "output/band_structure/lsda")

    def test_parse_int(self) -> None:
        assert parse_int(" 42 ", "x") == 42
        with pytest.raises(MalformedDataError, match="integer"):
            parse_int("4.0", "x")
        with pytest.raises(MalformedDataError, match="integer"):
            parse_int(None, "x")

    def test_parse_float(self) -> None:
        assert parse_float("-1.5E-01", "x") == -0.15
        with pytest.raises(MalformedDataError, match="floating-point"):
            parse_float("abc", "x")

    def test_error_carries_location(self) -> None:
        with pytest.raises(MalformedDataError) as excinfo:
            parse_int("many", "output/band_structure/nks")
        assert excinfo.value.location == "output/band_structure/nks"
        assert str(excinfo.value).endswith("(at output/band_structure/nks)")


class TestParseFloats(chex.TestCase):
    """Whitespace-separated vectors."""

    def test_multiline_text(self) -> None:
        values = parse_floats("\n  1.0 2.0\n 3.0   4.0\n", "x")
        np.testing.assert_allclose(values, [1.0, 2.0, 3.0, 4.0])
        assert values.dtype == np.float64

    def test_exact_count(self) -> None:
        values = parse_floats("1 2 3", "x", count=3)
        np.testing.assert_allclose(values, [1.0, 2.0, 3.0])

    def test_count_mismatch(self) -> None:
        with pytest.raises(MalformedDataError, match="Expected 3 numbers, found 2"):
            parse_floats("1.0 2.0", "x", count=3)

    def test_non_numeric_token(self) -> None:
        with pytest.raises(MalformedDataError, match="Non-numeric"):
            parse_floats("1.0 two 3.0", "x", count=3)

    def test_empty_element(self) -> None:
        assert parse_floats(None, "x").shape == (0,)


class TestTreeAccess(chex.TestCase):
    """Mandatory element and attribute lookup."""

    def setUp(self) -> None:
        super().setUp()
        self.root = ET.fromstring(SAMPLE_XML)
        self.output = self.root.find("output")

    def test_local_name_strips_namespace(self) -> None:
        assert local_name(self.root.tag) == "espresso"
        assert local_name("output") == "output"

    def test_find_required(self) -> None:
        cell = find_required(self.output, "atomic_structure/cell", "output")
        assert cell.tag == "cell"

    def test_find_required_missing(self) -> None:
        with pytest.raises(NodeNotFoundError) as excinfo:
            find_required(self.output, "basis_set/reciprocal_lattice", "output")
        assert excinfo.value.location == "output/basis_set/reciprocal_lattice"

    def test_find_all_in_document_order(self) -> None:
        atoms = find_all(self.output, "atomic_structure/atomic_positions/atom")
        assert [atom.get("index") for atom in atoms] == ["1", "2"]
        assert find_all(self.output, "ks_energies") == []

    def test_attributes(self) -> None:
        structure = self.output.find("atomic_structure")
        location = "output/atomic_structure"

        assert read_int_attribute(structure, "nat", location) == 2
        assert read_float_attribute(structure, "alat", location) == 10.2
        with pytest.raises(NodeNotFoundError, match="'bravais_index'"):
            required_attribute(structure, "bravais_index", location)

    def test_child_values(self) -> None:
        band_structure = self.output.find("band_structure")
        location = "output/band_structure"

        assert read_int(band_structure, "nks", location) == 3
        assert read_bool(band_structure, "lsda", location) is False
        with pytest.raises(NodeNotFoundError):
            read_bool(band_structure, "spinorbit", location)

    def test_read_vector(self) -> None:
        structure = self.output.find("atomic_structure")
        a1 = read_vector(structure, "cell/a1", "output/atomic_structure")
        np.testing.assert_allclose(a1, [-5.1, 0.0, 5.1])
        with pytest.raises(MalformedDataError) as excinfo:
            read_vector(structure, "cell/a1", "output/atomic_structure", count=4)
        assert excinfo.value.location == "output/atomic_structure/cell/a1"


class TestLoadDocument(chex.TestCase):
    """Loading XML from disk and from memory."""

    def test_load_from_path(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            xml_file = Path(tmp_dir) / "data-file-schema.xml"
            xml_file.write_text(SAMPLE_XML)

            root = load_document(xml_file)
            assert local_name(root.tag) == "espresso"
            assert local_name(load_document(str(xml_file)).tag) == "espresso"

    def test_file_not_found(self) -> None:
        with pytest.raises(FileNotFoundError):
            load_document("/nonexistent/data-file-schema.xml")

    def test_invalid_xml_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            xml_file = Path(tmp_dir) / "broken.xml"
            xml_file.write_text("not valid xml <<<<")

            with pytest.raises(MalformedDataError, match="Invalid XML"):
                load_document(xml_file)

    def test_invalid_xml_string(self) -> None:
        with pytest.raises(MalformedDataError, match="Invalid XML"):
            load_document_string("<output><unclosed></output>")
