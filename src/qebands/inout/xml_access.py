"""Typed access to the element tree of a pw.x XML document.

Extended Summary
----------------
`xml.etree.ElementTree` answers path queries (``find``, ``findall``) and
exposes attributes and text. The helpers here wrap those answers into typed
values at the boundary: a mandatory node that is absent raises
`NodeNotFoundError`, text that does not parse raises `MalformedDataError`,
and both carry the slash-separated schema location of the node. No other
module of the package touches raw element text.

Routine Listings
----------------
load_document : function
    Parse an XML file and return its root element
load_document_string : function
    Parse XML text and return its root element
local_name : function
    Tag without its ``{namespace}`` prefix
child_location : function
    Join a parent location and a relative path
find_required : function
    First element matching a path, or NodeNotFoundError
find_all : function
    All elements matching a path, in document order
required_attribute : function
    Attribute value, or NodeNotFoundError
parse_float : function
    Text to float
parse_int : function
    Text to int
parse_bool : function
    Text to bool (xs:boolean lexical space)
parse_floats : function
    Whitespace-separated text to a float64 vector
read_float : function
    Child text as float
read_int : function
    Child text as int
read_bool : function
    Child text as bool
read_vector : function
    Child text as a float64 vector of fixed length
read_float_attribute : function
    Attribute as float
read_int_attribute : function
    Attribute as int
"""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path

import numpy as np
from beartype.typing import List, Optional, Union
from jaxtyping import Float

from qebands._typing_utils import beartype
from qebands.errors import MalformedDataError, NodeNotFoundError

logger = logging.getLogger(__name__)

_TRUE_WORDS = ("true", "1")
_FALSE_WORDS = ("false", "0")


@beartype
def load_document(path: Union[str, Path]) -> ET.Element:
    """Read and parse an XML file.

    Parameters
    ----------
    path : Union[str, Path]
        Location of the XML file.

    Returns
    -------
    ET.Element
        The root element.

    Raises
    ------
    FileNotFoundError
        If `path` does not exist.
    MalformedDataError
        If the file is not well-formed XML.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"XML file not found: {path}")
    try:
        tree = ET.parse(path)
    except ET.ParseError as err:
        raise MalformedDataError(f"Invalid XML in {path}: {err}") from err
    logger.debug("Loaded XML document %s", path)
    return tree.getroot()


@beartype
def load_document_string(text: str) -> ET.Element:
    """Parse XML text and return its root element."""
    try:
        return ET.fromstring(text)
    except ET.ParseError as err:
        raise MalformedDataError(f"Invalid XML: {err}") from err


def local_name(tag: str) -> str:
    """Strip the ``{namespace}`` prefix ElementTree puts on qualified tags."""
    return tag.rsplit("}", 1)[-1]


def child_location(location: str, path: str) -> str:
    return f"{location}/{path}" if location else path


@beartype
def find_required(parent: ET.Element, path: str, location: str) -> ET.Element:
    """Return the first element matching `path` below `parent`.

    Parameters
    ----------
    parent : ET.Element
        Element to search from.
    path : str
        ElementTree path relative to `parent`, e.g. ``"cell/a1"``.
    location : str
        Schema location of `parent`, used in error messages.

    Raises
    ------
    NodeNotFoundError
        If nothing matches.
    """
    element = parent.find(path)
    if element is None:
        raise NodeNotFoundError(
            "Mandatory element missing", child_location(location, path)
        )
    return element


@beartype
def find_all(parent: ET.Element, path: str) -> List[ET.Element]:
    """Return every element matching `path` below `parent`, in document order."""
    return parent.findall(path)


@beartype
def required_attribute(element: ET.Element, name: str, location: str) -> str:
    value = element.get(name)
    if value is None:
        raise NodeNotFoundError(
            f"Mandatory attribute '{name}' missing", f"{location}[@{name}]"
        )
    return value


def _text(value: Optional[str]) -> str:
    return "" if value is None else value.strip()


@beartype
def parse_float(text: Optional[str], location: str) -> float:
    value = _text(text)
    try:
        return float(value)
    except ValueError as err:
        raise MalformedDataError(
            f"Expected a floating-point number, got '{value}'", location
        ) from err


@beartype
def parse_int(text: Optional[str], location: str) -> int:
    value = _text(text)
    try:
        return int(value)
    except ValueError as err:
        raise MalformedDataError(f"Expected an integer, got '{value}'", location) from err


@beartype
def parse_bool(text: Optional[str], location: str) -> bool:
    """Parse an ``xs:boolean`` value (``true``, ``false``, ``1`` or ``0``)."""
    value = _text(text).lower()
    if value in _TRUE_WORDS:
        return True
    if value in _FALSE_WORDS:
        return False
    raise MalformedDataError(f"Expected a boolean, got '{value}'", location)


@beartype
def parse_floats(
    text: Optional[str],
    location: str,
    count: Optional[int] = None,
) -> Float[np.ndarray, "_"]:
    """Parse whitespace-separated floats into a float64 vector.

    Parameters
    ----------
    text : str, optional
        Text content of an element. ``None`` (an empty element) parses to an
        empty vector.
    location : str
        Schema location used in error messages.
    count : int, optional
        Exact number of values required.

    Returns
    -------
    Float[np.ndarray, "_"]
        The parsed values, in text order.

    Raises
    ------
    MalformedDataError
        If a token is not a number, or if `count` is given and the number of
        tokens differs from it.
    """
    tokens = _text(text).split()
    if count is not None and len(tokens) != count:
        raise MalformedDataError(
            f"Expected {count} numbers, found {len(tokens)}", location
        )
    try:
        return np.array([float(token) for token in tokens], dtype=np.float64)
    except ValueError as err:
        raise MalformedDataError(f"Non-numeric value in '{_text(text)}'", location) from err


def read_float(parent: ET.Element, path: str, location: str) -> float:
    element = find_required(parent, path, location)
    return parse_float(element.text, child_location(location, path))


def read_int(parent: ET.Element, path: str, location: str) -> int:
    element = find_required(parent, path, location)
    return parse_int(element.text, child_location(location, path))


def read_bool(parent: ET.Element, path: str, location: str) -> bool:
    element = find_required(parent, path, location)
    return parse_bool(element.text, child_location(location, path))


def read_vector(
    parent: ET.Element, path: str, location: str, count: int = 3
) -> Float[np.ndarray, "_"]:
    element = find_required(parent, path, location)
    return parse_floats(element.text, child_location(location, path), count=count)


def read_float_attribute(element: ET.Element, name: str, location: str) -> float:
    value = required_attribute(element, name, location)
    return parse_float(value, f"{location}[@{name}]")


def read_int_attribute(element: ET.Element, name: str, location: str) -> int:
    value = required_attribute(element, name, location)
    return parse_int(value, f"{location}[@{name}]")
