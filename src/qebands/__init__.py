"""
=========================================================

QEBANDS Package (:mod:`qebands`)

=========================================================

This is the root of the qebands package, containing submodules for:
- Readers for pw.x XML output (`inout`)
- Unit conversions and basis changes (`ucell`)
- Result records (`types`)
- Exceptions (`errors`)

Each submodule can be directly accessed after importing qebands.
"""

import logging

from . import errors, inout, types, ucell
from .inout import parse_pwxml

logging.getLogger(__name__).addHandler(logging.NullHandler())
