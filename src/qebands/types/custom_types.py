"""Type aliases shared by the records and readers of the package.

Routine Listings
----------------
scalar_float : TypeAlias
    Python float or 0-d JAX float array
"""

from typing import TypeAlias

from beartype.typing import Union
from jaxtyping import Array, Float

scalar_float: TypeAlias = Union[float, Float[Array, ""]]

__all__ = ["scalar_float"]
