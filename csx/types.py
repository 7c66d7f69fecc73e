# Copyright 2022 NVIDIA Corporation
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
from __future__ import annotations

from typing import Any, Callable

import numpy
from typing_extensions import Protocol

# Coordinates and per-lane counts share one integer type so that offsets
# built from counts can be used directly as slice bounds into crd.
coord_ty = numpy.dtype(numpy.int64)
nnz_ty = numpy.dtype(numpy.int64)
# Values default to double precision, as in scipy.sparse.
float64 = numpy.dtype(numpy.float64)


class Scalar(Protocol):
    """The capabilities the conversion and merge routines need from an
    element type. numpy scalars and Python numbers (including
    ``fractions.Fraction`` and ``decimal.Decimal`` stored in object arrays)
    all satisfy it. Anything beyond equality with zero is requested
    through explicit operator arguments rather than assumed here.
    """

    def __eq__(self, other: Any) -> bool:
        ...


# A duplicate resolver for coordinate -> compressed conversion. It must be
# associative, and commutative as well, because the ordering of duplicates
# after sorting is unspecified.
Combinator = Callable[[Any, Any], Any]

# One-sided transforms applied to unmatched entries of a merge.
UnaryOp = Callable[[Any], Any]
