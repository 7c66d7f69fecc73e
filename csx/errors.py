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

from enum import Enum, unique
from typing import Optional, Tuple

__all__ = (
    "SparseFormatError",
    "SparseFormatErrorKind",
    "OperationError",
    "OperationErrorKind",
)


@unique
class SparseFormatErrorKind(Enum):
    # Offsets array does not have nmajor + 1 entries.
    INVALID_OFFSET_ARRAY_LENGTH = "invalid_offset_array_length"
    # Offsets do not start at 0 or do not end at nnz.
    INVALID_OFFSET_FIRST_LAST = "invalid_offset_first_last"
    NONMONOTONIC_OFFSETS = "nonmonotonic_offsets"
    MINOR_INDEX_OUT_OF_BOUNDS = "minor_index_out_of_bounds"
    DUPLICATE_ENTRY = "duplicate_entry"
    NONMONOTONIC_MINOR_INDICES = "nonmonotonic_minor_indices"
    # A coordinate (row or column) lies outside the matrix shape.
    INDEX_OUT_OF_BOUNDS = "index_out_of_bounds"
    # Mismatched array lengths or dimensionality.
    INVALID_STRUCTURE = "invalid_structure"


class SparseFormatError(ValueError):
    """Raised by validating constructors when the supplied arrays do not
    describe a well-formed matrix. Nothing is constructed in that case.
    """

    def __init__(self, kind: SparseFormatErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


@unique
class OperationErrorKind(Enum):
    SHAPE_MISMATCH = "shape_mismatch"


class OperationError(ValueError):
    """Raised by binary operations whose operands cannot be combined. The
    check happens before any traversal, so no partial result exists.
    """

    def __init__(
        self,
        kind: OperationErrorKind,
        message: str,
        lhs_shape: Optional[Tuple[int, int]] = None,
        rhs_shape: Optional[Tuple[int, int]] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.lhs_shape = lhs_shape
        self.rhs_shape = rhs_shape

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"

    @classmethod
    def shape_mismatch(cls, lhs_shape, rhs_shape) -> "OperationError":
        lhs_shape = tuple(int(i) for i in lhs_shape)
        rhs_shape = tuple(int(i) for i in rhs_shape)
        return cls(
            OperationErrorKind.SHAPE_MISMATCH,
            f"operands have differing shapes {lhs_shape} and {rhs_shape} "
            "(both should be M x N)",
            lhs_shape=lhs_shape,
            rhs_shape=rhs_shape,
        )
