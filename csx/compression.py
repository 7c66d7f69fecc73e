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

from typing import Tuple, TypeVar

__all__ = (
    "Compression",
    "CompressedRowStorage",
    "CompressedColumnStorage",
    "CSR",
    "CSC",
)

T = TypeVar("T")


# Compression is the strategy that tells a compressed container which axis
# is collapsed into the offsets array (the major axis) and which one is
# stored explicitly per lane (the minor axis). A CSR matrix of shape (m, n)
# and a CSC matrix of shape (n, m) share the exact same arrays; the strategy
# is the only thing that tells them apart. The mapping functions work on
# plain integers as well as on whole numpy index arrays.
class Compression:
    format: str = ""

    def nmajor(self, nrows: int, ncols: int) -> int:
        raise NotImplementedError

    def nminor(self, nrows: int, ncols: int) -> int:
        raise NotImplementedError

    def to_major_minor(self, row: T, col: T) -> Tuple[T, T]:
        raise NotImplementedError

    def to_row_col(self, major: T, minor: T) -> Tuple[T, T]:
        raise NotImplementedError

    def swapped(self) -> "Compression":
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class CompressedRowStorage(Compression):
    format = "csr"

    def nmajor(self, nrows, ncols):
        return nrows

    def nminor(self, nrows, ncols):
        return ncols

    def to_major_minor(self, row, col):
        return row, col

    def to_row_col(self, major, minor):
        return major, minor

    def swapped(self):
        return CSC


class CompressedColumnStorage(Compression):
    format = "csc"

    def nmajor(self, nrows, ncols):
        return ncols

    def nminor(self, nrows, ncols):
        return nrows

    def to_major_minor(self, row, col):
        return col, row

    def to_row_col(self, major, minor):
        return minor, major

    def swapped(self):
        return CSR


CSR = CompressedRowStorage()
CSC = CompressedColumnStorage()
