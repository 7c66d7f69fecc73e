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

from typing import Iterator, Tuple

import numpy
import scipy.sparse

import csx

from .base import CompressedBase, _is_shape
from .coverage import clone_scipy_arr_kind
from .errors import SparseFormatError, SparseFormatErrorKind
from .settings import settings
from .types import coord_ty, float64
from .utils import as_dense, cast_arr, cast_index_arr, check_shape


# validate_triplets checks that three coordinate arrays describe entries of
# a matrix of the given shape.
def validate_triplets(shape, row, col, data) -> None:
    for name, arr in (("row", row), ("col", col), ("data", data)):
        if arr.ndim != 1:
            raise SparseFormatError(
                SparseFormatErrorKind.INVALID_STRUCTURE,
                f"{name} must be one dimensional, got ndim={arr.ndim}",
            )
    if not (row.shape[0] == col.shape[0] == data.shape[0]):
        raise SparseFormatError(
            SparseFormatErrorKind.INVALID_STRUCTURE,
            f"row, col and data have differing lengths ({row.shape[0]}, "
            f"{col.shape[0]} and {data.shape[0]})",
        )
    if row.shape[0] == 0:
        return
    nrows, ncols = shape
    if row.min() < 0 or row.max() >= nrows:
        raise SparseFormatError(
            SparseFormatErrorKind.INDEX_OUT_OF_BOUNDS,
            f"row indices must lie in [0, {nrows})",
        )
    if col.min() < 0 or col.max() >= ncols:
        raise SparseFormatError(
            SparseFormatErrorKind.INDEX_OUT_OF_BOUNDS,
            f"column indices must lie in [0, {ncols})",
        )


def _grow(buf: numpy.ndarray, capacity: int, used: int) -> numpy.ndarray:
    out = numpy.empty((capacity,), dtype=buf.dtype)
    out[:used] = buf[:used]
    return out


@clone_scipy_arr_kind(scipy.sparse.coo_array)
class coo_array(CompressedBase):
    """A sparse matrix in coordinate format.

    Entries are kept as three parallel arrays (row, col, data) in the order
    they were added. Duplicate coordinates are allowed; they are resolved
    when the matrix is converted to another format (summed by default).
    Entries can be appended with ``push`` and ``push_matrix``.
    """

    def __init__(self, arg, shape=None, dtype=None, copy=False, check=None):
        self.ndim = 2
        if check is None:
            check = settings.check_structure()

        if isinstance(arg, tuple) and _is_shape(arg):
            # An empty matrix of the given shape.
            shape = check_shape(arg)
            dtype = float64 if dtype is None else dtype
            row = numpy.zeros((0,), dtype=coord_ty)
            col = numpy.zeros((0,), dtype=coord_ty)
            data = numpy.zeros((0,), dtype=dtype)
        elif isinstance(arg, numpy.ndarray) or isinstance(arg, list):
            result = csx.convert.convert_dense_coo(as_dense(arg))
            shape = result.shape
            row, col, data = result.disassemble()
        elif scipy.sparse.issparse(arg):
            s = arg.tocoo()
            shape = check_shape(s.shape)
            row = numpy.array(s.row, dtype=coord_ty)
            col = numpy.array(s.col, dtype=coord_ty)
            data = numpy.array(s.data)
            if check:
                validate_triplets(shape, row, col, data)
        elif csx.is_sparse_matrix(arg):
            result = arg.tocoo()
            shape = result.shape
            row, col, data = result.row, result.col, result.data
            if copy or result is arg:
                row, col, data = row.copy(), col.copy(), data.copy()
        else:
            try:
                (data, (row, col)) = arg
            except (TypeError, ValueError) as e:
                raise NotImplementedError(
                    f"Cannot build a coo_array from {type(arg).__name__}"
                ) from e
            data = cast_arr(data)
            row = cast_index_arr(row, "row", check)
            col = cast_index_arr(col, "col", check)
            if shape is None:
                if row.shape[0] == 0 or col.shape[0] == 0:
                    raise ValueError(
                        "cannot infer dimensions from zero sized index arrays"
                    )
                shape = (int(row.max()) + 1, int(col.max()) + 1)
            shape = check_shape(shape)
            if check:
                validate_triplets(shape, row, col, data)
            if copy:
                row, col, data = row.copy(), col.copy(), data.copy()

        if dtype is not None and numpy.dtype(dtype) != data.dtype:
            data = data.astype(dtype)
        self._set_buffers(shape, row, col, data)

    def _set_buffers(self, shape, row, col, data):
        # Ensure that we don't accidentally include ndarray
        # objects as the elements of our shapes.
        self.shape = tuple(int(i) for i in shape)
        # The buffers may hold spare capacity past nnz for cheap pushes.
        self._row = row
        self._col = col
        self._vals = data
        self._nnz = data.shape[0]

    @classmethod
    def try_from_triplets(cls, shape, rows, cols, data):
        """Build a coo_array from parallel row, column and value arrays.

        Raises ``SparseFormatError`` with kind ``INVALID_STRUCTURE`` when
        the arrays have differing lengths, and ``INDEX_OUT_OF_BOUNDS`` when
        a coordinate does not fit ``shape``. The arrays are copied.
        """
        return cls((data, (rows, cols)), shape=shape, copy=True, check=True)

    @property
    def row(self):
        return self._row[: self._nnz]

    @property
    def col(self):
        return self._col[: self._nnz]

    # Enable direct operation on the values array.
    def get_data(self):
        return self._vals[: self._nnz]

    def set_data(self, data):
        data = numpy.asarray(data)
        if data.shape != (self._nnz,):
            raise ValueError(
                f"Expected {self._nnz} values, got shape {data.shape}"
            )
        self._row = self.row
        self._col = self.col
        self._vals = data

    data = property(fget=get_data, fset=set_data)

    @property
    def dtype(self):
        return self._vals.dtype

    @property
    def nnz(self):
        return self._nnz

    @property
    def format(self):
        return "coo"

    def _reserve(self, extra: int) -> None:
        needed = self._nnz + extra
        capacity = self._vals.shape[0]
        if needed <= capacity:
            return
        capacity = max(needed, 2 * capacity, 4)
        self._row = _grow(self._row, capacity, self._nnz)
        self._col = _grow(self._col, capacity, self._nnz)
        self._vals = _grow(self._vals, capacity, self._nnz)

    def push(self, i: int, j: int, v) -> None:
        """Append the entry ``(i, j, v)``. Amortized O(1)."""
        nrows, ncols = self.shape
        if not (0 <= i < nrows and 0 <= j < ncols):
            raise IndexError(
                f"index ({i}, {j}) is out of bounds for shape {self.shape}"
            )
        self._reserve(1)
        k = self._nnz
        self._row[k] = i
        self._col[k] = j
        self._vals[k] = v
        self._nnz = k + 1

    def push_matrix(self, r: int, c: int, block) -> None:
        """Append every cell of the dense 2-D ``block`` with its top-left
        corner at ``(r, c)``. Zero cells are appended too. Cells are appended
        in column-major order of the block.
        """
        block = as_dense(block)
        br, bc = block.shape
        nrows, ncols = self.shape
        if r < 0 or c < 0 or r + br > nrows or c + bc > ncols:
            raise IndexError(
                f"a {br}x{bc} block at ({r}, {c}) does not fit in a matrix "
                f"of shape {self.shape}"
            )
        n = br * bc
        self._reserve(n)
        k = self._nnz
        self._row[k : k + n] = r + numpy.tile(
            numpy.arange(br, dtype=coord_ty), bc
        )
        self._col[k : k + n] = c + numpy.repeat(
            numpy.arange(bc, dtype=coord_ty), br
        )
        self._vals[k : k + n] = block.ravel(order="F")
        self._nnz = k + n

    def disassemble(self) -> Tuple[numpy.ndarray, numpy.ndarray, numpy.ndarray]:
        """Hand the (row, col, data) arrays over to the caller.

        The matrix keeps its shape but is left without entries. This is how
        the consuming conversions ``convert_coo_csr`` and
        ``convert_coo_csc`` take ownership of the buffers.
        """
        row, col, data = self.row, self.col, self.data
        self._set_buffers(
            self.shape,
            numpy.zeros((0,), dtype=coord_ty),
            numpy.zeros((0,), dtype=coord_ty),
            numpy.zeros((0,), dtype=data.dtype),
        )
        return row, col, data

    def triplet_iter(self) -> Iterator[Tuple[int, int, object]]:
        return zip(self.row.tolist(), self.col.tolist(), self.data.tolist())

    def astype(self, dtype, casting="unsafe", copy=True):
        row = self.row.copy() if copy else self.row
        col = self.col.copy() if copy else self.col
        data = self.data.astype(dtype, casting=casting, copy=copy)
        return coo_array(
            (data, (row, col)), shape=self.shape, dtype=dtype, check=False
        )

    def copy(self):
        rows = numpy.copy(self.row)
        cols = numpy.copy(self.col)
        data = numpy.copy(self.data)
        return coo_array(
            (data, (rows, cols)), dtype=self.dtype, shape=self.shape, check=False
        )

    def conj(self, copy=True):
        return coo_array(
            (numpy.conj(self.data), (self.row, self.col)),
            shape=self.shape,
            copy=copy,
            check=False,
        )

    def transpose(self, copy=False):
        return coo_array(
            (self.data, (self.col, self.row)),
            dtype=self.dtype,
            shape=(self.shape[1], self.shape[0]),
            copy=copy,
            check=False,
        )

    T = property(transpose)

    def tocoo(self, copy=False):
        if copy:
            return self.copy()
        return self

    # tocsr and tocsc leave this matrix untouched. Duplicate coordinates are
    # folded with combinator, which must be commutative and associative.
    def tocsr(self, copy=False, combinator=numpy.add):
        return csx.convert.coo_to_compressed(
            csx.csr_array, self.shape, self.row, self.col, self.data, combinator
        )

    def tocsc(self, copy=False, combinator=numpy.add):
        return csx.convert.coo_to_compressed(
            csx.csc_array, self.shape, self.row, self.col, self.data, combinator
        )

    def todense(self, order=None, out=None):
        if order is not None:
            raise NotImplementedError
        result = csx.convert.convert_coo_dense(self)
        if out is None:
            return result
        if out.shape != self.shape or out.dtype != self.dtype:
            raise ValueError(
                f"Output of shape {out.shape} and type {out.dtype} is not "
                f"consistent with shape {self.shape} and dtype {self.dtype}"
            )
        out[...] = result
        return out

    def to_scipy_sparse(self):
        return scipy.sparse.coo_array(
            (self.data, (self.row, self.col)), shape=self.shape
        )

    def __mul__(self, other):
        return self.tocsr() * other

    def __rmul__(self, other):
        return self.tocsr() * other

    def __sub__(self, other):
        return self.tocsr() - other

    def __rsub__(self, other):
        return other - self.tocsr()

    def __add__(self, other):
        return self.tocsr() + other

    def __radd__(self, other):
        return other + self.tocsr()

    def __neg__(self):
        return coo_array(
            (-self.data, (self.row, self.col)), shape=self.shape, check=False
        )

    def __str__(self):
        return f"{self.row}, {self.col}, {self.data}"


coo_matrix = coo_array
