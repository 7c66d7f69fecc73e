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

from .compression import Compression
from .errors import SparseFormatError, SparseFormatErrorKind
from .settings import settings
from .types import coord_ty, float64, nnz_ty
from .utils import (
    cast_arr,
    cast_index_arr,
    check_shape,
    readonly,
    zero_of,
)


# counts_to_offsets turns per-lane occupancy counts into the offsets
# array of a compressed matrix: offsets[0] = 0 and offsets[k + 1] -
# offsets[k] = counts[k]. The result has one more entry than counts.
def counts_to_offsets(counts) -> numpy.ndarray:
    counts = numpy.asarray(counts, dtype=nnz_ty)
    pos = numpy.empty(counts.shape[0] + 1, dtype=coord_ty)
    pos[0] = 0
    numpy.cumsum(counts, out=pos[1:])
    return pos


# CompressedBase is a base class for the sparse matrix kinds in csx:
# COO, CSR and CSC.
class CompressedBase:
    # Make numpy defer binary operators with a dense left operand to our
    # reflected methods, as scipy.sparse does.
    __array_priority__ = 10.1

    @classmethod
    def nnz_to_pos_cls(cls, q_nnz) -> Tuple[numpy.ndarray, int]:
        pos = counts_to_offsets(q_nnz)
        return pos, int(pos[-1])

    @property
    def nrows(self) -> int:
        return self.shape[0]

    @property
    def ncols(self) -> int:
        return self.shape[1]

    def asformat(self, format, copy=False):
        if format is None or format == self.format:
            if copy:
                return self.copy()
            else:
                return self
        else:
            try:
                convert_method = getattr(self, "to" + format)
            except AttributeError as e:
                raise ValueError("Format {} is unknown.".format(format)) from e

            # Forward the copy kwarg, if it's accepted.
            try:
                return convert_method(copy=copy)
            except TypeError:
                return convert_method()

    def toarray(self, order=None, out=None):
        return self.todense(order=order, out=out)

    def __repr__(self):
        return (
            f"<{self.shape[0]}x{self.shape[1]} {type(self).__name__} of "
            f"type {self.dtype} with {self.nnz} stored elements>"
        )


# CsLane is one major lane of a compressed matrix: the minor indices and
# values stored in it, in ascending minor order. Lanes can be iterated
# any number of times.
class CsLane:
    __slots__ = ("minor_indices", "values")

    def __init__(self, minor_indices, values):
        self.minor_indices = minor_indices
        self.values = values

    def __len__(self):
        return self.minor_indices.shape[0]

    def __iter__(self) -> Iterator[Tuple[int, object]]:
        # Values stay numpy scalars so arithmetic on them keeps the element
        # dtype.
        return zip(self.minor_indices.tolist(), self.values)


# validate_cs_parts checks every structural invariant of a compressed
# matrix and raises a SparseFormatError describing the first violation.
def validate_cs_parts(
    compression: Compression, shape, pos, crd, vals
) -> None:
    nmajor = compression.nmajor(*shape)
    nminor = compression.nminor(*shape)
    for name, arr in (("offsets", pos), ("indices", crd), ("values", vals)):
        if arr.ndim != 1:
            raise SparseFormatError(
                SparseFormatErrorKind.INVALID_STRUCTURE,
                f"{name} must be one dimensional, got ndim={arr.ndim}",
            )
    if pos.shape[0] != nmajor + 1:
        raise SparseFormatError(
            SparseFormatErrorKind.INVALID_OFFSET_ARRAY_LENGTH,
            f"offsets has length {pos.shape[0]}, expected {nmajor + 1}",
        )
    if crd.shape[0] != vals.shape[0]:
        raise SparseFormatError(
            SparseFormatErrorKind.INVALID_STRUCTURE,
            f"indices and values have differing lengths "
            f"({crd.shape[0]} and {vals.shape[0]})",
        )
    nnz = crd.shape[0]
    if pos[0] != 0 or pos[-1] != nnz:
        raise SparseFormatError(
            SparseFormatErrorKind.INVALID_OFFSET_FIRST_LAST,
            f"offsets must start at 0 and end at nnz={nnz}, "
            f"got {int(pos[0])} and {int(pos[-1])}",
        )
    if nmajor > 0 and numpy.any(numpy.diff(pos) < 0):
        raise SparseFormatError(
            SparseFormatErrorKind.NONMONOTONIC_OFFSETS,
            "offsets must be a non-decreasing sequence",
        )
    if nnz == 0:
        return
    if crd.min() < 0 or crd.max() >= nminor:
        raise SparseFormatError(
            SparseFormatErrorKind.MINOR_INDEX_OUT_OF_BOUNDS,
            f"minor indices must lie in [0, {nminor})",
        )
    # Each step between neighbouring entries must strictly increase the
    # minor index, except where a new lane begins.
    steps = numpy.diff(crd)
    in_lane = numpy.ones(steps.shape[0], dtype=bool)
    starts = pos[1:-1]
    starts = starts[(starts > 0) & (starts < nnz)]
    in_lane[starts - 1] = False
    bad = numpy.flatnonzero(in_lane & (steps <= 0))
    if bad.shape[0] > 0:
        first = int(bad[0])
        major = int(numpy.searchsorted(pos, first + 1, side="right")) - 1
        if steps[first] == 0:
            raise SparseFormatError(
                SparseFormatErrorKind.DUPLICATE_ENTRY,
                f"lane {major} stores minor index {int(crd[first])} twice",
            )
        raise SparseFormatError(
            SparseFormatErrorKind.NONMONOTONIC_MINOR_INDICES,
            f"minor indices of lane {major} are not sorted",
        )


# CompressedStorage is the shared engine behind csr_array and csc_array.
# It holds an offsets array (pos), a minor index array (crd) and a values
# array (vals). Subclasses fix the compression strategy, which decides
# whether the major axis is the rows (CSR) or the columns (CSC).
#
# An instance either owns its buffers, or borrows read-only views of
# caller supplied arrays. The structure (pos and crd) is immutable after
# construction in both cases; only owned instances allow writes to vals.
class CompressedStorage(CompressedBase):
    compression: Compression

    def __init__(self, arg, shape=None, dtype=None, copy=False, check=None):
        self.ndim = 2
        if check is None:
            check = settings.check_structure()

        if isinstance(arg, tuple) and _is_shape(arg):
            # An empty matrix of the given shape.
            shape = check_shape(arg)
            dtype = float64 if dtype is None else dtype
            empty = type(self).make_empty(shape, dtype)
            self._set_parts(shape, empty.pos, empty.crd, empty.vals, True)
        elif isinstance(arg, numpy.ndarray) or isinstance(arg, list):
            result = csx.convert.dense_to_compressed(type(self), arg)
            self._set_parts(
                result.shape, result.pos, result.crd, result.vals, True
            )
        elif scipy.sparse.issparse(arg):
            # scipy may store duplicates or unsorted indices, so
            # canonicalize a private copy before validating it.
            s = arg.asformat(self.format, copy=True)
            s.sum_duplicates()
            pos = cast_arr(s.indptr, coord_ty)
            crd = cast_arr(s.indices, coord_ty)
            vals = numpy.asarray(s.data)
            shape = check_shape(s.shape)
            if check:
                validate_cs_parts(self.compression, shape, pos, crd, vals)
            self._set_parts(shape, pos, crd, vals, True)
        elif csx.is_sparse_matrix(arg):
            result = arg.asformat(self.format, copy=copy)
            self._set_parts(
                result.shape,
                result.pos,
                result.crd,
                result.vals,
                not result.is_view,
            )
        elif isinstance(arg, tuple):
            if shape is None:
                raise AssertionError("Cannot infer shape in this case.")
            shape = check_shape(shape)

            if len(arg) == 2:
                # If the tuple has two arguments, then it must be of the form
                # (data, (row, col)), so just pass it to the COO constructor
                # and transform it into a compressed matrix.
                data, (row, col) = arg
                result = csx.coo_array(
                    (data, (row, col)), shape=shape
                ).asformat(self.format)
                self._set_parts(
                    result.shape, result.pos, result.crd, result.vals, True
                )
            elif len(arg) == 3:
                (data, indices, indptr) = arg
                pos = cast_index_arr(indptr, "offsets", check)
                crd = cast_index_arr(indices, "indices", check)
                vals = numpy.asarray(data)
                if vals.ndim == 0:
                    vals = vals.reshape(1)
                if check:
                    validate_cs_parts(self.compression, shape, pos, crd, vals)
                if copy:
                    pos, crd, vals = pos.copy(), crd.copy(), vals.copy()
                self._set_parts(shape, pos, crd, vals, copy)
            else:
                raise AssertionError
        else:
            raise NotImplementedError

        # Use the user's dtype if requested, otherwise infer it from
        # the input data.
        if dtype is not None and numpy.dtype(dtype) != self.vals.dtype:
            self._set_parts(
                self.shape,
                self.pos,
                self.crd,
                self.vals.astype(dtype),
                True,
            )

    def _set_parts(self, shape, pos, crd, vals, owned):
        # Ensure that we don't accidentally include ndarray
        # objects as the elements of our shapes.
        self.shape = tuple(int(i) for i in shape)
        self.pos = readonly(pos)
        self.crd = readonly(crd)
        self._owned = bool(owned)
        self.vals = vals if self._owned else readonly(vals)
        self.dtype = self.vals.dtype

    @classmethod
    def _from_parts_unchecked(cls, shape, pos, crd, vals):
        """Build a matrix from its parts without any validation.

        The caller must guarantee every invariant of the format: ``pos``
        has ``nmajor + 1`` non-decreasing entries starting at 0 and ending
        at ``len(crd)``, ``len(crd) == len(vals)``, and the minor indices of
        every lane are strictly increasing and smaller than the minor
        dimension. Violating this leaves the matrix in a state where every
        other routine may silently produce garbage. Only the algorithms of
        this package call it, immediately after establishing the
        invariants themselves. The result owns ``vals``.
        """
        result = cls.__new__(cls)
        result.ndim = 2
        result._set_parts(shape, pos, crd, vals, True)
        return result

    @classmethod
    def from_parts(cls, shape, pos, crd, vals, copy=False):
        """Build a matrix from offsets, minor indices and values.

        Every structural invariant is checked and a ``SparseFormatError``
        is raised when one does not hold. With ``copy=False`` the result
        borrows read-only views of the given arrays; with ``copy=True`` it
        owns private copies.
        """
        return cls((vals, crd, pos), shape=shape, copy=copy, check=True)

    @classmethod
    def make_empty(cls, shape, dtype):
        shape = check_shape(shape)
        nmajor = cls.compression.nmajor(*shape)
        # Make an empty pos array.
        q = numpy.zeros((nmajor,), dtype=nnz_ty)
        pos, _ = CompressedBase.nnz_to_pos_cls(q)
        crd = numpy.zeros((0,), dtype=coord_ty)
        vals = numpy.zeros((0,), dtype=dtype)
        return cls._from_parts_unchecked(shape, pos, crd, vals)

    @classmethod
    def make_with_same_nnz_structure(cls, mat, vals, shape=None):
        if shape is None:
            shape = mat.shape
        # The structure arrays are read-only, so sharing them between
        # matrices is safe.
        return cls._from_parts_unchecked(shape, mat.pos, mat.crd, vals)

    # Enable direct operation on the values array.
    def get_data(self):
        return self.vals

    def set_data(self, data):
        if not self._owned:
            raise ValueError(
                "Cannot replace the values of a matrix that borrows its "
                "buffers; make a copy() first."
            )
        data = numpy.asarray(data)
        if data.shape != self.vals.shape:
            raise ValueError(
                f"Expected {self.vals.shape[0]} values, got shape {data.shape}"
            )
        self.vals = data
        self.dtype = data.dtype

    data = property(fget=get_data, fset=set_data)

    @property
    def indices(self):
        return self.crd

    @property
    def indptr(self):
        return self.pos

    @property
    def nnz(self) -> int:
        return self.vals.shape[0]

    @property
    def format(self) -> str:
        return self.compression.format

    @property
    def nmajor(self) -> int:
        return self.pos.shape[0] - 1

    @property
    def nminor(self) -> int:
        return self.compression.nminor(*self.shape)

    @property
    def is_view(self) -> bool:
        return not self._owned

    def disassemble(self):
        return self.pos, self.crd, self.vals

    def lane(self, k: int) -> CsLane:
        if k < 0 or k >= self.nmajor:
            raise IndexError(
                f"lane {k} is out of bounds for {self.nmajor} lanes"
            )
        lo, hi = int(self.pos[k]), int(self.pos[k + 1])
        return CsLane(self.crd[lo:hi], self.vals[lo:hi])

    def lane_iter(self) -> Iterator[CsLane]:
        for k in range(self.nmajor):
            yield self.lane(k)

    # minor_lane_iter walks the matrix along its minor axis: for every minor
    # index, in order, it yields the lane of (major index, value) pairs
    # stored at that minor index, ascending by major index.
    def minor_lane_iter(self) -> Iterator[CsLane]:
        pos, crd, vals = csx.convert.transpose_parts(
            self.pos, self.crd, self.vals, self.nminor
        )
        for k in range(pos.shape[0] - 1):
            lo, hi = int(pos[k]), int(pos[k + 1])
            yield CsLane(crd[lo:hi], vals[lo:hi])

    # _major_minor_iter yields (major, minor, value) in ascending
    # (major, minor) order, which is the native storage order.
    def _major_minor_iter(self) -> Iterator[Tuple[int, int, object]]:
        pos = self.pos.tolist()
        crd = self.crd.tolist()
        vals = self.vals
        for major in range(len(pos) - 1):
            for k in range(pos[major], pos[major + 1]):
                yield major, crd[k], vals[k]

    def triplet_iter(self) -> Iterator[Tuple[int, int, object]]:
        to_row_col = self.compression.to_row_col
        for major, minor, value in self._major_minor_iter():
            row, col = to_row_col(major, minor)
            yield row, col, value

    def get_entry(self, row: int, col: int):
        nrows, ncols = self.shape
        if not (0 <= row < nrows and 0 <= col < ncols):
            raise IndexError(
                f"index ({row}, {col}) is out of bounds for shape {self.shape}"
            )
        major, minor = self.compression.to_major_minor(row, col)
        lo, hi = int(self.pos[major]), int(self.pos[major + 1])
        k = lo + int(numpy.searchsorted(self.crd[lo:hi], minor))
        if k < hi and self.crd[k] == minor:
            return self.vals[k]
        return zero_of(self.dtype)

    def astype(self, dtype, casting="unsafe", copy=True):
        if not copy and dtype == self.dtype:
            return self
        vals = self.vals.astype(dtype, casting=casting, copy=True)
        return type(self).make_with_same_nnz_structure(self, vals)

    def copy(self):
        return type(self)._from_parts_unchecked(
            self.shape, self.pos.copy(), self.crd.copy(), self.vals.copy()
        )

    def conj(self, copy=True):
        if copy:
            return self.copy().conj(copy=False)
        return type(self).make_with_same_nnz_structure(
            self, numpy.conj(self.vals)
        )

    def tocoo(self, copy=False):
        return csx.convert.compressed_to_coo(self)

    def todense(self, order=None, out=None):
        if order is not None:
            raise NotImplementedError
        result = csx.convert.compressed_to_dense(self)
        if out is None:
            return result
        if out.shape != self.shape:
            raise ValueError(
                f"Output shape {out.shape} is not consistent "
                f"with shape {self.shape}"
            )
        if out.dtype != self.dtype:
            raise ValueError(
                f"Output type {out.dtype} is not consistent "
                f"with dtype {self.dtype}"
            )
        out[...] = result
        return out

    def to_scipy_sparse(self):
        cls = getattr(scipy.sparse, self.format + "_array")
        return cls(
            (self.vals, self.crd, self.pos), shape=self.shape, dtype=self.dtype
        )

    # other / mat is not defined for sparse matrices, only mat / scalar.
    def __truediv__(self, other):
        if not numpy.isscalar(other):
            raise NotImplementedError
        return csx.ops.sp_cs_scalar_div(self, other)

    def __mul__(self, other):
        # Only scalar multiplication is supported. It preserves the
        # non-zero structure, so only a new values array is made.
        if numpy.ndim(other) == 0 and not csx.is_sparse_matrix(other):
            return csx.ops.sp_cs_scalar_prod(self, other)
        raise NotImplementedError

    def __rmul__(self, other):
        return self * other

    def __neg__(self):
        return type(self).make_with_same_nnz_structure(self, -self.vals)

    def __sub__(self, other):
        if isinstance(other, numpy.ndarray):
            return csx.ops.spsub_sparse_dense(self, other)
        if csx.is_sparse_matrix(other):
            return csx.ops.spsub(self, _as_compressed(other, self.format))
        raise NotImplementedError

    def __rsub__(self, other):
        if isinstance(other, numpy.ndarray):
            return csx.ops.spsub_dense_sparse(other, self)
        raise NotImplementedError

    def __add__(self, other):
        # If we're being added against a dense matrix, there's no point of
        # doing anything smart. The result is dense.
        if isinstance(other, numpy.ndarray):
            return csx.ops.spadd_dense_sparse(other, self)
        if csx.is_sparse_matrix(other):
            return csx.ops.spadd(self, _as_compressed(other, self.format))
        raise NotImplementedError

    def __radd__(self, other):
        if isinstance(other, numpy.ndarray):
            return csx.ops.spadd_dense_sparse(other, self)
        raise NotImplementedError

    def __str__(self):
        return f"{self.pos}, {self.crd}, {self.vals}"


# _as_compressed keeps compressed operands in their own orientation (the
# merge engine handles mixed orientations) and converts COO operands into
# the orientation of the other operand.
def _as_compressed(mat, format):
    if isinstance(mat, CompressedStorage):
        return mat
    return mat.asformat(format)


def _is_shape(arg) -> bool:
    return len(arg) == 2 and all(
        isinstance(i, (int, numpy.integer)) for i in arg
    )
