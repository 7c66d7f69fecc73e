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

"""Elementwise arithmetic on sparse matrices.

Sparse-sparse operations are merge joins over the stored triplets of both
operands, visited in (major, minor) order of the left operand. Entries
present in only one operand go through a unary map, entries present in
both go through a binary combinator. Values that happen to combine to zero
are stored as explicit zeros; nothing is pruned.
"""

import logging
from typing import Iterable, Iterator, Tuple

import numpy

from .base import CompressedStorage, counts_to_offsets
from .convert import expand_pos_to_coordinates
from .errors import OperationError
from .types import Combinator, Scalar, UnaryOp, coord_ty
from .utils import as_dense, find_common_type

logger = logging.getLogger(__name__)

Triplet = Tuple[int, int, Scalar]


def _identity(value):
    return value


def _negate(value):
    return -value


def _subtract(lhs, rhs):
    return lhs - rhs


def _add(lhs, rhs):
    return lhs + rhs


def merge_triplets(
    left: Iterable[Triplet],
    right: Iterable[Triplet],
    left_only: UnaryOp,
    right_only: UnaryOp,
    both: Combinator,
) -> Iterator[Triplet]:
    """Merge two streams of ``(major, minor, value)`` triplets.

    Both streams must be sorted ascending by ``(major, minor)`` and hold at
    most one triplet per key. The merged stream is in the same order. A key
    present only on the left yields ``left_only(value)``, a key present
    only on the right yields ``right_only(value)``, and a key present on
    both sides yields ``both(left_value, right_value)``.
    """
    left = iter(left)
    right = iter(right)
    a = next(left, None)
    b = next(right, None)
    while a is not None and b is not None:
        ka = (a[0], a[1])
        kb = (b[0], b[1])
        if ka < kb:
            yield a[0], a[1], left_only(a[2])
            a = next(left, None)
        elif kb < ka:
            yield b[0], b[1], right_only(b[2])
            b = next(right, None)
        else:
            yield a[0], a[1], both(a[2], b[2])
            a = next(left, None)
            b = next(right, None)
    while a is not None:
        yield a[0], a[1], left_only(a[2])
        a = next(left, None)
    while b is not None:
        yield b[0], b[1], right_only(b[2])
        b = next(right, None)


# _triplets_along yields the triplets of mat as (major, minor, value) in the
# axes of the given compression. When mat is stored in the other
# orientation, its minor lanes are walked instead of its major lanes.
def _triplets_along(mat, compression) -> Iterator[Triplet]:
    if mat.compression is compression:
        yield from mat._major_minor_iter()
        return
    for major, lane in enumerate(mat.minor_lane_iter()):
        for minor, value in lane:
            yield major, minor, value


def _check_shapes(lhs_shape, rhs_shape) -> None:
    if tuple(lhs_shape) != tuple(rhs_shape):
        raise OperationError.shape_mismatch(lhs_shape, rhs_shape)


def spcombine(
    lhs: CompressedStorage,
    rhs: CompressedStorage,
    left_only: UnaryOp,
    right_only: UnaryOp,
    both: Combinator,
    dtype=None,
):
    """Combine two compressed matrices of equal shape entry by entry.

    The result is stored in the orientation of ``lhs``; ``rhs`` may use
    either orientation. ``dtype`` defaults to the result type of the two
    operands. Raises ``OperationError`` when the shapes differ.
    """
    _check_shapes(lhs.shape, rhs.shape)
    if dtype is None:
        dtype = find_common_type(lhs, rhs)
    logger.debug(
        "combining %s %s (%d entries) with %s %s (%d entries)",
        lhs.format,
        lhs.shape,
        lhs.nnz,
        rhs.format,
        rhs.shape,
        rhs.nnz,
    )

    # The union of both structures never has more entries than the two
    # operands together.
    capacity = lhs.nnz + rhs.nnz
    crd = numpy.empty((capacity,), dtype=coord_ty)
    vals = numpy.empty((capacity,), dtype=dtype)
    counts = [0] * lhs.nmajor
    nnz = 0
    # Both operands are read as numpy scalars of the result dtype, so
    # fixed-width integers wrap around exactly like dense arithmetic does.
    merged = merge_triplets(
        lhs.astype(dtype, copy=False)._major_minor_iter(),
        _triplets_along(rhs.astype(dtype, copy=False), lhs.compression),
        left_only,
        right_only,
        both,
    )
    with numpy.errstate(over="ignore"):
        for major, minor, value in merged:
            crd[nnz] = minor
            vals[nnz] = value
            counts[major] += 1
            nnz += 1

    pos = counts_to_offsets(counts)
    return type(lhs)._from_parts_unchecked(
        lhs.shape, pos, crd[:nnz].copy(), vals[:nnz].copy()
    )


def spsub(lhs, rhs):
    """Compute ``lhs - rhs`` for two compressed matrices.

    The result takes the orientation of ``lhs`` and keeps every entry
    stored in either operand, including entries that cancel to zero.
    """
    return spcombine(lhs, rhs, _identity, _negate, _subtract)


def spadd(lhs, rhs):
    """Compute ``lhs + rhs`` for two compressed matrices.

    The result takes the orientation of ``lhs`` and keeps every entry
    stored in either operand, including entries that cancel to zero.
    """
    return spcombine(lhs, rhs, _identity, _identity, _add)


# _stored_entries returns the rows, columns and values of every entry
# stored in a sparse matrix of any format.
def _stored_entries(sp):
    if sp.format == "coo":
        return sp.row, sp.col, sp.data
    majors = expand_pos_to_coordinates(sp.pos)
    rows, cols = sp.compression.to_row_col(majors, sp.crd)
    return rows, cols, sp.vals


def _dense_operand(dense, sp):
    dense = as_dense(dense)
    _check_shapes(dense.shape, sp.shape)
    return dense, find_common_type(dense, sp)


def spadd_dense_sparse(dense, sp) -> numpy.ndarray:
    """Compute ``dense + sp`` into a new dense array."""
    dense, dtype = _dense_operand(dense, sp)
    out = dense.astype(dtype, copy=True)
    rows, cols, vals = _stored_entries(sp)
    numpy.add.at(out, (rows, cols), vals)
    return out


def spsub_dense_sparse(dense, sp) -> numpy.ndarray:
    """Compute ``dense - sp`` into a new dense array."""
    dense, dtype = _dense_operand(dense, sp)
    out = dense.astype(dtype, copy=True)
    rows, cols, vals = _stored_entries(sp)
    numpy.subtract.at(out, (rows, cols), vals)
    return out


def spsub_sparse_dense(sp, dense) -> numpy.ndarray:
    """Compute ``sp - dense`` into a new dense array."""
    dense, dtype = _dense_operand(dense, sp)
    out = numpy.negative(dense.astype(dtype))
    rows, cols, vals = _stored_entries(sp)
    numpy.add.at(out, (rows, cols), vals)
    return out


# Scalar maps keep the structure of the input, so the result shares its
# (read-only) pos and crd arrays and only gets a new values array.
def sp_cs_scalar_prod(cs, scalar):
    return type(cs).make_with_same_nnz_structure(cs, cs.vals * scalar)


def sp_cs_scalar_div(cs, scalar):
    return type(cs).make_with_same_nnz_structure(cs, cs.vals / scalar)
