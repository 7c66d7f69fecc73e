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

"""Serial routines for converting between matrix formats.

The compressed formats are handled by generic routines parameterized by
the target class, whose compression strategy decides which axis is major.
The ``convert_<src>_<dst>`` functions are thin named entry points around
them.

Duplicate coordinates in a COO matrix are resolved with a combinator when
the matrix is compressed. The sort that groups duplicates is not stable, so
the order in which a group of duplicates is folded is unspecified: the
combinator has to be commutative as well as associative for the result to
be well defined. ``numpy.add`` (the default) and ``numpy.maximum`` are
examples of suitable combinators.
"""

import logging

import numpy

import csx

from .base import counts_to_offsets
from .types import Combinator, coord_ty
from .utils import as_dense, warn_efficiency

logger = logging.getLogger(__name__)


def _compressed_cls(compression):
    return {"csr": csx.csr_array, "csc": csx.csc_array}[compression.format]


# expand_pos_to_coordinates turns an offsets array into the major index of
# every stored entry.
def expand_pos_to_coordinates(pos) -> numpy.ndarray:
    nmajor = pos.shape[0] - 1
    return numpy.repeat(
        numpy.arange(nmajor, dtype=coord_ty), numpy.diff(pos)
    )


# _sort_major_minor returns a permutation that orders the entries by
# (major, minor). The order of entries that share a key is unspecified.
def _sort_major_minor(majors, minors, nminor) -> numpy.ndarray:
    if majors.shape[0] == 0:
        return numpy.zeros((0,), dtype=coord_ty)
    # Fuse both keys into one integer when that cannot overflow, which
    # lets numpy use a single unstable introsort.
    max_major = int(majors.max())
    if max_major < numpy.iinfo(coord_ty).max // max(nminor, 1):
        keys = majors * nminor + minors
        return numpy.argsort(keys, kind="quicksort")
    return numpy.lexsort((minors, majors))


def _is_reducing_ufunc(combinator) -> bool:
    return (
        isinstance(combinator, numpy.ufunc)
        and combinator.nin == 2
        and combinator.nout == 1
    )


# _fold_duplicates walks the sorted values once and folds every run of
# equal keys into its first slot with the combinator.
def _fold_duplicates(data, first, combinator) -> numpy.ndarray:
    out = numpy.empty(first.shape[0], dtype=data.dtype)
    bounds = first.tolist() + [data.shape[0]]
    for k in range(first.shape[0]):
        lo, hi = bounds[k], bounds[k + 1]
        prev = data[lo]
        for i in range(lo + 1, hi):
            prev = combinator(prev, data[i])
        out[k] = prev
    return out


def coo_to_compressed(
    cls, shape, rows, cols, data, combinator: Combinator = numpy.add
):
    """Build a compressed matrix of class ``cls`` from coordinate arrays.

    The triplets are sorted by (major, minor), and runs of equal
    coordinates are folded with ``combinator``. Because the sort is not
    stable, ``combinator`` must be commutative and associative; otherwise
    the value stored for a duplicated coordinate is unspecified.
    """
    compression = cls.compression
    nmajor = compression.nmajor(*shape)
    nminor = compression.nminor(*shape)
    majors, minors = compression.to_major_minor(
        numpy.asarray(rows, dtype=coord_ty), numpy.asarray(cols, dtype=coord_ty)
    )
    data = numpy.asarray(data)
    logger.debug(
        "compressing %d triplets into a %s matrix of shape %s",
        data.shape[0],
        compression.format,
        shape,
    )

    order = _sort_major_minor(majors, minors, nminor)
    majors, minors, data = majors[order], minors[order], data[order]
    nnz = data.shape[0]
    if nnz == 0:
        return cls.make_empty(shape, data.dtype)

    # A new output entry starts wherever the (major, minor) key changes.
    starts = numpy.empty(nnz, dtype=bool)
    starts[0] = True
    numpy.not_equal(majors[1:], majors[:-1], out=starts[1:])
    starts[1:] |= minors[1:] != minors[:-1]
    first = numpy.flatnonzero(starts)

    if first.shape[0] == nnz:
        vals = data
    elif _is_reducing_ufunc(combinator):
        vals = combinator.reduceat(data, first, dtype=data.dtype)
    else:
        warn_efficiency(
            "Resolving duplicate coordinates with a combinator that is not "
            "a numpy ufunc falls back to a Python loop. Pass a ufunc such "
            "as numpy.add for large matrices."
        )
        vals = _fold_duplicates(data, first, combinator)

    crd = minors[first]
    counts = numpy.bincount(majors[first], minlength=nmajor)
    pos = counts_to_offsets(counts)
    return cls._from_parts_unchecked(shape, pos, crd, vals)


def convert_coo_csr(coo, combinator: Combinator = numpy.add):
    """Convert a coo_array into a csr_array, taking ownership of its
    buffers. ``coo`` is left empty. See ``coo_to_compressed`` for the
    requirements on ``combinator``.
    """
    shape = coo.shape
    rows, cols, data = coo.disassemble()
    return coo_to_compressed(
        csx.csr_array, shape, rows, cols, data, combinator
    )


def convert_coo_csc(coo, combinator: Combinator = numpy.add):
    """Convert a coo_array into a csc_array, taking ownership of its
    buffers. ``coo`` is left empty. See ``coo_to_compressed`` for the
    requirements on ``combinator``.
    """
    shape = coo.shape
    rows, cols, data = coo.disassemble()
    return coo_to_compressed(
        csx.csc_array, shape, rows, cols, data, combinator
    )


def compressed_to_coo(cs):
    majors = expand_pos_to_coordinates(cs.pos)
    rows, cols = cs.compression.to_row_col(majors, numpy.array(cs.crd))
    return csx.coo_array(
        (numpy.array(cs.vals), (rows, cols)),
        shape=cs.shape,
        dtype=cs.dtype,
        check=False,
    )


convert_csr_coo = compressed_to_coo
convert_csc_coo = compressed_to_coo


def compressed_to_dense(cs) -> numpy.ndarray:
    output = numpy.zeros(cs.shape, dtype=cs.dtype)
    majors = expand_pos_to_coordinates(cs.pos)
    rows, cols = cs.compression.to_row_col(majors, cs.crd)
    # Accumulate rather than assign, like the COO path. A well formed
    # compressed matrix has no duplicates, so this is an assignment in
    # practice.
    numpy.add.at(output, (rows, cols), cs.vals)
    return output


convert_csr_dense = compressed_to_dense
convert_csc_dense = compressed_to_dense


def dense_to_compressed(cls, dense):
    dense = as_dense(dense)
    compression = cls.compression
    shape = dense.shape
    # Walk the dense matrix lane by lane along the major axis of the target,
    # which is exactly the storage order, so no sort is needed.
    axes = compression.to_major_minor(0, 1)
    lanes = numpy.transpose(dense, axes)
    majors, minors = numpy.nonzero(lanes)
    vals = lanes[majors, minors]
    counts = numpy.bincount(majors, minlength=compression.nmajor(*shape))
    pos = counts_to_offsets(counts)
    logger.debug(
        "compressed a dense %s array into %d %s entries",
        shape,
        vals.shape[0],
        compression.format,
    )
    return cls._from_parts_unchecked(
        shape, pos, minors.astype(coord_ty, copy=False), vals
    )


def convert_dense_csr(dense):
    return dense_to_compressed(csx.csr_array, dense)


def convert_dense_csc(dense):
    return dense_to_compressed(csx.csc_array, dense)


def convert_dense_coo(dense):
    """Convert a dense matrix into a coo_array.

    The dense matrix is traversed in column-major order (all rows of
    column 0, then column 1, ...) and every non-zero cell is appended in
    that order.
    """
    dense = as_dense(dense)
    cols, rows = numpy.nonzero(dense.T)
    return csx.coo_array(
        (dense[rows, cols], (rows, cols)),
        shape=dense.shape,
        dtype=dense.dtype,
        check=False,
    )


def convert_coo_dense(coo) -> numpy.ndarray:
    """Convert a coo_array into a dense matrix. Duplicate coordinates are
    summed.
    """
    output = numpy.zeros(coo.shape, dtype=coo.dtype)
    numpy.add.at(output, (coo.row, coo.col), coo.data)
    return output


# transpose_parts redistributes the entries of a compressed matrix into
# lanes along its minor axis. The counts per destination lane give the
# offsets, and the source lanes are then scattered in order into their
# buckets, so each bucket comes out sorted by source lane without
# comparing any keys. This runs in O(nnz + nmajor).
def transpose_parts(pos, crd, vals, nminor):
    counts = numpy.bincount(crd, minlength=nminor)
    new_pos = counts_to_offsets(counts)
    new_crd = numpy.empty(crd.shape, dtype=coord_ty)
    new_vals = numpy.empty(vals.shape, dtype=vals.dtype)
    # Next free slot of every destination lane.
    cursor = new_pos[:-1].copy()
    bounds = pos.tolist()
    for major in range(len(bounds) - 1):
        lo, hi = bounds[major], bounds[major + 1]
        if lo == hi:
            continue
        # Minor indices are distinct within a lane, so every entry of the
        # lane lands in a different bucket.
        minors = crd[lo:hi]
        dest = cursor[minors]
        new_crd[dest] = major
        new_vals[dest] = vals[lo:hi]
        cursor[minors] += 1
    return new_pos, new_crd, new_vals


def swap_compression(cs):
    """Convert a CSR matrix into CSC or vice versa, keeping the shape."""
    logger.debug(
        "transposing storage of a %s matrix of shape %s with %d entries",
        cs.format,
        cs.shape,
        cs.nnz,
    )
    pos, crd, vals = transpose_parts(cs.pos, cs.crd, cs.vals, cs.nminor)
    cls = _compressed_cls(cs.compression.swapped())
    return cls._from_parts_unchecked(cs.shape, pos, crd, vals)


convert_csr_csc = swap_compression
convert_csc_csr = swap_compression
