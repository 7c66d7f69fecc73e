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

from .coo import coo_array
from .csc import csc_array
from .csr import csr_array
from .ops import spadd, spsub
from .types import float64
from .utils import check_shape


def zeros(shape, format="csr", dtype=float64):
    """
    Return a sparse matrix of the given shape without any stored entries.

    Parameters
    ----------
    shape : tuple of int
        Shape of the result.
    format : {"csr", "csc", "coo"}, optional
        Matrix format of the result.
    dtype : dtype, optional
        Data type of the matrix.

    The result is the additive identity for ``add`` and ``subtract``:
    ``subtract(A, zeros(A.shape))`` stores the same entries as ``A``.
    """
    shape = check_shape(shape)
    if format == "csr":
        return csr_array.make_empty(shape, dtype)
    if format == "csc":
        return csc_array.make_empty(shape, dtype)
    if format == "coo":
        return coo_array(shape, dtype=dtype)
    raise ValueError("Format {} is unknown.".format(format))


# subtract and add combine two sparse matrices of any format. Compressed
# operands keep their orientation; a COO left operand is compressed
# into CSR first, and a COO right operand into the left operand's format.
def subtract(A, B):
    A, B = _compressed_operands(A, B)
    return spsub(A, B)


def add(A, B):
    A, B = _compressed_operands(A, B)
    return spadd(A, B)


def _compressed_operands(A, B):
    if not is_sparse_matrix(A) or not is_sparse_matrix(B):
        raise NotImplementedError
    if isinstance(A, coo_array):
        A = A.tocsr()
    if isinstance(B, coo_array):
        B = B.asformat(A.format)
    return A, B


# is_sparse_matrix returns whether or not an object is a csx
# created sparse matrix.
def is_sparse_matrix(o):
    return any(
        (
            isinstance(o, csr_array),
            isinstance(o, csc_array),
            isinstance(o, coo_array),
        )
    )


issparse = is_sparse_matrix
isspmatrix = is_sparse_matrix


# Variants for each particular format type.
def isspmatrix_csc(o):
    return isinstance(o, csc_array)


def isspmatrix_csr(o):
    return isinstance(o, csr_array)


def isspmatrix_coo(o):
    return isinstance(o, coo_array)
