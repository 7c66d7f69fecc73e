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

from fractions import Fraction

import numpy as np
import pytest
import scipy.sparse as scpy
from utils.common import (
    formats,
    load,
    sub_lhs,
    sub_rhs,
    test_matrix_names,
    test_matrix_pairs,
    types,
)

import csx
from csx import (
    OperationError,
    OperationErrorKind,
    coo_array,
    csc_array,
    csr_array,
)


def from_triple(triple, shape=(4, 4)):
    pos, crd, vals = (np.array(a) for a in triple)
    return csr_array.from_parts(shape, pos, crd, vals)


def test_spsub_literal():
    res = csx.spsub(from_triple(sub_lhs), from_triple(sub_rhs))
    assert isinstance(res, csr_array)
    assert res.indptr.tolist() == [0, 4, 7, 10, 14]
    assert res.indices.tolist() == [0, 1, 2, 3, 0, 1, 3, 1, 2, 3, 0, 1, 2, 3]
    assert res.data.tolist() == [
        -5, -2, 1, -4, -1, 1, -2, 2, -2, 0, -2, 3, -6, 3,
    ]


@pytest.mark.parametrize("pair", range(len(test_matrix_pairs)))
@pytest.mark.parametrize("lhs_format", formats)
@pytest.mark.parametrize("rhs_format", formats)
def test_spsub_orientations(pair, lhs_format, rhs_format):
    a, b = test_matrix_pairs[pair]
    lhs = coo_array(a).asformat(lhs_format)
    rhs = coo_array(b).asformat(rhs_format)
    res = csx.spsub(lhs, rhs)
    # The result takes the orientation of the left operand.
    assert res.format == lhs_format
    assert np.array_equal(res.todense(), a - b)
    # Both structures are merged, so cancellations stay stored.
    union = (a != 0) | (b != 0)
    assert res.nnz == int(union.sum())


@pytest.mark.parametrize("pair", range(len(test_matrix_pairs)))
@pytest.mark.parametrize("lhs_format", formats)
@pytest.mark.parametrize("rhs_format", formats)
def test_spadd_orientations(pair, lhs_format, rhs_format):
    a, b = test_matrix_pairs[pair]
    lhs = coo_array(a).asformat(lhs_format)
    rhs = coo_array(b).asformat(rhs_format)
    res = csx.spadd(lhs, rhs)
    assert res.format == lhs_format
    assert np.array_equal(res.todense(), a + b)


@pytest.mark.parametrize("name", test_matrix_names)
@pytest.mark.parametrize("format", formats)
def test_spsub_zeros_is_identity(name, format):
    arr = coo_array(load(name)).asformat(format)
    res = csx.spsub(arr, csx.zeros(arr.shape, format=format))
    assert np.array_equal(res.indptr, arr.indptr)
    assert np.array_equal(res.indices, arr.indices)
    assert np.array_equal(res.data, arr.data)


@pytest.mark.parametrize("format", formats)
def test_spsub_self_keeps_explicit_zeros(format):
    arr = coo_array(load("square")).asformat(format)
    res = arr - arr
    assert res.nnz == arr.nnz
    assert np.array_equal(res.indices, arr.indices)
    assert not np.any(res.data)


def test_spsub_shape_mismatch():
    lhs = csr_array(np.ones((2, 3)))
    rhs = csc_array(np.ones((3, 2)))
    with pytest.raises(OperationError) as e:
        csx.spsub(lhs, rhs)
    assert e.value.kind == OperationErrorKind.SHAPE_MISMATCH
    assert e.value.lhs_shape == (2, 3)
    assert e.value.rhs_shape == (3, 2)
    with pytest.raises(OperationError):
        csx.spadd(lhs, rhs)
    with pytest.raises(OperationError):
        lhs - rhs


def test_spsub_result_dtype():
    lhs = csr_array(np.eye(3, dtype=np.int32))
    rhs = csc_array(np.eye(3, dtype=np.float32) * 0.5)
    res = csx.spsub(lhs, rhs)
    assert res.dtype == np.result_type(np.int32, np.float32)
    assert np.array_equal(res.todense(), np.eye(3) * 0.5)


def test_spsub_fractions():
    a = np.array([[Fraction(1, 2), 0], [0, Fraction(1, 3)]], dtype=object)
    b = np.array([[Fraction(1, 4), Fraction(2, 3)], [0, 0]], dtype=object)
    res = csx.spsub(csr_array(a), csc_array(b))
    assert res.dtype == object
    assert res.get_entry(0, 0) == Fraction(1, 4)
    assert res.get_entry(0, 1) == Fraction(-2, 3)
    assert res.get_entry(1, 1) == Fraction(1, 3)


int64_max = np.iinfo(np.int64).max

# Operands whose sums or differences leave the range of their dtype.
wrapping_operands = [
    (
        np.array([[100, 0], [0, -128]], dtype=np.int8),
        np.array([[-100, 0], [1, 0]], dtype=np.int8),
    ),
    (
        np.array([[0, 5], [0, 0]], dtype=np.uint8),
        np.array([[3, 0], [0, 200]], dtype=np.uint8),
    ),
    (
        np.array([[int64_max, 0], [0, 0]], dtype=np.int64),
        np.array([[-1, 0], [0, int64_max]], dtype=np.int64),
    ),
    (
        np.array([[-128, 0], [0, 7]], dtype=np.int8),
        np.array([[0, 255], [0, 3]], dtype=np.uint8),
    ),
]


@pytest.mark.parametrize("case", range(len(wrapping_operands)))
@pytest.mark.parametrize("lhs_format", formats)
@pytest.mark.parametrize("rhs_format", formats)
def test_integer_arithmetic_wraps_like_dense(case, lhs_format, rhs_format):
    a, b = wrapping_operands[case]
    lhs = csr_array(a).asformat(lhs_format)
    rhs = csr_array(b).asformat(rhs_format)
    res = csx.spsub(lhs, rhs)
    assert res.dtype == np.result_type(a, b)
    assert np.array_equal(res.todense(), a - b)
    res = csx.spadd(lhs, rhs)
    assert res.dtype == np.result_type(a, b)
    assert np.array_equal(res.todense(), a + b)


def test_spcombine_custom_ops():
    lhs = csr_array(np.array([[1.0, 0.0], [2.0, 3.0]]))
    rhs = csr_array(np.array([[4.0, 5.0], [0.0, 6.0]]))
    res = csx.spcombine(
        lhs,
        rhs,
        lambda v: v,
        lambda v: 10 * v,
        lambda l, r: l * r,
    )
    assert np.array_equal(
        res.todense(), np.array([[4.0, 50.0], [2.0, 18.0]])
    )
    res = csx.spcombine(lhs, rhs, abs, abs, max, dtype=np.int64)
    assert res.dtype == np.int64


def test_merge_triplets():
    left = [(0, 1, 1), (0, 3, 2), (2, 0, 3)]
    right = [(0, 0, 10), (0, 3, 20), (1, 1, 30), (2, 2, 40)]
    merged = list(
        csx.merge_triplets(
            left, right, lambda v: v, lambda v: -v, lambda l, r: l - r
        )
    )
    assert merged == [
        (0, 0, -10),
        (0, 1, 1),
        (0, 3, -18),
        (1, 1, -30),
        (2, 0, 3),
        (2, 2, -40),
    ]
    assert list(csx.merge_triplets([], [], abs, abs, max)) == []
    assert list(csx.merge_triplets(left, [], abs, abs, max)) == left


@pytest.mark.parametrize("format", formats)
def test_operators_with_coo(format):
    a, b = test_matrix_pairs[0]
    lhs = coo_array(a).asformat(format)
    res = lhs - coo_array(b)
    assert res.format == format
    assert np.array_equal(res.todense(), a - b)
    res = lhs + coo_array(b)
    assert np.array_equal(res.todense(), a + b)
    res = coo_array(a) - coo_array(b)
    assert np.array_equal(res.todense(), a - b)


def test_dense_with_coo_operators():
    a, b = test_matrix_pairs[0]
    res = a + coo_array(b)
    assert isinstance(res, np.ndarray)
    assert np.array_equal(res, a + b)
    res = a - coo_array(b)
    assert isinstance(res, np.ndarray)
    assert np.array_equal(res, a - b)


@pytest.mark.parametrize("format", formats)
@pytest.mark.parametrize("dtype", types)
def test_dense_sparse_variants(format, dtype):
    a, b = test_matrix_pairs[1]
    sp = coo_array(b).asformat(format).astype(dtype)
    dense = a.astype(dtype)
    before = dense.copy()
    assert np.array_equal(csx.spsub_dense_sparse(dense, sp), a - b)
    assert np.array_equal(csx.spsub_sparse_dense(sp, dense), b - a)
    assert np.array_equal(csx.spadd_dense_sparse(dense, sp), a + b)
    assert np.array_equal(sp - dense, b - a)
    assert np.array_equal(dense + sp, a + b)
    assert np.array_equal(sp + dense, a + b)
    # The dense operand is never written to.
    assert np.array_equal(dense, before)


def test_dense_sparse_shape_mismatch():
    sp = csr_array(np.ones((2, 2)))
    with pytest.raises(OperationError):
        csx.spsub_dense_sparse(np.ones((2, 3)), sp)
    with pytest.raises(OperationError):
        csx.spsub_sparse_dense(sp, np.ones((3, 2)))
    with pytest.raises(OperationError):
        csx.spadd_dense_sparse(np.ones((1, 2)), sp)


@pytest.mark.parametrize("pair", range(len(test_matrix_pairs)))
def test_spadd_matches_scipy(pair):
    a, b = test_matrix_pairs[pair]
    res = csr_array(a) + csc_array(b)
    s = scpy.csr_array(a) + scpy.csc_array(b)
    assert np.allclose(res.todense(), s.todense())


def test_module_add_subtract():
    a, b = test_matrix_pairs[2]
    res = csx.subtract(coo_array(a), csc_array(b))
    assert isinstance(res, csr_array)
    assert np.array_equal(res.todense(), a - b)
    res = csx.add(csc_array(a), coo_array(b))
    assert isinstance(res, csc_array)
    assert np.array_equal(res.todense(), a + b)
    with pytest.raises(NotImplementedError):
        csx.add(csc_array(a), b)


if __name__ == "__main__":
    import sys

    sys.exit(pytest.main(sys.argv))
