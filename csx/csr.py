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

import scipy.sparse

import csx

from .base import CompressedStorage
from .compression import CSR
from .coverage import clone_scipy_arr_kind


@clone_scipy_arr_kind(scipy.sparse.csr_array)
class csr_array(CompressedStorage):
    """A sparse matrix in compressed sparse row format.

    ``indptr`` holds ``nrows + 1`` offsets into ``indices`` (column
    indices, ascending within each row) and ``data``.
    """

    compression = CSR

    def tocsr(self, copy=False):
        if copy:
            return self.copy().tocsr(copy=False)
        return self

    def tocsc(self, copy=False):
        # The conversion always allocates new buffers.
        return csx.convert.convert_csr_csc(self)

    def transpose(self, copy=False):
        if copy:
            return self.copy().transpose(copy=False)
        # A CSR matrix of shape (m, n) and a CSC matrix of shape (n, m)
        # have identical arrays.
        return csx.csc_array.make_with_same_nnz_structure(
            self, self.vals, shape=(self.shape[1], self.shape[0])
        )

    T = property(transpose)


csr_matrix = csr_array
