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

import logging as _logging

from . import convert, ops
from .compression import CSC, CSR, Compression
from .coo import coo_array, coo_matrix
from .convert import (
    convert_coo_csc,
    convert_coo_csr,
    convert_coo_dense,
    convert_csc_coo,
    convert_csc_csr,
    convert_csc_dense,
    convert_csr_coo,
    convert_csr_csc,
    convert_csr_dense,
    convert_dense_coo,
    convert_dense_csc,
    convert_dense_csr,
)
from .csc import csc_array, csc_matrix
from .csr import csr_array, csr_matrix
from .errors import (
    OperationError,
    OperationErrorKind,
    SparseFormatError,
    SparseFormatErrorKind,
)
from .module import (
    add,
    is_sparse_matrix,
    isspmatrix,
    isspmatrix_coo,
    isspmatrix_csc,
    isspmatrix_csr,
    issparse,
    subtract,
    zeros,
)
from .ops import (
    merge_triplets,
    sp_cs_scalar_div,
    sp_cs_scalar_prod,
    spadd,
    spadd_dense_sparse,
    spcombine,
    spsub,
    spsub_dense_sparse,
    spsub_sparse_dense,
)
from .settings import settings

__version__ = "0.1.0"

_logging.getLogger(__name__).addHandler(_logging.NullHandler())
