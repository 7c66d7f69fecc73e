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

import traceback
import warnings
from typing import Any, Tuple

import numpy
from scipy.sparse import SparseEfficiencyWarning

import csx

from .errors import SparseFormatError, SparseFormatErrorKind
from .settings import settings
from .types import coord_ty


# find_last_user_stacklevel gets the last stack frame index
# within csx.
def find_last_user_stacklevel() -> int:
    stacklevel = 1
    for frame, _ in traceback.walk_stack(None):
        if not frame.f_globals["__name__"].startswith("csx"):
            break
        stacklevel += 1
    return stacklevel


# warn_efficiency reports a slow code path against the first stack frame
# outside of csx, unless efficiency warnings are disabled.
def warn_efficiency(message: str) -> None:
    if not settings.efficiency_warnings():
        return
    warnings.warn(
        message,
        category=SparseEfficiencyWarning,
        stacklevel=find_last_user_stacklevel(),
    )


# cast_arr attempts to cast an arbitrary object into a one dimensional
# numpy ndarray, with an optional desired type.
def cast_arr(arr, dtype=None):
    arr = numpy.asarray(arr)
    if dtype is not None and arr.dtype != dtype:
        arr = arr.astype(dtype)
    if arr.ndim == 0:
        arr = arr.reshape(1)
    return arr


# cast_index_arr is cast_arr for offset and coordinate arrays. With check
# set, non-integer input is rejected instead of being truncated.
def cast_index_arr(arr, name, check=True):
    arr = numpy.asarray(arr)
    if (
        check
        and arr.size > 0
        and not numpy.issubdtype(arr.dtype, numpy.integer)
    ):
        raise SparseFormatError(
            SparseFormatErrorKind.INVALID_STRUCTURE,
            f"{name} must hold integers, got dtype {arr.dtype}",
        )
    return cast_arr(arr, coord_ty)


# readonly returns a view of arr that cannot be written through. The
# caller's array (if arr is borrowed) keeps its own flags.
def readonly(arr: numpy.ndarray) -> numpy.ndarray:
    view = arr.view()
    view.flags.writeable = False
    return view


# find_common_type finds the dtype that all of the arguments
# (sparse matrices, arrays or scalars) can be represented in.
def find_common_type(*args):
    dtypes = []
    for arg in args:
        if csx.is_sparse_matrix(arg) or isinstance(arg, numpy.ndarray):
            dtypes.append(arg.dtype)
        else:
            dtypes.append(numpy.asarray(arg).dtype)
    return numpy.result_type(*dtypes)


# check_shape normalizes a user provided shape into a tuple of two
# non-negative python ints.
def check_shape(shape: Any) -> Tuple[int, int]:
    try:
        shape = tuple(int(i) for i in shape)
    except TypeError as e:
        raise ValueError(f"Invalid shape {shape!r}") from e
    if len(shape) != 2:
        raise ValueError(f"Only 2-D shapes are supported, got {shape}")
    if shape[0] < 0 or shape[1] < 0:
        raise ValueError(f"Shape dimensions must be non-negative, got {shape}")
    return shape


# as_dense converts the input into a 2-D numpy array, which is the only
# dense collaborator the conversion routines need.
def as_dense(arr) -> numpy.ndarray:
    arr = numpy.asarray(arr)
    if arr.ndim != 2:
        raise ValueError(
            f"Expected a 2-D dense array, got an array with ndim={arr.ndim}"
        )
    return arr


# zero_of returns the additive identity of dtype as a scalar.
def zero_of(dtype):
    return numpy.zeros((), dtype=dtype)[()]
