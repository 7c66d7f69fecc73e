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

import numpy as np


def random_dense(shape, density, seed, dtype=np.float64):
    rng = np.random.default_rng(seed)
    # Small integers keep the arithmetic exact in every tested dtype.
    values = rng.integers(1, 10, size=shape) * rng.choice([-1, 1], size=shape)
    mask = rng.random(shape) < density
    return np.where(mask, values, 0).astype(dtype)


_test_matrices = {
    "small": np.array(
        [[0, 5, 3, 2], [2, 0, 0, 0], [0, 1, 0, 4]], dtype=np.float64
    ),
    "empty": np.zeros((4, 3)),
    "no-rows": np.zeros((0, 5)),
    "no-cols": np.zeros((5, 0)),
    "diagonal": np.diag(np.arange(1, 7, dtype=np.float64)),
    "full": random_dense((6, 5), 1.0, 1),
    "wide": random_dense((7, 40), 0.1, 2),
    "tall": random_dense((50, 9), 0.15, 3),
    "square": random_dense((30, 30), 0.05, 4),
}

test_matrix_names = sorted(_test_matrices)

# Pairs of same-shaped matrices for the elementwise tests.
test_matrix_pairs = [
    (
        random_dense((12, 9), 0.3, 10 + i),
        random_dense((12, 9), 0.3, 20 + i),
    )
    for i in range(3)
] + [
    (random_dense((5, 5), 0.4, 30), np.zeros((5, 5))),
    (np.zeros((0, 3)), np.zeros((0, 3))),
]


def load(name):
    return _test_matrices[name].copy()


types = [np.float32, np.float64, np.complex64, np.complex128]

formats = ["csr", "csc"]

# 4x4 operands of the worked subtraction example, as (pos, crd, vals) of
# CSR matrices.
sub_lhs = (
    [0, 4, 7, 10, 13],
    [0, 1, 2, 3, 0, 1, 3, 1, 2, 3, 0, 1, 3],
    [1, 2, 3, 4, -1, 2, 5, 4, -2, 6, 2, 4, 6],
)
sub_rhs = (
    [0, 4, 6, 8, 12],
    [0, 1, 2, 3, 1, 3, 1, 3, 0, 1, 2, 3],
    [6, 4, 2, 8, 1, 7, 2, 6, 4, 1, 6, 3],
)
