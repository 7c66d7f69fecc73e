# Copyright 2023 NVIDIA Corporation
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
import pytest

from csx import SparseFormatError, csr_array, settings
from csx.settings import convert_bool


@pytest.mark.parametrize("value", ["1", "true", "YES", " on "])
def test_convert_bool_true(value):
    assert convert_bool(value) is True


@pytest.mark.parametrize("value", ["0", "False", "no", "OFF"])
def test_convert_bool_false(value):
    assert convert_bool(value) is False


def test_convert_bool_rejects():
    with pytest.raises(ValueError, match="CSX_CHECK_STRUCTURE"):
        convert_bool("maybe", "CSX_CHECK_STRUCTURE")


def test_defaults(monkeypatch):
    monkeypatch.delenv("CSX_CHECK_STRUCTURE", raising=False)
    monkeypatch.delenv("CSX_EFFICIENCY_WARNINGS", raising=False)
    assert settings.check_structure() is True
    assert settings.efficiency_warnings() is True


def test_environment_is_read_on_access(monkeypatch):
    monkeypatch.setenv("CSX_CHECK_STRUCTURE", "0")
    assert settings.check_structure() is False
    monkeypatch.setenv("CSX_CHECK_STRUCTURE", "1")
    assert settings.check_structure() is True
    monkeypatch.setenv("CSX_CHECK_STRUCTURE", "sometimes")
    with pytest.raises(ValueError):
        settings.check_structure()


def test_user_value_overrides_environment(monkeypatch):
    monkeypatch.setenv("CSX_EFFICIENCY_WARNINGS", "1")
    settings.efficiency_warnings.set(False)
    try:
        assert settings.efficiency_warnings() is False
    finally:
        settings.efficiency_warnings.unset()
    assert settings.efficiency_warnings() is True


def test_check_structure_controls_tuple_constructor(monkeypatch):
    parts = ([1.0, 2.0], [1, 0], [0, 2, 2])
    with pytest.raises(SparseFormatError):
        csr_array(parts, shape=(2, 2))
    monkeypatch.setenv("CSX_CHECK_STRUCTURE", "false")
    arr = csr_array(parts, shape=(2, 2))
    assert arr.nnz == 2
    # An explicit argument wins over the environment.
    with pytest.raises(SparseFormatError):
        csr_array(parts, shape=(2, 2), check=True)
    # from_parts always validates.
    with pytest.raises(SparseFormatError):
        csr_array.from_parts(
            (2, 2), np.array([0, 2, 2]), np.array([1, 0]), np.array([1.0, 2.0])
        )


if __name__ == "__main__":
    import sys

    sys.exit(pytest.main(sys.argv))
