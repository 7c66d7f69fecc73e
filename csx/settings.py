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
#
from __future__ import annotations

import os
from typing import Callable, Generic, Optional, TypeVar

__all__ = ("settings",)

T = TypeVar("T")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def convert_bool(value: str, env_var: str = "") -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(
        f"Cannot interpret {value!r} from {env_var or 'setting'} as a "
        "boolean; expected one of 1/0, true/false, yes/no, on/off"
    )


class EnvSetting(Generic[T]):
    """A setting backed by an environment variable.

    The environment is consulted on every access, so changing the variable
    (or monkeypatching it in a test) takes effect immediately. A value
    assigned through ``set`` takes priority over the environment until
    ``unset`` is called.
    """

    def __init__(
        self,
        name: str,
        env_var: str,
        default: T,
        convert: Callable[[str, str], T],
        help: str = "",
    ):
        self.name = name
        self.env_var = env_var
        self.default = default
        self.convert = convert
        self.help = help
        self._user_value: Optional[T] = None

    def __call__(self) -> T:
        if self._user_value is not None:
            return self._user_value
        if self.env_var in os.environ:
            return self.convert(os.environ[self.env_var], self.env_var)
        return self.default

    def set(self, value: T) -> None:
        self._user_value = value

    def unset(self) -> None:
        self._user_value = None


class SparseRuntimeSettings:
    check_structure: EnvSetting[bool] = EnvSetting(
        "check-structure",
        "CSX_CHECK_STRUCTURE",
        default=True,
        convert=convert_bool,
        help="""
        Validate the arrays handed to the (data, indices, indptr) and scipy
        constructors of compressed arrays. When disabled, those constructors
        trust their input and the caller is responsible for the structural
        invariants of the format.
        """,
    )

    efficiency_warnings: EnvSetting[bool] = EnvSetting(
        "efficiency-warnings",
        "CSX_EFFICIENCY_WARNINGS",
        default=True,
        convert=convert_bool,
        help="""
        Emit a SparseEfficiencyWarning when an operation falls back to an
        element-by-element Python loop, e.g. resolving duplicate coordinates
        with a combinator that is not a numpy ufunc.
        """,
    )


settings = SparseRuntimeSettings()
