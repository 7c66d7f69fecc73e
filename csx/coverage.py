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
#
from __future__ import annotations

import logging
from functools import wraps
from types import FunctionType, MethodDescriptorType, MethodType
from typing import Any

from typing_extensions import Protocol

logger = logging.getLogger("csx.api")


def should_wrap(obj: object) -> bool:
    return isinstance(obj, (FunctionType, MethodType, MethodDescriptorType))


class AnyCallable(Protocol):
    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        ...


def wrap(func: AnyCallable, qualname: str, origin: Any = None) -> Any:
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        logger.debug("API call: %s", qualname)
        return func(*args, **kwargs)

    # Methods we did not document ourselves get the docstring of the
    # scipy.sparse method they stand in for.
    if wrapper.__doc__ is None and origin is not None:
        wrapper.__doc__ = getattr(origin, "__doc__", None)
    return wrapper


def clone_scipy_arr_kind(origin_class: type) -> Any:
    """Mirror the API surface of a scipy.sparse class onto the input class.

    Methods that also exist on the origin class are wrapped with a
    decorator that reports API calls to the ``csx.api`` logger, and
    inherit the scipy docstring when they have none. All other attributes
    are left as-is.

    """

    def body(cls: type):
        for attr, value in list(cls.__dict__.items()):
            # Only need to wrap things that are in the origin class to begin
            # with
            if not hasattr(origin_class, attr):
                continue
            if should_wrap(value):
                wrapped = wrap(
                    value,
                    f"{cls.__name__}.{attr}",
                    getattr(origin_class, attr),
                )
                setattr(cls, attr, wrapped)

        return cls

    return body
