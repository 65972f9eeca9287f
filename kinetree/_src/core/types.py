# SPDX-FileCopyrightText: Copyright (c) 2025 The Kinetree Developers
# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""The core data types used throughout Kinetree."""

from __future__ import annotations

import sys
import uuid

import numpy as np
import warp as wp

if sys.version_info >= (3, 12):
    from typing import override
else:
    from typing_extensions import override

###
# Module interface
###

__all__ = [
    "ArrayLike",
    "Descriptor",
    "Devicelike",
    "Vec3",
    "override",
]


###
# Generics
###

Vec3 = tuple[float, float, float]

Devicelike = wp.Device | str | None
"""A Warp device, a device alias such as ``"cpu"`` or ``"cuda:0"``, or None for the current device."""

ArrayLike = np.ndarray | list[float] | tuple[float, ...]
"""An Array-like structure for aliasing various data types compatible with numpy."""


###
# Descriptors
###


class Descriptor:
    """
    Base class for entity descriptor objects.

    A descriptor object is one with a designated name and a unique identifier (UID).

    Descriptors compare and hash by identity: two bodies with the same name are
    still two different bodies. The UID only serves to tell entities apart in
    logs and serialized output.
    """

    @staticmethod
    def _assert_valid_uid(uid: str) -> str:
        """Check if a given UID string is valid."""
        try:
            val = uuid.UUID(uid, version=4)
        except ValueError as err:
            raise ValueError("Invalid UID string.") from err
        return str(val)

    def __init__(self, name: str, uid: str | None = None):
        if not isinstance(name, str) or not name:
            raise ValueError("Descriptor name must be a non-empty string.")
        self._name: str = name
        if uid is None:
            uid = str(uuid.uuid4())
        elif not isinstance(uid, str):
            raise TypeError("UID must be a string.")
        self._uid: str = Descriptor._assert_valid_uid(uid)

    @property
    def name(self) -> str:
        """The name of the entity descriptor."""
        return self._name

    @property
    def uid(self) -> str:
        """The unique identifier (UID) of the entity descriptor."""
        return self._uid

    def __repr__(self):
        return f"{type(self).__name__}(name={self._name!r}, uid={self._uid})"
