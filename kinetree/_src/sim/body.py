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

from __future__ import annotations

from typing import TYPE_CHECKING

from ..core.types import Descriptor, override

if TYPE_CHECKING:
    from .joints import Joint


class Body(Descriptor):
    """
    A rigid body of a multi-body model.

    Bodies are keyed by identity. A body is either governed by one joint, stored in
    :attr:`joint`, or is a root of the kinematic tree. Ground bodies are roots that a
    multibody system accepts as parents without them being registered first.
    """

    def __init__(self, name: str, is_ground: bool = False, joint: Joint | None = None, uid: str | None = None):
        super().__init__(name, uid)
        self.is_ground = is_ground
        """Whether the body is fixed to the world frame."""
        self.joint = joint
        """The joint governing this body, or None for a root."""
        if is_ground and joint is not None:
            raise ValueError(f"Ground body '{name}' cannot be governed by a joint")

    @property
    def has_joint(self) -> bool:
        return self.joint is not None

    @override
    def __repr__(self):
        return f"Body(name={self.name!r}, is_ground={self.is_ground})"
