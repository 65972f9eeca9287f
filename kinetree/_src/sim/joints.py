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

from collections.abc import Mapping
from enum import IntEnum
from typing import TYPE_CHECKING

import numpy as np

from ..core.types import ArrayLike, Descriptor, Vec3, override

if TYPE_CHECKING:
    from .body import Body
    from .system import MultibodySystem


# Types of joints linking rigid bodies
class JointType(IntEnum):
    """
    Enumeration of joint types supported in Kinetree.
    """

    PRISMATIC = 0
    """Prismatic joint: allows translation along a single axis (1 DoF)."""

    REVOLUTE = 1
    """Revolute joint: allows rotation about a single axis (1 DoF)."""

    BALL = 2
    """Ball joint: allows rotation about all three axes (3 DoF, quaternion parameterization)."""

    FIXED = 3
    """Fixed joint: locks all relative motion (0 DoF)."""

    FREE = 4
    """Free joint: allows full 6-DoF motion (translation and rotation, 7 coordinates)."""

    def dof_count(self) -> tuple[int, int]:
        """
        Returns the number of degrees of freedom (DoF) in velocity and the number of coordinates
        in position for this joint type.

        Returns:
            tuple[int, int]: A tuple (dof_count, coord_count).
        """
        if self == JointType.BALL:
            return 3, 4
        if self == JointType.FREE:
            return 6, 7
        if self == JointType.FIXED:
            return 0, 0
        return 1, 1

    @override
    def __str__(self):
        return f"JointType.{self.name} ({self.value})"


class Joint(Descriptor):
    """
    A joint connecting a parent body to a child body.

    The joint is the mobilizer of its child body: every body other than a root is
    governed by exactly one joint. The offsets locate the joint frame in the parent
    and child body frames and are the only geometric data carried here.

    Args:
        name: Name of the joint.
        parent: The parent body.
        child: The child body. May be left unset and bound later, e.g. by
            :meth:`JointSet.populate`.
        joint_type: The kind of motion allowed by the joint.
        parent_offset: Position of the joint frame in the parent body frame.
        child_offset: Position of the joint frame in the child body frame.
        uid: Optional unique identifier, generated when omitted.
    """

    def __init__(
        self,
        name: str,
        parent: Body,
        child: Body | None = None,
        joint_type: JointType | int = JointType.REVOLUTE,
        parent_offset: Vec3 = (0.0, 0.0, 0.0),
        child_offset: Vec3 = (0.0, 0.0, 0.0),
        uid: str | None = None,
    ):
        super().__init__(name, uid)
        self.parent = parent
        """The parent body of the joint."""
        self.child = child
        """The child body of the joint, i.e. the body this joint governs."""
        self.type = JointType(joint_type)
        """The joint type."""
        self.parent_offset = _as_vec3(parent_offset, "parent_offset")
        """Joint frame position in the parent body frame, shape (3,), float32."""
        self.child_offset = _as_vec3(child_offset, "child_offset")
        """Joint frame position in the child body frame, shape (3,), float32."""

    @property
    def dof_count(self) -> int:
        return self.type.dof_count()[0]

    def register(self, system: MultibodySystem) -> int:
        """
        Add this joint as a mobilizer of its child body to ``system``.

        Errors raised by the system are not caught here.

        Returns:
            int: The index of the joint within the system.
        """
        if self.child is None:
            raise ValueError(f"Joint '{self.name}' has no child body")
        return system.add_joint(self)

    def scale(self, scale_set: Mapping[str, ArrayLike | float]):
        """
        Scale the joint offsets by the per-body scale factors in ``scale_set``.

        ``scale_set`` maps body names to a scalar or a 3-vector of factors. The parent
        offset is scaled by the parent body factors and the child offset by the child
        body factors; bodies missing from the mapping are left as they are.
        """
        factors = scale_set.get(self.parent.name)
        if factors is not None:
            self.parent_offset = self.parent_offset * _as_factors(factors)
        if self.child is not None:
            factors = scale_set.get(self.child.name)
            if factors is not None:
                self.child_offset = self.child_offset * _as_factors(factors)

    @override
    def __repr__(self):
        child = self.child.name if self.child is not None else None
        return f"Joint(name={self.name!r}, type={self.type.name}, parent={self.parent.name!r}, child={child!r})"


def _as_vec3(value: ArrayLike, what: str) -> np.ndarray:
    vec = np.asarray(value, dtype=np.float32)
    if vec.shape != (3,):
        raise ValueError(f"{what} must have shape (3,), got {vec.shape}")
    return vec.copy()


def _as_factors(value: ArrayLike | float) -> np.ndarray:
    return np.broadcast_to(np.asarray(value, dtype=np.float32), (3,))
