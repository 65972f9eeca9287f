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

"""Reference multibody system that accepts joints one mobilizer at a time."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import warp as wp

from ..core.errors import RegistrationError
from ..core.types import Devicelike

if TYPE_CHECKING:
    from .body import Body
    from .joints import Joint

###
# Module interface
###

__all__ = [
    "MultibodySystem",
    "MultibodyTopology",
]


###
# Types
###


class MultibodyTopology:
    """
    Device-side description of the tree assembled by a :class:`MultibodySystem`.

    Joint ``i`` is the ``i``-th joint added to the system and mobilizes body ``i``.
    A parent index of ``-1`` denotes a ground body.
    """

    def __init__(self, device: Devicelike = None):
        self.device = wp.get_device(device)
        """Device on which the arrays are allocated."""

        self.joint_count = 0
        """Number of joints (and mobilized bodies)."""
        self.joint_key: list[str] = []
        """Joint names, in registration order."""
        self.body_key: list[str] = []
        """Names of the mobilized bodies, body ``i`` being the child of joint ``i``."""

        self.joint_type = None
        """Joint types, shape [joint_count], int."""
        self.joint_parent = None
        """Joint parent body indices, shape [joint_count], int. ``-1`` for ground."""
        self.joint_child = None
        """Joint child body indices, shape [joint_count], int."""
        self.joint_parent_offset = None
        """Joint frame positions in the parent body frames, shape [joint_count], vec3."""
        self.joint_child_offset = None
        """Joint frame positions in the child body frames, shape [joint_count], vec3."""


class MultibodySystem:
    """
    A minimal multibody engine that builds its tree incrementally.

    Each call to :meth:`add_joint` appends one mobilized body. The parent of the joint
    must either be a ground body or a body that an earlier joint already mobilized,
    which is why joints have to be added from the ground outward. Call :meth:`finalize`
    to copy the assembled tree into Warp arrays.
    """

    def __init__(self):
        self.joint_key: list[str] = []
        self.joint_type: list[int] = []
        self.joint_parent: list[int] = []
        self.joint_child: list[int] = []
        self.joint_parent_offset: list[np.ndarray] = []
        self.joint_child_offset: list[np.ndarray] = []
        self.joints: list[Joint] = []
        """The registered joints, in registration order."""

        self._body_index: dict[Body, int] = {}

    @property
    def joint_count(self) -> int:
        return len(self.joints)

    @property
    def body_count(self) -> int:
        """Number of mobilized (non-ground) bodies."""
        return len(self._body_index)

    def contains(self, body: Body) -> bool:
        """Whether ``body`` is ground or already mobilized in the system."""
        return getattr(body, "is_ground", False) or body in self._body_index

    def body_index(self, body: Body) -> int:
        """Index of a mobilized body, ``-1`` for ground."""
        if getattr(body, "is_ground", False):
            return -1
        try:
            return self._body_index[body]
        except KeyError:
            raise KeyError(f"Body '{body.name}' is not part of the system") from None

    def add_joint(self, joint: Joint) -> int:
        """
        Add ``joint`` as the mobilizer of its child body.

        Raises:
            RegistrationError: If the parent body has not been added yet, or if the child
                body is ground or already mobilized.

        Returns:
            int: The index of the new joint, which is also the index of its child body.
        """
        parent, child = joint.parent, joint.child
        if getattr(child, "is_ground", False):
            raise RegistrationError(f"Joint '{joint.name}' cannot mobilize ground body '{child.name}'", joint)
        if child in self._body_index:
            raise RegistrationError(f"Body '{child.name}' is already mobilized in the system", joint)
        if not self.contains(parent):
            raise RegistrationError(
                f"Parent body '{parent.name}' of joint '{joint.name}' has not been added to the system", joint
            )

        joint_id = len(self.joints)
        self._body_index[child] = joint_id
        self.joints.append(joint)
        self.joint_key.append(joint.name)
        self.joint_type.append(int(joint.type))
        self.joint_parent.append(self.body_index(parent))
        self.joint_child.append(joint_id)
        self.joint_parent_offset.append(np.array(joint.parent_offset, dtype=np.float32))
        self.joint_child_offset.append(np.array(joint.child_offset, dtype=np.float32))
        return joint_id

    def finalize(self, device: Devicelike = None) -> MultibodyTopology:
        """
        Copy the assembled tree to ``device``.

        Args:
            device: The device to allocate on (e.g., 'cpu', 'cuda'). If None, uses the current Warp device.

        Returns:
            MultibodyTopology: The tree as Warp arrays.
        """
        with wp.ScopedDevice(device):
            m = MultibodyTopology()
            m.joint_count = self.joint_count
            m.joint_key = list(self.joint_key)
            m.body_key = [joint.child.name for joint in self.joints]

            m.joint_type = wp.array(np.array(self.joint_type, dtype=np.int32), dtype=wp.int32)
            m.joint_parent = wp.array(np.array(self.joint_parent, dtype=np.int32), dtype=wp.int32)
            m.joint_child = wp.array(np.array(self.joint_child, dtype=np.int32), dtype=wp.int32)
            m.joint_parent_offset = wp.array(_stack_vec3(self.joint_parent_offset), dtype=wp.vec3)
            m.joint_child_offset = wp.array(_stack_vec3(self.joint_child_offset), dtype=wp.vec3)
        return m


def _stack_vec3(values: list[np.ndarray]) -> np.ndarray:
    if not values:
        return np.zeros((0, 3), dtype=np.float32)
    return np.stack(values).astype(np.float32)
