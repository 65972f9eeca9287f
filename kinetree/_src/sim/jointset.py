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

import copy
from collections.abc import Hashable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..core.types import ArrayLike
from ..utils import logger as msg
from ..utils.topology import topological_sort
from .joints import Joint
from .registration import RegistrationPass, build_body_joint_index, register_joints

if TYPE_CHECKING:
    from .model import Model
    from .system import MultibodySystem


class JointSet:
    """
    An ordered collection of the joints of a multi-body model.

    The storage order of the joints is arbitrary. :meth:`register_all` takes care of
    adding them to a multibody system from the ground outward.

    Example
    -------

    .. testcode::

        import kinetree

        model = kinetree.Model()
        upper = model.add_body("upper_arm")
        model.add_body("forearm", parent=upper)

        joints = kinetree.JointSet().populate(model)
        system = kinetree.MultibodySystem()
        joints.register_all(system)
    """

    @dataclass
    class Config:
        """
        Options controlling how a joint set is validated and registered.
        """

        strict: bool = True
        """If True, duplicate child bodies and cyclic parent chains raise a
        :class:`~kinetree.TopologyError`. If False, they only warn: a later joint
        replaces an earlier one as governor of a shared child body, and cyclic chains
        are registered in the order they are encountered."""
        validate_first: bool = True
        """If True, :meth:`JointSet.register_all` checks the whole topology before
        registering anything, so topology errors leave the system untouched."""

    def __init__(self, joints: Iterable[Joint] | None = None, config: JointSet.Config | None = None):
        self.config = config if config is not None else JointSet.Config()
        self._joints: list[Joint] = list(joints) if joints is not None else []

    # Sequence protocol

    def __len__(self) -> int:
        return len(self._joints)

    def __getitem__(self, index: int) -> Joint:
        return self._joints[index]

    def __iter__(self) -> Iterator[Joint]:
        return iter(self._joints)

    def __repr__(self):
        return f"JointSet({[joint.name for joint in self._joints]})"

    @property
    def size(self) -> int:
        return len(self._joints)

    def append(self, joint: Joint):
        self._joints.append(joint)

    def extend(self, joints: Iterable[Joint]):
        self._joints.extend(joints)

    def clear(self):
        self._joints.clear()

    def get(self, name: str) -> Joint:
        """Return the first joint called ``name``."""
        for joint in self._joints:
            if joint.name == name:
                return joint
        raise KeyError(f"No joint named '{name}' in the joint set")

    def index(self, joint: Joint) -> int:
        """Position of ``joint`` in the set, compared by identity."""
        for i, other in enumerate(self._joints):
            if other is joint:
                return i
        raise ValueError(f"Joint '{joint.name}' is not in the joint set")

    def copy(self) -> JointSet:
        """A new set holding the same joints, with its own copy of the config."""
        return JointSet(self._joints, copy.copy(self.config))

    # Model bookkeeping

    def populate(self, model: Model) -> JointSet:
        """
        Replace the contents of the set with the joints of the bodies of ``model``.

        Bodies are visited in model order. Each governing joint is bound to the body
        that owns it as its child; bodies without a joint (ground) are skipped.

        Returns:
            JointSet: This set, for chaining.
        """
        self._joints.clear()
        for body in model.bodies:
            if body.has_joint:
                body.joint.child = body
                self._joints.append(body.joint)
        msg.debug(f"Populated joint set with {len(self._joints)} joints from {len(model.bodies)} bodies.")
        return self

    def scale(self, scale_set: Mapping[str, ArrayLike | float]):
        """Scale every joint by the per-body factors of ``scale_set``, see :meth:`Joint.scale`."""
        for joint in self._joints:
            joint.scale(scale_set)

    # Topology

    def body_joint_index(self) -> dict[Hashable, int]:
        """Map each child body to the index of the joint governing it."""
        return build_body_joint_index(self._joints, strict=self.config.strict)

    def registration_order(self) -> list[int]:
        """The order in which :meth:`register_all` would register the joints, without registering them."""
        return register_joints(self._joints, None, strict=self.config.strict)

    def validate(self):
        """
        Check that no two joints share a child body and that no parent chain loops.

        Raises:
            DuplicateChildBodyError: If two joints lead to the same body.
            CyclicParentChainError: If following the parent bodies of a joint leads back to it.
        """
        RegistrationPass(self._joints, None, strict=True).run()

    def sort(self, use_dfs: bool = True) -> list[int]:
        """
        Reorder the joints in place from the roots outward.

        Args:
            use_dfs: If True, order the joints depth-first, otherwise breadth-first.

        Returns:
            list[int]: The previous index of each joint in the new order.
        """
        order = topological_sort([(joint.parent, joint.child) for joint in self._joints], use_dfs=use_dfs)
        self._joints = [self._joints[i] for i in order]
        return order

    # Registration

    def register_all(self, system: MultibodySystem) -> list[int]:
        """
        Register every joint with ``system``, the joint of a parent body always before
        the joints of its child bodies.

        Errors raised by the system propagate and abort the pass. Joints registered
        before the failure remain registered.

        Returns:
            list[int]: The joint indices in the order they were registered.
        """
        if self.config.validate_first and self.config.strict:
            self.validate()
        return register_joints(self._joints, system, strict=self.config.strict)
