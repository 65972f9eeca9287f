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

"""Implementation of the Kinetree model class."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from ..core.types import ArrayLike, Vec3
from .body import Body
from .joints import Joint, JointType
from .jointset import JointSet

if TYPE_CHECKING:
    from .system import MultibodySystem


class Model:
    """
    A multi-body model: a ground body and the bodies attached to it through joints.

    Bodies are kept in the order they were added. Each body added through
    :meth:`add_body` owns the joint that governs it; the joints are gathered into a
    :class:`JointSet` when the model is registered with a system.

    Args:
        ground_name: Name of the ground body.
    """

    def __init__(self, ground_name: str = "ground"):
        self.ground = Body(ground_name, is_ground=True)
        """The ground body, root of the kinematic tree."""
        self.bodies: list[Body] = [self.ground]
        """All bodies of the model, ground first."""

    @property
    def body_count(self) -> int:
        return len(self.bodies)

    def body(self, name: str) -> Body:
        """Return the body called ``name``."""
        for body in self.bodies:
            if body.name == name:
                return body
        raise KeyError(f"No body named '{name}' in the model")

    def add_body(
        self,
        name: str,
        parent: Body | str | None = None,
        joint_type: JointType | int = JointType.REVOLUTE,
        parent_offset: Vec3 = (0.0, 0.0, 0.0),
        child_offset: Vec3 = (0.0, 0.0, 0.0),
        joint_name: str | None = None,
    ) -> Body:
        """
        Add a body governed by a new joint to ``parent``.

        Args:
            name: Name of the new body.
            parent: Parent body or its name. Defaults to the ground.
            joint_type: Type of the joint connecting the body to its parent.
            parent_offset: Joint position in the parent body frame.
            child_offset: Joint position in the new body frame.
            joint_name: Name of the joint, ``"<name>_joint"`` by default.

        Returns:
            Body: The new body.
        """
        if parent is None:
            parent = self.ground
        elif isinstance(parent, str):
            parent = self.body(parent)

        body = Body(name)
        body.joint = Joint(
            joint_name or f"{name}_joint",
            parent,
            body,
            joint_type=joint_type,
            parent_offset=parent_offset,
            child_offset=child_offset,
        )
        self.bodies.append(body)
        return body

    def joint_set(self, config: JointSet.Config | None = None) -> JointSet:
        """Gather the joints of the model into a new :class:`JointSet`."""
        return JointSet(config=config).populate(self)

    def scale(self, scale_set: Mapping[str, ArrayLike | float]):
        """Scale all joints of the model by per-body factors, see :meth:`Joint.scale`."""
        self.joint_set().scale(scale_set)

    def register(self, system: MultibodySystem, config: JointSet.Config | None = None) -> list[int]:
        """
        Add every joint of the model to ``system``, from the ground outward.

        Returns:
            list[int]: Indices into :meth:`joint_set` in the order they were registered.
        """
        return self.joint_set(config).register_all(system)
