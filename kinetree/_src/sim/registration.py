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

"""
Ordered registration of joints with a multibody system.

A joint can only be added to a system once the joint governing its parent body has
been added. :class:`RegistrationPass` walks the joints in storage order and, for each
one, first climbs the chain of parent bodies to register the missing ancestors,
so that every joint is registered exactly once and after all of its ancestors.
"""

from __future__ import annotations

import warnings
from collections.abc import Hashable, Sequence
from enum import IntEnum
from typing import TYPE_CHECKING

import numpy as np

from ..core.errors import CyclicParentChainError, DuplicateChildBodyError
from ..utils import logger as msg

if TYPE_CHECKING:
    from .joints import Joint
    from .system import MultibodySystem

###
# Module interface
###

__all__ = [
    "RegistrationPass",
    "VisitState",
    "build_body_joint_index",
    "register_joints",
]


###
# Types
###


class VisitState(IntEnum):
    """Registration state of a joint during a single pass."""

    UNVISITED = 0
    """The joint has not been reached yet."""

    IN_PROGRESS = 1
    """The joint is waiting for its ancestors to be registered."""

    DONE = 2
    """The joint has been registered."""


###
# Functions
###


def build_body_joint_index(joints: Sequence[Joint], strict: bool = True) -> dict[Hashable, int]:
    """
    Map every child body in ``joints`` to the index of the joint governing it.

    Args:
        joints: The joints, indexed by their position in the sequence.
        strict: If True, two joints sharing a child body are an error. If False,
            the later joint wins and a warning is emitted.

    Raises:
        DuplicateChildBodyError: If ``strict`` and two joints lead to the same body.
    """
    body_index: dict[Hashable, int] = {}
    for i in range(len(joints)):
        child = joints[i].child
        if child is None:
            raise ValueError(f"Joint '{joints[i].name}' has no child body")
        previous = body_index.get(child)
        if previous is not None:
            if strict:
                raise DuplicateChildBodyError(child, (previous, i))
            warnings.warn(
                f"Joints {previous} and {i} both lead to body '{getattr(child, 'name', child)}', "
                f"joint {i} replaces joint {previous} as its parent joint.",
                stacklevel=2,
            )
        body_index[child] = i
    return body_index


class RegistrationPass:
    """
    State of one registration pass over a joint collection.

    The body to joint index and the per-joint visit states live on the pass and are
    discarded with it, so passes never share state.

    Args:
        joints: The joints to register, in storage order.
        system: The system to register the joints with. If None, the pass only
            computes the registration order.
        strict: If True, duplicate child bodies and cyclic parent chains raise. If
            False, they emit a warning and the pass carries on.
    """

    def __init__(self, joints: Sequence[Joint], system: MultibodySystem | None = None, strict: bool = True):
        self.joints = joints
        self.system = system
        self.strict = strict
        self.body_index = build_body_joint_index(joints, strict=strict)
        """Child body to governing joint index, read-only during the pass."""
        self.state = np.full(len(joints), VisitState.UNVISITED, dtype=np.int8)
        """Per-joint :class:`VisitState`, shape [joint_count]."""
        self.order: list[int] = []
        """Joint indices in the order they were registered."""
        self.max_depth = 0
        """Largest number of ancestors registered ahead of a visited joint."""

    @property
    def registered(self) -> np.ndarray:
        """Boolean mask of the joints registered so far."""
        return self.state == VisitState.DONE

    def parent_joint(self, index: int) -> int | None:
        """Index of the joint governing the parent body of joint ``index``, None for a root."""
        return self.body_index.get(self.joints[index].parent)

    def visit(self, index: int):
        """
        Register joint ``index`` after all of its not yet registered ancestors.

        Visiting a registered joint does nothing. Errors raised while registering a
        joint propagate and leave the joints registered so far in place.

        Raises:
            IndexError: If ``index`` is out of range.
            CyclicParentChainError: If ``strict`` and the parent chain of the joint loops.
        """
        if not 0 <= index < len(self.joints):
            raise IndexError(f"Joint index {index} out of range for {len(self.joints)} joints")
        if self.state[index] == VisitState.DONE:
            return

        # climb to the first registered joint or root body
        stack = [index]
        self.state[index] = VisitState.IN_PROGRESS
        try:
            parent = self.parent_joint(index)
            while parent is not None and self.state[parent] != VisitState.DONE:
                if self.state[parent] == VisitState.IN_PROGRESS:
                    self._break_cycle(stack, parent)
                    break
                self.state[parent] = VisitState.IN_PROGRESS
                stack.append(parent)
                parent = self.parent_joint(parent)

            self.max_depth = max(self.max_depth, len(stack) - 1)

            # register on the way back down, ancestors first
            while stack:
                self._register(stack[-1])
                stack.pop()
        finally:
            for pending in stack:
                self.state[pending] = VisitState.UNVISITED

    def run(self) -> list[int]:
        """Visit every joint in storage order and return the registration order."""
        for i in range(len(self.joints)):
            self.visit(i)
        return self.order

    def _register(self, index: int):
        if self.system is not None:
            joint = self.joints[index]
            msg.debug(f"Registering joint '{joint.name}' ({index}) ...")
            joint.register(self.system)
        self.state[index] = VisitState.DONE
        self.order.append(index)

    def _break_cycle(self, stack: list[int], parent: int):
        cycle = stack[stack.index(parent) :]
        error = CyclicParentChainError(cycle, body=self.joints[parent].child)
        if self.strict:
            raise error
        warnings.warn(f"{error}. Registering joint {stack[-1]} before its parent joint {parent}.", stacklevel=3)


def register_joints(joints: Sequence[Joint], system: MultibodySystem | None, strict: bool = True) -> list[int]:
    """
    Register ``joints`` with ``system`` so that parents always precede their children.

    Args:
        joints: The joints to register.
        system: The multibody system, passed unchanged to :meth:`Joint.register`. If None,
            nothing is registered and only the order is computed.
        strict: Whether topology problems raise instead of warn.

    Returns:
        list[int]: The joint indices in the order they were registered.
    """
    registration = RegistrationPass(joints, system, strict=strict)
    order = registration.run()
    if system is not None:
        msg.debug(f"Registered {len(order)} joints, maximum chain depth {registration.max_depth}.")
    return order
