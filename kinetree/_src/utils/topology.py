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

from collections import defaultdict, deque
from collections.abc import Hashable, Sequence
from typing import TypeVar

from ..core.errors import CyclicParentChainError, DuplicateChildBodyError

NodeT = TypeVar("NodeT", bound=Hashable)
"""A generic type variable for bodies in a topology, any hashable key (index, name or body object)."""


def topological_sort(
    joints: Sequence[tuple[NodeT, NodeT]],
    custom_indices: Sequence[int] | None = None,
    use_dfs: bool = True,
    ensure_single_root: bool = False,
) -> list[int]:
    """
    Topological sort of a list of joints connecting rigid bodies, from the roots outward.

    Roots are the bodies that are never the child of a joint. They are visited in the
    order in which they first appear in ``joints``, and the joints leaving a body keep
    their relative storage order, so the result is deterministic for unorderable keys.

    Args:
        joints (Sequence[tuple[Hashable, Hashable]]): A list of body pairs (parent, child).
            Bodies can be identified by any hashable key, e.g. index, name or the body itself.
        custom_indices (Sequence[int] | None): A list of custom indices to return for the joints.
            If None, the joint indices will be used.
        use_dfs (bool): If True, use depth-first search for topological sorting.
            If False, use a breadth-first traversal. Default is True.
        ensure_single_root (bool): If True, raise a ValueError if there is more than one root body.
            Default is False.

    Returns:
        list[int]: A list of joint indices in topological order.

    Raises:
        DuplicateChildBodyError: If two joints lead to the same child body.
        CyclicParentChainError: If some joints cannot be reached from any root.
        ValueError: If ``custom_indices`` has the wrong length or the single-root check fails.
    """
    if custom_indices is not None and len(custom_indices) != len(joints):
        raise ValueError(
            f"Length of custom indices must match length of joints: {len(custom_indices)} != {len(joints)}"
        )

    incoming: dict[NodeT, int] = {}
    outgoing: dict[NodeT, list[int]] = defaultdict(list)
    nodes: dict[NodeT, None] = {}
    for joint_id, (parent, child) in enumerate(joints):
        if child in incoming:
            raise DuplicateChildBodyError(child, (incoming[child], joint_id))
        incoming[child] = joint_id
        outgoing[parent].append(joint_id)
        nodes.setdefault(parent)
        nodes.setdefault(child)

    roots = [node for node in nodes if node not in incoming]
    if ensure_single_root and len(roots) > 1:
        raise ValueError(f"Multiple roots found in the joint graph: {roots}")

    joint_order: list[int] = []

    if use_dfs:
        for root in roots:
            stack = list(reversed(outgoing[root]))
            while stack:
                joint_id = stack.pop()
                joint_order.append(joint_id)
                stack.extend(reversed(outgoing[joints[joint_id][1]]))
    else:
        queue = deque(roots)
        while queue:
            node = queue.popleft()
            for joint_id in outgoing[node]:
                joint_order.append(joint_id)
                queue.append(joints[joint_id][1])

    # every body has at most one incoming joint, so joints missed from the roots sit on a cycle
    if len(joint_order) < len(joints):
        reached = set(joint_order)
        start = next(joint_id for joint_id in range(len(joints)) if joint_id not in reached)
        cycle = _trace_cycle(start, lambda joint_id: incoming.get(joints[joint_id][0]))
        raise CyclicParentChainError(cycle, body=joints[cycle[0]][1])

    if custom_indices is not None:
        joint_order = [custom_indices[i] for i in joint_order]
    return joint_order


def _trace_cycle(start: int, parent_joint) -> list[int]:
    """Follow ``parent_joint`` from ``start`` until a joint repeats and return the repeating loop."""
    seen: dict[int, int] = {}
    path: list[int] = []
    joint_id = start
    while joint_id is not None and joint_id not in seen:
        seen[joint_id] = len(path)
        path.append(joint_id)
        joint_id = parent_joint(joint_id)
    if joint_id is None:
        raise RuntimeError(f"Joint {start} reaches a root body and is not part of a cycle")
    return path[seen[joint_id] :]
