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

"""Exceptions raised while validating and registering joint topologies."""

from __future__ import annotations

from collections.abc import Hashable, Sequence

###
# Module interface
###

__all__ = [
    "CyclicParentChainError",
    "DuplicateChildBodyError",
    "RegistrationError",
    "TopologyError",
]


###
# Topology errors
###


class TopologyError(ValueError):
    """
    Base class for errors in the parent/child structure of a joint collection.

    Derives from :class:`ValueError` so that callers which only guard against
    malformed joint graphs in general keep working.
    """


class DuplicateChildBodyError(TopologyError):
    """
    Raised when two joints of the same collection claim the same child body.

    Attributes:
        body: The body that is governed by more than one joint.
        joints: The indices of the conflicting joints, in storage order.
    """

    def __init__(self, body: Hashable, joints: Sequence[int]):
        self.body = body
        self.joints = tuple(joints)
        super().__init__(f"Multiple joints lead to body {_label(body)}: joints {list(self.joints)}")


class CyclicParentChainError(TopologyError):
    """
    Raised when following parent bodies from a joint leads back to the same joint.

    Attributes:
        joints: The indices of the joints forming the cycle, ordered from the
            joint where the cycle was entered towards its ancestors.
    """

    def __init__(self, joints: Sequence[int], body: Hashable | None = None):
        self.joints = tuple(joints)
        self.body = body
        where = f" at body {_label(body)}" if body is not None else ""
        super().__init__(f"Joint graph contains a cycle{where}: joints {list(self.joints)}")


###
# Engine errors
###


class RegistrationError(RuntimeError):
    """
    Raised by a multibody system when it rejects the registration of a joint.

    Attributes:
        joint: The joint that was rejected, if known.
    """

    def __init__(self, message: str, joint=None):
        self.joint = joint
        super().__init__(message)


def _label(body: Hashable) -> str:
    name = getattr(body, "name", None)
    return repr(name) if name is not None else repr(body)
