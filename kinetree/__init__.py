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

# ==================================================================================
# core
# ==================================================================================
from ._src.core import (
    CyclicParentChainError,
    DuplicateChildBodyError,
    RegistrationError,
    TopologyError,
)
from ._version import __version__

__all__ = [
    "CyclicParentChainError",
    "DuplicateChildBodyError",
    "RegistrationError",
    "TopologyError",
    "__version__",
]

# ==================================================================================
# sim
# ==================================================================================
from ._src.sim import (  # noqa: E402
    Body,
    Joint,
    JointSet,
    JointType,
    Model,
    MultibodySystem,
    MultibodyTopology,
    register_joints,
)

__all__ += [
    "Body",
    "Joint",
    "JointSet",
    "JointType",
    "Model",
    "MultibodySystem",
    "MultibodyTopology",
    "register_joints",
]

# ==================================================================================
# submodule APIs
# ==================================================================================
from . import utils  # noqa: E402

__all__ += [
    "utils",
]
