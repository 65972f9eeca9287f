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

from dataclasses import dataclass

import numpy as np
import warp as wp

from kinetree._src.core.types import Devicelike
from kinetree._src.utils import logger as msg

__all__ = ["setup_tests", "test_context"]

###
# Global test context
###


@dataclass
class TestContext:
    __test__ = False

    setup_done: bool = False
    """ Whether the global test setup has already run """

    verbose: bool = False
    """ Global default verbosity flag to be used by unit tests """

    device: Devicelike | None = "cpu"
    """ Global default device to be used by unit tests """


test_context = TestContext()


###
# Functions
###


def setup_tests(verbose: bool = False, device: Devicelike | str | None = "cpu"):
    np.set_printoptions(linewidth=999999, precision=6, suppress=True)

    wp.init()
    wp.config.verbose = False

    if verbose:
        msg.set_log_level(msg.LogLevel.DEBUG)

    test_context.verbose = verbose
    test_context.device = wp.get_device(device)
    test_context.setup_done = True
