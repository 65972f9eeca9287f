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

import unittest

import numpy as np

import kinetree
from kinetree import (
    Body,
    CyclicParentChainError,
    DuplicateChildBodyError,
    Joint,
    JointSet,
    JointType,
    Model,
    MultibodySystem,
)
from kinetree.tests import setup_tests
from kinetree.tests.unittest_utils import RecordingSystem, assert_np_equal, make_chain


def build_arm_model() -> Model:
    model = Model()
    upper = model.add_body("upper_arm", parent_offset=(0.0, 0.0, 1.5))
    model.add_body("forearm", parent=upper, parent_offset=(0.0, 0.0, -0.3), child_offset=(0.0, 0.0, 0.25))
    model.add_body("base", joint_type=JointType.FIXED)
    model.add_body("hand", parent="forearm", joint_type=JointType.BALL)
    return model


class TestJointSet(unittest.TestCase):
    def test_populate_from_model(self):
        model = build_arm_model()
        joints = JointSet().populate(model)

        self.assertEqual(len(joints), 4)
        self.assertEqual(
            [joint.name for joint in joints], ["upper_arm_joint", "forearm_joint", "base_joint", "hand_joint"]
        )
        for joint in joints:
            self.assertIs(joint.child.joint, joint)
        self.assertIs(joints[0].parent, model.ground)
        self.assertIs(joints.get("hand_joint").parent, model.body("forearm"))

    def test_populate_replaces_contents(self):
        model = build_arm_model()
        _, _, extra = make_chain(2)
        joints = JointSet(extra)
        joints.populate(model)
        self.assertEqual(joints.size, 4)

    def test_populate_binds_child(self):
        model = Model()
        body = Body("loose")
        body.joint = Joint("loose_joint", model.ground)
        model.bodies.append(body)

        joints = JointSet().populate(model)

        self.assertIs(joints[0].child, body)

    def test_lookup(self):
        _, _, chain = make_chain(3)
        joints = JointSet(chain)
        self.assertIs(joints.get("J1"), chain[1])
        self.assertEqual(joints.index(chain[2]), 2)
        with self.assertRaises(KeyError):
            joints.get("missing")
        with self.assertRaises(ValueError):
            joints.index(Joint("other", chain[0].parent, Body("X")))

    def test_copy(self):
        _, _, chain = make_chain(2)
        joints = JointSet(chain, JointSet.Config(strict=False))
        duplicate = joints.copy()

        duplicate.append(Joint("J2", chain[1].child, Body("B2")))
        duplicate.config.validate_first = False

        self.assertEqual(len(joints), 2)
        self.assertEqual(len(duplicate), 3)
        self.assertIs(duplicate[0], joints[0])
        self.assertTrue(joints.config.validate_first)
        self.assertFalse(duplicate.config.strict)

    def test_scale(self):
        model = build_arm_model()
        joints = model.joint_set()

        joints.scale({"upper_arm": 2.0, "forearm": (1.0, 1.0, 0.5)})

        forearm_joint = joints.get("forearm_joint")
        assert_np_equal(joints.get("upper_arm_joint").parent_offset, np.array([0.0, 0.0, 1.5]))
        assert_np_equal(forearm_joint.parent_offset, np.array([0.0, 0.0, -0.6]), tol=1e-6)
        assert_np_equal(forearm_joint.child_offset, np.array([0.0, 0.0, 0.125]), tol=1e-6)

    def test_body_joint_index(self):
        model = build_arm_model()
        joints = model.joint_set()
        index = joints.body_joint_index()
        self.assertEqual(index[model.body("hand")], 3)
        self.assertNotIn(model.ground, index)

    def test_registration_order(self):
        _, _, (j0, j1, j2) = make_chain(3)
        joints = JointSet([j2, j1, j0])
        self.assertEqual(joints.registration_order(), [2, 1, 0])

    def test_sort_depth_first(self):
        model = Model()
        a = model.add_body("a")
        model.add_body("b", parent=a)
        model.add_body("c")
        model.add_body("d", parent=a)
        joints = model.joint_set()

        self.assertEqual(joints.sort(), [0, 1, 3, 2])
        self.assertEqual([joint.child.name for joint in joints], ["a", "b", "d", "c"])

    def test_sort_breadth_first(self):
        model = Model()
        a = model.add_body("a")
        model.add_body("b", parent=a)
        model.add_body("c")
        model.add_body("d", parent=a)
        joints = model.joint_set()

        self.assertEqual(joints.sort(use_dfs=False), [0, 2, 1, 3])
        self.assertEqual([joint.child.name for joint in joints], ["a", "c", "b", "d"])


class TestJointSetRegistration(unittest.TestCase):
    def test_register_all(self):
        model = build_arm_model()
        joints = JointSet(reversed(list(model.joint_set())))
        system = MultibodySystem()

        order = joints.register_all(system)

        self.assertEqual(len(order), 4)
        self.assertEqual(system.joint_count, 4)
        names = system.joint_key
        self.assertLess(names.index("upper_arm_joint"), names.index("forearm_joint"))
        self.assertLess(names.index("forearm_joint"), names.index("hand_joint"))

    def test_validate(self):
        model = build_arm_model()
        model.joint_set().validate()

        _, (b0, b1), _ = make_chain(2)
        cyclic = JointSet([Joint("J0", b1, b0), Joint("J1", b0, b1)])
        with self.assertRaises(CyclicParentChainError):
            cyclic.validate()

    def _joints_with_late_cycle(self) -> list[Joint]:
        ground = Body("ground", is_ground=True)
        a, b, c = Body("A"), Body("B"), Body("C")
        return [Joint("J0", ground, a), Joint("J1", c, b), Joint("J2", b, c)]

    def test_validate_first_leaves_system_untouched(self):
        joints = JointSet(self._joints_with_late_cycle())
        system = MultibodySystem()
        with self.assertRaises(CyclicParentChainError):
            joints.register_all(system)
        self.assertEqual(system.joint_count, 0)

    def test_without_validate_first_registers_until_error(self):
        joints = JointSet(self._joints_with_late_cycle(), JointSet.Config(validate_first=False))
        system = MultibodySystem()
        with self.assertRaises(CyclicParentChainError):
            joints.register_all(system)
        self.assertEqual(system.joint_key, ["J0"])

    def test_duplicate_child_body(self):
        ground = Body("ground", is_ground=True)
        a, b = Body("A"), Body("B")
        chain = [Joint("J0", ground, a), Joint("J1", a, b), Joint("J2", ground, b)]
        system = RecordingSystem()

        with self.assertRaises(DuplicateChildBodyError):
            JointSet(chain).register_all(system)
        self.assertEqual(system.calls, [])

        with self.assertWarns(UserWarning):
            order = JointSet(chain, JointSet.Config(strict=False)).register_all(system)
        self.assertEqual(order, [0, 1, 2])
        self.assertEqual(system.calls, ["J0", "J1", "J2"])

    def test_model_register_and_finalize(self):
        model = build_arm_model()
        system = MultibodySystem()
        model.register(system)

        topology = system.finalize(device="cpu")

        self.assertEqual(topology.joint_count, 4)
        self.assertEqual(topology.body_key, ["upper_arm", "forearm", "base", "hand"])
        assert_np_equal(topology.joint_parent.numpy(), np.array([-1, 0, -1, 1]))
        assert_np_equal(topology.joint_child.numpy(), np.arange(4))
        assert_np_equal(
            topology.joint_type.numpy(),
            np.array([JointType.REVOLUTE, JointType.REVOLUTE, JointType.FIXED, JointType.BALL]),
        )
        assert_np_equal(topology.joint_parent_offset.numpy()[1], np.array([0.0, 0.0, -0.3]), tol=1e-6)

    def test_public_api(self):
        self.assertIs(kinetree.JointSet, JointSet)
        self.assertTrue(callable(kinetree.utils.topological_sort))


if __name__ == "__main__":
    setup_tests()
    unittest.main(verbosity=2)
