import dataclasses

import numpy as np
import pytest

from rbdtree import JointLimitError, RigidBodyTreeError, SizeMismatchError
from rbdtree.core.constants import JointType
from rbdtree.core.rbd_algorithms import RBDAlgorithms
from rbdtree.model import Inertial, Joint, Limits, Link, RigidBodyTree


def chain(*joint_types):
    links = [
        Link(f"l{i}", Inertial.build(1.0, np.eye(3) * 0.1))
        for i in range(len(joint_types) + 1)
    ]
    joints = [
        Joint(f"j{i}", f"l{i}", f"l{i + 1}", t, axis=[0, 0, 1])
        for i, t in enumerate(joint_types)
    ]
    return links, joints


def test_topological_order(branched_tree):
    for body in branched_tree:
        if body.index == 0:
            assert body.parent_index is None
        else:
            assert body.parent_index < body.index
    assert branched_tree.get_base_name() == "base"


def test_pre_order_follows_declaration_order(branched_tree):
    assert branched_tree.get_body_names() == [
        "base",
        "torso",
        "l_sh",
        "l_elb",
        "l_hand",
        "l_wrist",
        "r_mount",
        "r_sh",
        "r_elb",
        "head",
    ]


def test_dof_maps(branched_tree):
    assert branched_tree.nq == branched_tree.nv == 6
    assert branched_tree.num_fixed_bodies == 4
    assert branched_tree.num_non_fixed_bodies == 6
    counter = 0
    for body in branched_tree:
        assert body.qpos_dof_map == body.qvel_dof_map
        a0, a1 = body.qvel_dof_map
        assert a0 == counter
        assert a1 - a0 == (0 if body.is_fixed else 1)
        counter = a1
    assert branched_tree.get_joint_names() == [
        "torso_joint",
        "l_sh_joint",
        "l_elb_joint",
        "l_wrist_joint",
        "r_sh_joint",
        "r_elb_joint",
    ]


def test_root_gets_fixed_joint(ur5_tree):
    base = ur5_tree[0]
    assert base.joint.type is JointType.FIXED
    assert base.qvel_dof_map == (0, 0)
    assert ur5_tree.nv == 3
    assert len(ur5_tree) == 5


def test_movable_root_joint():
    links, joints = chain(JointType.REVOLUTE)
    rail = Joint("rail", "world", "l0", JointType.PRISMATIC, axis=[1, 0, 0])
    tree = RigidBodyTree.build_tree("on_rail", links, joints, root_joint=rail)
    assert tree.nv == 2
    assert tree[0].qvel_dof_map == (0, 1)
    assert tree[1].qvel_dof_map == (1, 2)


def test_children_and_lookups(branched_tree):
    torso = branched_tree.body_index_from_name("torso")
    children = [branched_tree[c].name for c in branched_tree[torso].children]
    assert children == ["l_sh", "r_mount", "head"]
    assert branched_tree.parent_index(torso) == 0
    with pytest.raises(ValueError):
        branched_tree.body_index_from_name("tail")


def test_kinematics_tree_path(branched_tree):
    idx = branched_tree.body_index_from_name
    up, down = branched_tree.kinematics_tree_path("l_wrist", "r_elb")
    assert up == [idx("l_wrist"), idx("l_hand"), idx("l_elb"), idx("l_sh")]
    assert down == [idx("r_mount"), idx("r_sh"), idx("r_elb")]
    up, down = branched_tree.kinematics_tree_path("base", "l_elb")
    assert up == []
    assert down == [idx("torso"), idx("l_sh"), idx("l_elb")]
    assert branched_tree.kinematics_tree_path("head", "head") == ([], [])


def test_duplicate_link():
    links, joints = chain(JointType.REVOLUTE)
    with pytest.raises(RigidBodyTreeError):
        RigidBodyTree.build_tree("bad", links + [Link("l1")], joints)


def test_unknown_parent():
    links, joints = chain(JointType.REVOLUTE)
    joints.append(Joint("ghost", "nowhere", "l1", JointType.FIXED))
    with pytest.raises(RigidBodyTreeError):
        RigidBodyTree.build_tree("bad", links, joints)


def test_unknown_child():
    links, joints = chain(JointType.REVOLUTE)
    joints.append(Joint("ghost", "l1", "nowhere", JointType.FIXED))
    with pytest.raises(RigidBodyTreeError):
        RigidBodyTree.build_tree("bad", links, joints)


def test_more_than_one_root():
    links, joints = chain(JointType.REVOLUTE)
    with pytest.raises(RigidBodyTreeError, match="more than one root"):
        RigidBodyTree.build_tree("bad", links + [Link("floating")], joints)


def test_link_with_two_parents():
    links, joints = chain(JointType.REVOLUTE, JointType.REVOLUTE)
    joints.append(Joint("loop", "l0", "l2", JointType.FIXED))
    with pytest.raises(RigidBodyTreeError) as err:
        RigidBodyTree.build_tree("bad", links, joints)
    assert err.value.body == "l2"


def test_cycle_is_unreachable():
    links, joints = chain(JointType.REVOLUTE)
    links += [Link("a"), Link("b")]
    joints += [
        Joint("ab", "a", "b", JointType.FIXED),
        Joint("ba", "b", "a", JointType.FIXED),
    ]
    with pytest.raises(RigidBodyTreeError, match="not connected"):
        RigidBodyTree.build_tree("bad", links, joints)


def test_zero_axis():
    links, joints = chain(JointType.REVOLUTE)
    joints[0].axis = np.zeros(3)
    with pytest.raises(RigidBodyTreeError, match="zero axis"):
        RigidBodyTree.build_tree("bad", links, joints)


def test_axis_set_before_building():
    links, joints = chain(JointType.REVOLUTE)
    joints[0].axis = [1.0, 0.0, 0.0]
    tree = RigidBodyTree.build_tree("rolled", links, joints)
    S = tree[1].joint.motion_subspace()
    assert S.ravel() == pytest.approx([1, 0, 0, 0, 0, 0])
    H = RBDAlgorithms(tree).get_transform_to_world(np.array([np.pi / 2]), "l1")
    expected = np.array([[1, 0, 0], [0, 0, -1], [0, 1, 0]])
    assert H[:3, :3] - expected == pytest.approx(0.0, abs=1e-12)


def test_validate_parent_order(ur5_tree):
    bodies = list(ur5_tree)
    bodies[2] = dataclasses.replace(bodies[2], parent_index=3)
    with pytest.raises(RigidBodyTreeError) as err:
        RigidBodyTree("bad", bodies)
    assert err.value.body == 2


def test_validate_dof_ranges(ur5_tree):
    bodies = list(ur5_tree)
    bodies[4] = dataclasses.replace(bodies[4], qvel_dof_map=(3, 4))
    with pytest.raises(RigidBodyTreeError) as err:
        RigidBodyTree("bad", bodies)
    assert err.value.body == 4


def test_configurations(branched_tree):
    assert branched_tree.home_configuration() == pytest.approx(0.0)
    qpos = branched_tree.random_configuration(np.random.default_rng(0))
    assert qpos.shape == (branched_tree.nq,)
    assert np.all(np.abs(qpos) <= 1.0)
    branched_tree.check_configuration(qpos)


def test_home_configuration_is_clipped():
    links, joints = chain(JointType.PRISMATIC)
    joints[0].limit = Limits(lower=0.1, upper=0.5)
    tree = RigidBodyTree.build_tree("lifted", links, joints)
    assert tree.home_configuration() == pytest.approx([0.1])


def test_check_configuration(branched_tree):
    qpos = np.zeros(branched_tree.nq)
    qpos[2] = 1.5
    with pytest.raises(JointLimitError) as err:
        branched_tree.check_configuration(qpos)
    assert err.value.joint == "l_elb_joint"
    with pytest.raises(SizeMismatchError):
        branched_tree.check_configuration(np.zeros(3))


def test_total_mass(ur5_tree):
    assert ur5_tree.get_total_mass() == pytest.approx(3.7 + 8.393 + 2.275)


def test_table(ur5_tree):
    table = str(ur5_tree)
    for header in ["Idx", "Body Name", "Joint Type", "qpos Map", "Children Name(s)"]:
        assert header in table
    assert "(0, 1)" in table
    assert "tip_joint" in table
    assert "2 fixed + 3 non-fixed" in table
