import dataclasses
import logging

import numpy as np
import pytest

from rbdtree import KinDynComputations
from rbdtree.core.constants import JointType
from rbdtree.core.spatial_math import SpatialMath
from rbdtree.model import Inertial, Joint, Limits, Link, RigidBodyTree

logging.basicConfig(level=logging.DEBUG)

np.random.seed(42)

# Universal Robots UR5, three links, from Lynch and Park, Modern Robotics
UR5_M01 = SpatialMath.translation([0.0, 0.0, 0.089159])
UR5_M12 = np.array(
    [[0, 0, 1, 0.28], [0, 1, 0, 0.13585], [-1, 0, 0, 0], [0, 0, 0, 1]], dtype=float
)
UR5_M23 = SpatialMath.translation([0.0, -0.1197, 0.395])
UR5_M34 = SpatialMath.translation([0.0, 0.0, 0.14225])
UR5_G = [
    np.diag([0.010267, 0.010267, 0.00666, 3.7, 3.7, 3.7]),
    np.diag([0.22689, 0.22689, 0.0151074, 8.393, 8.393, 8.393]),
    np.diag([0.0494433, 0.0494433, 0.004095, 2.275, 2.275, 2.275]),
]
# screw axes in the space frame
UR5_S = [
    np.array([1.0, 0.0, 1.0, 0.0, 1.0, 0.0]),
    np.array([0.0, 1.0, 0.0, -0.089, 0.0, 0.0]),
    np.array([0.0, 1.0, 0.0, -0.089, 0.0, 0.425]),
]


def screw_joint(name, parent, child, M_parent_child, M_home, S_space) -> Joint:
    """Revolute joint moving a link with home pose M_home by exp([S_space] q)"""
    A = SpatialMath.adjoint(SpatialMath.homogeneous_inverse(M_home)) @ S_space
    w, v = A[:3], A[3:]
    point = np.cross(w, v) / w.dot(w)
    return Joint(
        name=name,
        parent=parent,
        child=child,
        type=JointType.REVOLUTE,
        axis=w,
        origin=M_parent_child @ SpatialMath.translation(point),
        child_origin=SpatialMath.translation(-point),
    )


def inertial_from_matrix(G: np.ndarray) -> Inertial:
    return Inertial.build(mass=G[3, 3], inertia=G[:3, :3])


def build_ur5_tree() -> RigidBodyTree:
    links = [Link("base")]
    links += [
        Link(f"link{i + 1}", inertial_from_matrix(G)) for i, G in enumerate(UR5_G)
    ]
    links.append(Link("tip"))
    joints = []
    M_home = np.eye(4)
    for i, M in enumerate([UR5_M01, UR5_M12, UR5_M23]):
        M_home = M_home @ M
        parent = "base" if i == 0 else f"link{i}"
        joints.append(
            screw_joint(f"joint{i + 1}", parent, f"link{i + 1}", M, M_home, UR5_S[i])
        )
    joints.append(Joint.fixed("tip_joint", "link3", "tip", origin=UR5_M34))
    return RigidBodyTree.build_tree("ur5", links, joints)


def random_inertial() -> Inertial:
    return Inertial.build(
        mass=np.random.uniform(0.5, 3.0),
        inertia=np.diag(np.random.uniform(0.01, 0.2, 3)),
        com=np.random.uniform(-0.1, 0.1, 3),
        rpy=np.random.uniform(-np.pi, np.pi, 3),
    )


def random_origin() -> np.ndarray:
    return SpatialMath.H_from_Pos_RPY(
        np.random.uniform(-0.3, 0.3, 3), np.random.uniform(-np.pi, np.pi, 3)
    )


def build_branched_tree() -> RigidBodyTree:
    """Two arms on a torso, fixed joints in the middle of the chains and a
    massless fixed frame between the torso and the right arm"""
    #              torso
    #        /       |         \
    #     l_sh    r_mount(f)   head(f)
    #      |         |
    #    l_elb(p)   r_sh
    #      |         |
    #   l_hand(f)  r_elb
    #      |
    #    l_wrist
    structure = [
        ("torso_joint", "base", "torso", JointType.REVOLUTE),
        ("l_sh_joint", "torso", "l_sh", JointType.REVOLUTE),
        ("l_elb_joint", "l_sh", "l_elb", JointType.PRISMATIC),
        ("l_hand_joint", "l_elb", "l_hand", JointType.FIXED),
        ("l_wrist_joint", "l_hand", "l_wrist", JointType.REVOLUTE),
        ("r_mount_joint", "torso", "r_mount", JointType.FIXED),
        ("r_sh_joint", "r_mount", "r_sh", JointType.REVOLUTE),
        ("r_elb_joint", "r_sh", "r_elb", JointType.REVOLUTE),
        ("head_joint", "torso", "head", JointType.FIXED),
    ]
    links = [Link("base", random_inertial())]
    joints = []
    for name, parent, child, joint_type in structure:
        inertial = Inertial.zero() if child == "r_mount" else random_inertial()
        links.append(Link(child, inertial))
        joints.append(
            Joint(
                name=name,
                parent=parent,
                child=child,
                type=joint_type,
                axis=np.random.uniform(-1, 1, 3),
                origin=random_origin(),
                child_origin=random_origin(),
                limit=Limits(lower=-1.0, upper=1.0),
            )
        )
    return RigidBodyTree.build_tree("branched", links, joints)


TWO_LINK_URDF = """<?xml version="1.0"?>
<robot name="two_link">
  <link name="world"/>
  <link name="upper_arm">
    <inertial>
      <origin xyz="0 0 0.25" rpy="0 0 0"/>
      <mass value="2.0"/>
      <inertia ixx="0.05" ixy="0" ixz="0" iyy="0.05" iyz="0" izz="0.01"/>
    </inertial>
  </link>
  <link name="forearm">
    <inertial>
      <origin xyz="0 0 0.2" rpy="0.1 0 0"/>
      <mass value="1.0"/>
      <inertia ixx="0.02" ixy="0.001" ixz="0" iyy="0.02" iyz="0" izz="0.005"/>
    </inertial>
  </link>
  <link name="slider">
    <inertial>
      <origin xyz="0 0 0" rpy="0 0 0"/>
      <mass value="0.5"/>
      <inertia ixx="0.001" ixy="0" ixz="0" iyy="0.001" iyz="0" izz="0.001"/>
    </inertial>
  </link>
  <link name="tool"/>
  <joint name="shoulder" type="revolute">
    <parent link="world"/>
    <child link="upper_arm"/>
    <origin xyz="0 0 0.1" rpy="0 0 0"/>
    <axis xyz="0 1 0"/>
    <limit lower="-1.57" upper="1.57" effort="50" velocity="3"/>
  </joint>
  <joint name="elbow" type="continuous">
    <parent link="upper_arm"/>
    <child link="forearm"/>
    <origin xyz="0 0 0.5" rpy="0 0 0.3"/>
    <axis xyz="0 1 0"/>
  </joint>
  <joint name="slide" type="prismatic">
    <parent link="forearm"/>
    <child link="slider"/>
    <origin xyz="0 0 0.4" rpy="0 0 0"/>
    <axis xyz="0 0 1"/>
    <limit lower="0" upper="0.2" effort="100" velocity="1"/>
  </joint>
  <joint name="tool_joint" type="fixed">
    <parent link="slider"/>
    <child link="tool"/>
    <origin xyz="0 0 0.05" rpy="0 0 0"/>
  </joint>
  <sensor name="tool_ft" type="force_torque">
    <parent link="tool"/>
  </sensor>
</robot>
"""


@dataclasses.dataclass
class RobotCfg:
    robot_name: str
    kin_dyn: KinDynComputations
    n_dof: int


@dataclasses.dataclass
class State:
    qpos: np.ndarray
    qvel: np.ndarray
    qacc: np.ndarray
    fext: np.ndarray


ROBOTS = ["ur5", "branched", "two_link"]


def build_robot(robot_name: str) -> KinDynComputations:
    if robot_name == "ur5":
        return KinDynComputations(build_ur5_tree(), gravity=np.array([0, 0, -9.8]))
    if robot_name == "branched":
        return KinDynComputations(build_branched_tree())
    return KinDynComputations.from_urdf(TWO_LINK_URDF)


@pytest.fixture(scope="module", params=ROBOTS, ids=ROBOTS)
def robot_cfg(request) -> RobotCfg:
    kin_dyn = build_robot(request.param)
    return RobotCfg(robot_name=request.param, kin_dyn=kin_dyn, n_dof=kin_dyn.NDoF)


@pytest.fixture
def state(robot_cfg) -> State:
    tree = robot_cfg.kin_dyn.tree
    return State(
        qpos=tree.random_configuration(np.random.default_rng(7)),
        qvel=np.random.uniform(-1, 1, robot_cfg.n_dof),
        qacc=np.random.uniform(-1, 1, robot_cfg.n_dof),
        fext=np.random.uniform(-1, 1, (tree.nb, 6)),
    )


@pytest.fixture
def ur5_tree() -> RigidBodyTree:
    return build_ur5_tree()


@pytest.fixture
def branched_tree() -> RigidBodyTree:
    return build_branched_tree()
