# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.
# This software may be modified and distributed under the terms of the
# GNU Lesser General Public License v2.1 or any later version.

import abc
import dataclasses
import math
from typing import List

import numpy as np
import numpy.typing as npt

from rbdtree.core.constants import JointType
from rbdtree.core.spatial_math import SpatialMath


@dataclasses.dataclass(frozen=True, slots=True)
class Pose:
    """Pose class"""

    xyz: npt.ArrayLike
    rpy: npt.ArrayLike

    @staticmethod
    def build(xyz: npt.ArrayLike, rpy: npt.ArrayLike) -> "Pose":
        xyz = np.asarray(xyz, dtype=float)
        rpy = np.asarray(rpy, dtype=float)
        return Pose(xyz, rpy)

    @staticmethod
    def zero() -> "Pose":
        return Pose.build([0, 0, 0], [0, 0, 0])

    def homogeneous(self) -> np.ndarray:
        return SpatialMath.H_from_Pos_RPY(self.xyz, self.rpy)


@dataclasses.dataclass(frozen=True, slots=True)
class Inertia:
    matrix: npt.ArrayLike
    ixx: float
    ixy: float
    ixz: float
    iyy: float
    iyz: float
    izz: float

    @staticmethod
    def build(
        ixx: float, ixy: float, ixz: float, iyy: float, iyz: float, izz: float
    ) -> "Inertia":
        matrix = np.array(
            [
                [ixx, ixy, ixz],
                [ixy, iyy, iyz],
                [ixz, iyz, izz],
            ],
            dtype=float,
        )
        return Inertia(matrix, ixx, ixy, ixz, iyy, iyz, izz)

    @staticmethod
    def zero() -> "Inertia":
        return Inertia.build(ixx=0.0, ixy=0.0, ixz=0.0, iyy=0.0, iyz=0.0, izz=0.0)

    def get_matrix(self) -> np.ndarray:
        return self.matrix


@dataclasses.dataclass(frozen=True, slots=True)
class Limits:
    """Limits class"""

    lower: float
    upper: float
    effort: float = math.inf
    velocity: float = math.inf

    @staticmethod
    def default(joint_type: JointType) -> "Limits":
        joint_lim = math.inf if joint_type is JointType.PRISMATIC else 2 * math.pi
        return Limits(lower=-joint_lim, upper=joint_lim)

    def contains(self, value: float) -> bool:
        return self.lower <= value <= self.upper

    def is_bounded(self) -> bool:
        return math.isfinite(self.lower) and math.isfinite(self.upper)


@dataclasses.dataclass(frozen=True)
class Inertial:
    """Inertial description. The inertia is taken about the center of mass,
    in the frame given by origin."""

    mass: float
    inertia: Inertia
    origin: Pose
    spatial_inertia: np.ndarray = dataclasses.field(init=False, repr=False)

    def __post_init__(self):
        if self.mass < 0:
            raise ValueError(f"The mass must be non negative, got {self.mass}")
        # derived once, the inertial is immutable afterwards
        object.__setattr__(
            self,
            "spatial_inertia",
            SpatialMath.spatial_inertia(
                self.inertia.get_matrix(), self.mass, self.origin.xyz, self.origin.rpy
            ),
        )

    @staticmethod
    def build(
        mass: float,
        inertia: npt.ArrayLike = None,
        com: npt.ArrayLike = (0.0, 0.0, 0.0),
        rpy: npt.ArrayLike = (0.0, 0.0, 0.0),
    ) -> "Inertial":
        """
        Args:
            mass (float): the mass
            inertia (npt.ArrayLike, optional): 3x3 inertia about the center of mass. Defaults to zero.
            com (npt.ArrayLike, optional): center of mass in the body frame
            rpy (npt.ArrayLike, optional): orientation of the inertial frame

        Returns:
            Inertial: the inertial description
        """
        I = np.zeros((3, 3)) if inertia is None else np.asarray(inertia, float)
        return Inertial(
            mass=float(mass),
            inertia=Inertia.build(
                ixx=I[0, 0],
                ixy=I[0, 1],
                ixz=I[0, 2],
                iyy=I[1, 1],
                iyz=I[1, 2],
                izz=I[2, 2],
            ),
            origin=Pose.build(com, rpy),
        )

    @staticmethod
    def zero() -> "Inertial":
        """Returns an Inertial object with zero mass and inertia"""
        return Inertial(mass=0.0, inertia=Inertia.zero(), origin=Pose.zero())

    def com_homogeneous(self) -> np.ndarray:
        return self.origin.homogeneous()


@dataclasses.dataclass
class Link:
    """A rigid body: a name and its inertial description"""

    name: str
    inertial: Inertial = dataclasses.field(default_factory=Inertial.zero)

    def spatial_inertia(self) -> np.ndarray:
        """
        Returns:
            np.ndarray: the 6x6 inertia matrix expressed at
                        the origin of the link (with rotation)
        """
        return self.inertial.spatial_inertia


@dataclasses.dataclass
class Joint:
    """A joint connecting the parent link to the child link.

    The transform of the child frame in the parent frame is
    origin @ local_transform(q) @ child_origin, where local_transform is the
    exponential of the joint screw (axis for revolute, translation along axis
    for prismatic, identity for fixed). The axis is used as given, a non unit
    axis scales the joint rate.
    """

    name: str
    parent: str
    child: str
    type: JointType
    axis: npt.ArrayLike = None
    origin: npt.ArrayLike = None
    child_origin: npt.ArrayLike = None
    limit: Limits = None

    def __post_init__(self):
        self.type = JointType(self.type)
        self.origin = (
            np.eye(4) if self.origin is None else np.asarray(self.origin, dtype=float)
        )
        self.child_origin = (
            np.eye(4)
            if self.child_origin is None
            else np.asarray(self.child_origin, dtype=float)
        )
        if self.type is JointType.FIXED:
            self.axis = np.zeros(3)
        elif self.axis is None:
            raise ValueError(f"The {self.type.value} joint {self.name} has no axis")
        else:
            self.axis = np.asarray(self.axis, dtype=float).reshape(3)
        if self.limit is None:
            self.limit = Limits.default(self.type)

    @property
    def ndof(self) -> int:
        return self.type.ndof

    def _joint_screw(self) -> np.ndarray:
        """
        Returns:
            np.ndarray: the 6 x ndof screw of the joint, in the joint frame
        """
        if self.type is JointType.FIXED:
            return np.zeros((6, 0))
        axis = np.asarray(self.axis, dtype=float).reshape(3)
        if self.type is JointType.REVOLUTE:
            return np.concatenate([axis, np.zeros(3)]).reshape(6, 1)
        elif self.type is JointType.PRISMATIC:
            return np.concatenate([np.zeros(3), axis]).reshape(6, 1)
        raise ValueError(f"Unknown joint type {self.type}")

    def local_transform(self, q: npt.ArrayLike) -> np.ndarray:
        """
        Args:
            q (npt.ArrayLike): the joint position slice, of size ndof

        Returns:
            np.ndarray: the transform generated by the joint motion, in the joint frame
        """
        if self.type is JointType.FIXED:
            return np.eye(4)
        return SpatialMath.matrix_exp6(
            SpatialMath.vec_to_se3(self._joint_screw() @ np.reshape(q, self.ndof))
        )

    def homogeneous(self, q: npt.ArrayLike) -> np.ndarray:
        """
        Args:
            q (npt.ArrayLike): joint value

        Returns:
            np.ndarray: the homogeneous transform of the child frame in the parent frame
        """
        return self.origin @ self.local_transform(q) @ self.child_origin

    def spatial_transform(self, q: npt.ArrayLike) -> np.ndarray:
        """
        Args:
            q (npt.ArrayLike): joint motion

        Returns:
            np.ndarray: spatial transform from the parent frame to the child frame
        """
        return SpatialMath.adjoint_inverse(self.homogeneous(q))

    def motion_subspace(self) -> np.ndarray:
        """
        Returns:
            np.ndarray: the 6 x ndof motion subspace of the joint, in the child frame
        """
        return SpatialMath.adjoint_inverse(self.child_origin) @ self._joint_screw()

    @staticmethod
    def fixed(
        name: str, parent: str, child: str, origin: npt.ArrayLike = None
    ) -> "Joint":
        return Joint(
            name=name, parent=parent, child=child, type=JointType.FIXED, origin=origin
        )


class ModelFactory(abc.ABC):
    """The abstract class of the model factory.

    The model factory is responsible for creating the model.
    You need to implement all the methods in your concrete implementation
    """

    name: str

    @abc.abstractmethod
    def get_links(self) -> List[Link]:
        """
        Returns:
            List[Link]: the list of the links
        """
        pass

    @abc.abstractmethod
    def get_joints(self) -> List[Joint]:
        """
        Returns:
            List[Joint]: the list of the joints
        """
        pass
