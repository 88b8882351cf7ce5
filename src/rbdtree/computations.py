# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.
# This software may be modified and distributed under the terms of the
# GNU Lesser General Public License v2.1 or any later version.

import logging
from pathlib import Path
from typing import Dict, Union

import numpy as np

from rbdtree.core.constants import DEFAULT_GRAVITY
from rbdtree.core.errors import SizeMismatchError
from rbdtree.core.rbd_algorithms import RBDAlgorithms
from rbdtree.core.spatial_math import SpatialMath
from rbdtree.model import Joint, RigidBodyTree, URDFModelFactory

logger = logging.getLogger(__name__)

ExternalWrenches = Union[np.ndarray, Dict[str, np.ndarray], None]


class KinDynComputations:
    """This is a small class that retrieves robot quantities using NumPy for fixed base trees."""

    def __init__(
        self,
        tree: RigidBodyTree,
        gravity: np.ndarray = None,
    ) -> None:
        """
        Args:
            tree (RigidBodyTree): the kinematic tree of the robot
            gravity (np.ndarray, optional): the gravity vector. Defaults to DEFAULT_GRAVITY.
        """
        if gravity is None:
            logger.info("Using the default gravity %s", DEFAULT_GRAVITY)
            gravity = DEFAULT_GRAVITY
        self.g = np.asarray(gravity, dtype=float)
        if self.g.shape != (3,):
            raise SizeMismatchError("gravity", 3, self.g.size)
        self.tree = tree
        self.rbdalgos = RBDAlgorithms(tree=tree, math=SpatialMath)
        self.NDoF = tree.nv

    @staticmethod
    def from_urdf(
        urdf_string: Union[str, Path],
        gravity: np.ndarray = None,
        root_joint: Joint = None,
    ) -> "KinDynComputations":
        """Creates a KinDynComputations object from a URDF string

        Args:
            urdf_string (Union[str, Path]): The URDF path or string
            gravity (np.ndarray, optional): The gravity vector. Defaults to DEFAULT_GRAVITY.
            root_joint (Joint, optional): The joint of the root link. Defaults to a fixed joint.

        Returns:
            KinDynComputations: The KinDynComputations object
        """
        factory = URDFModelFactory(urdf_string)
        tree = RigidBodyTree.build(factory, root_joint=root_joint)
        return KinDynComputations(tree=tree, gravity=gravity)

    def _check_size(self, name: str, value: np.ndarray, size: int) -> np.ndarray:
        value = np.asarray(value, dtype=float)
        if value.shape != (size,):
            raise SizeMismatchError(name, size, value.size)
        return value

    def _external_wrenches(self, fext: ExternalWrenches) -> np.ndarray:
        """
        Args:
            fext (ExternalWrenches): an (nb, 6) array, or a dict from body name to wrench

        Returns:
            np.ndarray: the (nb, 6) array of the wrenches, in the world frame
        """
        if fext is None:
            return np.zeros((self.tree.nb, 6))
        if isinstance(fext, dict):
            wrenches = np.zeros((self.tree.nb, 6))
            for name, wrench in fext.items():
                index = self.tree.body_index_from_name(name)
                wrenches[index] = self._check_size(f"fext[{name}]", wrench, 6)
            return wrenches
        fext = np.asarray(fext, dtype=float)
        if fext.shape != (self.tree.nb, 6):
            raise SizeMismatchError("fext", self.tree.nb * 6, fext.size)
        return fext

    def forward_kinematics(self, qpos: np.ndarray) -> np.ndarray:
        """Computes the forward kinematics of every body

        Args:
            qpos (np.ndarray): The joints position

        Returns:
            H (np.ndarray): (nb, 4, 4) transforms of the bodies in the world frame
        """
        qpos = self._check_size("qpos", qpos, self.tree.nq)
        return np.stack(self.rbdalgos.forward_kinematics(qpos))

    def forward_kinematics_frame(self, frame: str, qpos: np.ndarray) -> np.ndarray:
        """Computes the forward kinematics relative to the specified frame

        Args:
            frame (str): The frame to which the fk will be computed
            qpos (np.ndarray): The joints position

        Returns:
            H (np.ndarray): The fk represented as Homogenous transformation matrix
        """
        qpos = self._check_size("qpos", qpos, self.tree.nq)
        return self.rbdalgos.get_transform_to_world(qpos, frame)

    def relative_transform(
        self, qpos: np.ndarray, source: str, target: str
    ) -> np.ndarray:
        """
        Args:
            qpos (np.ndarray): The joints position
            source (str): The reference frame
            target (str): The frame whose pose is computed

        Returns:
            H (np.ndarray): The transform of target in source
        """
        qpos = self._check_size("qpos", qpos, self.tree.nq)
        return self.rbdalgos.get_transform(qpos, source, target)

    def mass_matrix(self, qpos: np.ndarray) -> np.ndarray:
        """Returns the Mass Matrix functions computed the CRBA

        Args:
            qpos (np.ndarray): The joints position

        Returns:
            M (np.ndarray): Mass Matrix
        """
        qpos = self._check_size("qpos", qpos, self.tree.nq)
        [M, _] = self.rbdalgos.crba(qpos)
        return M

    def elimination_array(self) -> list:
        """
        Returns:
            list: for every dof, the closest dof up the tree, or None
        """
        return self.rbdalgos.elimination_array()

    def inverse_dynamics(
        self,
        qpos: np.ndarray,
        qvel: np.ndarray,
        qacc: np.ndarray,
        fext: ExternalWrenches = None,
    ) -> np.ndarray:
        """Returns the torques producing qacc

        Args:
            qpos (np.ndarray): The joints position
            qvel (np.ndarray): The joints velocity
            qacc (np.ndarray): The joints acceleration
            fext (ExternalWrenches, optional): The external wrenches, in the world frame

        Returns:
            tau (np.ndarray): the joint torques
        """
        qpos = self._check_size("qpos", qpos, self.tree.nq)
        qvel = self._check_size("qvel", qvel, self.NDoF)
        qacc = self._check_size("qacc", qacc, self.NDoF)
        return self.rbdalgos.rnea(
            qpos, qvel, qacc, self.g, self._external_wrenches(fext)
        )

    def bias_force(
        self, qpos: np.ndarray, qvel: np.ndarray, fext: ExternalWrenches = None
    ) -> np.ndarray:
        """Returns the bias force of the dynamics equation,
        using a reduced RNEA (no acceleration)

        Args:
            qpos (np.ndarray): The joints position
            qvel (np.ndarray): The joints velocity
            fext (ExternalWrenches, optional): The external wrenches, in the world frame

        Returns:
            h (np.ndarray): the bias force
        """
        return self.inverse_dynamics(qpos, qvel, np.zeros(self.NDoF), fext)

    def coriolis_term(self, qpos: np.ndarray, qvel: np.ndarray) -> np.ndarray:
        """Returns the coriolis term of the dynamics equation, using a reduced RNEA (no acceleration and no gravity)

        Args:
            qpos (np.ndarray): The joints position
            qvel (np.ndarray): The joints velocity

        Returns:
            C (np.ndarray): the Coriolis term
        """
        qpos = self._check_size("qpos", qpos, self.tree.nq)
        qvel = self._check_size("qvel", qvel, self.NDoF)
        return self.rbdalgos.rnea(qpos, qvel, np.zeros(self.NDoF), np.zeros(3))

    def gravity_term(self, qpos: np.ndarray) -> np.ndarray:
        """Returns the gravity term of the dynamics equation, using a reduced RNEA (no acceleration and no velocity)

        Args:
            qpos (np.ndarray): The joints position

        Returns:
            G (np.ndarray): the gravity term
        """
        return self.inverse_dynamics(qpos, np.zeros(self.NDoF), np.zeros(self.NDoF))

    def external_force_term(
        self, qpos: np.ndarray, fext: ExternalWrenches
    ) -> np.ndarray:
        """Returns the torques balancing the external wrenches alone

        Args:
            qpos (np.ndarray): The joints position
            fext (ExternalWrenches): The external wrenches, in the world frame

        Returns:
            tau (np.ndarray): the joint torques
        """
        qpos = self._check_size("qpos", qpos, self.tree.nq)
        zeros = np.zeros(self.NDoF)
        return self.rbdalgos.rnea(
            qpos, zeros, zeros, np.zeros(3), self._external_wrenches(fext)
        )

    def forward_dynamics(
        self,
        qpos: np.ndarray,
        qvel: np.ndarray,
        tau: np.ndarray,
        fext: ExternalWrenches = None,
    ) -> np.ndarray:
        """Returns the joint accelerations produced by the torques

        Args:
            qpos (np.ndarray): The joints position
            qvel (np.ndarray): The joints velocity
            tau (np.ndarray): The joints torque
            fext (ExternalWrenches, optional): The external wrenches, in the world frame

        Returns:
            qacc (np.ndarray): the joint accelerations
        """
        qpos = self._check_size("qpos", qpos, self.tree.nq)
        qvel = self._check_size("qvel", qvel, self.NDoF)
        tau = self._check_size("tau", tau, self.NDoF)
        return self.rbdalgos.forward_dynamics(
            qpos, qvel, tau, self.g, self._external_wrenches(fext)
        )

    def jacobian(self, frame: str, qpos: np.ndarray) -> np.ndarray:
        """Returns the Jacobian relative to the specified frame

        Args:
            frame (str): The frame to which the jacobian will be computed
            qpos (np.ndarray): The joints position

        Returns:
            J (np.ndarray): The Jacobian mapping the joint velocities to the
            twist of the frame in world coordinates
        """
        qpos = self._check_size("qpos", qpos, self.tree.nq)
        return self.rbdalgos.jacobian(frame, qpos)

    def CoM_position(self, qpos: np.ndarray) -> np.ndarray:
        """Returns the CoM positon

        Args:
            qpos (np.ndarray): The joints position

        Returns:
            CoM (np.ndarray): The CoM position
        """
        qpos = self._check_size("qpos", qpos, self.tree.nq)
        return self.rbdalgos.CoM_position(qpos)

    def get_total_mass(self) -> float:
        """Returns the total mass of the robot

        Returns:
            mass: The total mass
        """
        return self.rbdalgos.get_total_mass()
