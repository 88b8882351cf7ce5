# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.
# This software may be modified and distributed under the terms of the
# GNU Lesser General Public License v2.1 or any later version.

from typing import List, Union

import numpy as np
import numpy.typing as npt

from rbdtree.core.sparse_cholesky import ltl_factor, ltl_solve
from rbdtree.core.spatial_math import SpatialMath
from rbdtree.model.tree import RigidBodyTree


class RBDAlgorithms:
    """This is a small class that implements Rigid body algorithms retrieving robot quantities for fixed base trees.

    All the methods are pure functions of their arguments and of the tree,
    that is never modified.
    """

    def __init__(self, tree: RigidBodyTree, math: SpatialMath = SpatialMath) -> None:
        """
        Args:
            tree (RigidBodyTree): the tree representing the robot
            math (SpatialMath): the spatial math.
        """
        self.tree = tree
        self.math = math
        self.NDoF = tree.nv
        self._prepare_tree_cache()

    def _prepare_tree_cache(self) -> None:
        """Pre-compute static tree data so the dynamic algorithms avoid repeated Python work."""
        self._parent_indices = [body.parent_index for body in self.tree]
        self._motion_subspaces = [body.joint.motion_subspace() for body in self.tree]
        self._spatial_inertias = [body.link.spatial_inertia() for body in self.tree]
        self._qpos_slices = [body.qpos_slice() for body in self.tree]
        self._qvel_slices = [body.qvel_slice() for body in self.tree]
        self._lambda = self._elimination_array()

    def _elimination_array(self) -> List[Union[int, None]]:
        """
        Returns:
            List[Union[int, None]]: for every dof, the last dof of the closest
            non fixed ancestor body, or the previous dof of the same body
        """
        lam: List[Union[int, None]] = [None] * self.NDoF
        for body in self.tree:
            a0, a1 = body.qvel_dof_map
            if a0 == a1:
                continue
            parent = body.parent_index
            while parent is not None and self.tree[parent].is_fixed:
                parent = self.tree[parent].parent_index
            lam[a0] = (
                None if parent is None else self.tree[parent].qvel_dof_map[1] - 1
            )
            for k in range(a0 + 1, a1):
                lam[k] = k - 1
        return lam

    def elimination_array(self) -> List[Union[int, None]]:
        return list(self._lambda)

    def _body_to_parent(self, qpos: np.ndarray) -> List[np.ndarray]:
        return [
            body.joint.homogeneous(qpos[q_slice])
            for body, q_slice in zip(self.tree, self._qpos_slices)
        ]

    def forward_kinematics(self, qpos: npt.ArrayLike) -> List[np.ndarray]:
        """Computes the transform of every body frame in the world frame.

        Args:
            qpos (npt.ArrayLike): The joints position

        Returns:
            List[np.ndarray]: The transforms, in topological order
        """
        qpos = np.asarray(qpos, dtype=float)
        world: List[np.ndarray] = []
        for i, H in enumerate(self._body_to_parent(qpos)):
            parent = self._parent_indices[i]
            world.append(H if parent is None else world[parent] @ H)
        return world

    def get_transform_to_world(
        self, qpos: npt.ArrayLike, body: Union[str, int]
    ) -> np.ndarray:
        """
        Args:
            qpos (npt.ArrayLike): The joints position
            body (Union[str, int]): the body name or index

        Returns:
            np.ndarray: the transform of the body frame in the world frame
        """
        qpos = np.asarray(qpos, dtype=float)
        i = self.tree.body_index_from_name(body) if isinstance(body, str) else body
        H = np.eye(4)
        while i is not None:
            H = self.tree[i].joint.homogeneous(qpos[self._qpos_slices[i]]) @ H
            i = self._parent_indices[i]
        return H

    def get_transform(
        self, qpos: npt.ArrayLike, source: Union[str, int], target: Union[str, int]
    ) -> np.ndarray:
        """
        Args:
            qpos (npt.ArrayLike): The joints position
            source (Union[str, int]): the reference body
            target (Union[str, int]): the body whose frame is computed

        Returns:
            np.ndarray: the transform of the target frame in the source frame
        """
        qpos = np.asarray(qpos, dtype=float)
        up, down = self.tree.kinematics_tree_path(source, target)
        # both chains start from the common ancestor
        A_H_source = np.eye(4)
        for i in up:
            H = self.tree[i].joint.homogeneous(qpos[self._qpos_slices[i]])
            A_H_source = H @ A_H_source
        A_H_target = np.eye(4)
        for i in down:
            A_H_target = A_H_target @ self.tree[i].joint.homogeneous(
                qpos[self._qpos_slices[i]]
            )
        return self.math.homogeneous_inverse(A_H_source) @ A_H_target

    def crba(self, qpos: npt.ArrayLike):
        """This function computes the Composite Rigid body algorithm (Roy Featherstone) that computes the Mass Matrix.

        Args:
            qpos (npt.ArrayLike): The joints position

        Returns:
            M (np.ndarray): Mass Matrix
            lam (List[Union[int, None]]): the elimination array of M
        """
        qpos = np.asarray(qpos, dtype=float)
        Xup = [self.math.adjoint_inverse(H) for H in self._body_to_parent(qpos)]
        Ic = [I.copy() for I in self._spatial_inertias]

        for i in reversed(range(self.tree.nb)):
            parent = self._parent_indices[i]
            if parent is not None:
                Ic[parent] = Ic[parent] + Xup[i].T @ Ic[i] @ Xup[i]

        M = np.zeros((self.NDoF, self.NDoF))
        for i in reversed(range(self.tree.nb)):
            S = self._motion_subspaces[i]
            a = self._qvel_slices[i]
            if S.shape[1] == 0:
                continue
            F = Ic[i] @ S
            M[a, a] = S.T @ F
            # fixed ancestors do not own rows, but still transport the force
            j = i
            while self._parent_indices[j] is not None:
                F = Xup[j].T @ F
                j = self._parent_indices[j]
                b = self._qvel_slices[j]
                M[a, b] = F.T @ self._motion_subspaces[j]
                M[b, a] = M[a, b].T
        return M, self.elimination_array()

    def rnea(
        self,
        qpos: npt.ArrayLike,
        qvel: npt.ArrayLike,
        qacc: npt.ArrayLike,
        g: npt.ArrayLike,
        fext: npt.ArrayLike = None,
    ) -> np.ndarray:
        """Implements the Recursive Newton-Euler algorithm.

        Args:
            qpos (npt.ArrayLike): The joints position
            qvel (npt.ArrayLike): The joints velocity
            qacc (npt.ArrayLike): The joints acceleration
            g (npt.ArrayLike): The gravity vector
            fext (npt.ArrayLike, optional): (nb, 6) external wrenches acting on
                the bodies, expressed in the world frame. Defaults to zero.

        Returns:
            tau (np.ndarray): The vector of generalized forces
        """
        qpos = np.asarray(qpos, dtype=float)
        qvel = np.asarray(qvel, dtype=float)
        qacc = np.asarray(qacc, dtype=float)
        nb = self.tree.nb
        fext = np.zeros((nb, 6)) if fext is None else np.asarray(fext, dtype=float)

        # a fictitious acceleration of the world frame accounts for gravity
        a_world = np.concatenate([np.zeros(3), -np.asarray(g, dtype=float)])

        H_parent = self._body_to_parent(qpos)
        Xup = [None] * nb
        v = [None] * nb
        a = [None] * nb
        f = [None] * nb
        world = [None] * nb
        for i in range(nb):
            S = self._motion_subspaces[i]
            parent = self._parent_indices[i]
            Xup[i] = self.math.adjoint_inverse(H_parent[i])
            vJ = S @ qvel[self._qvel_slices[i]]
            if parent is None:
                world[i] = H_parent[i]
                v[i] = vJ
                a[i] = Xup[i] @ a_world + S @ qacc[self._qvel_slices[i]]
            else:
                world[i] = world[parent] @ H_parent[i]
                v[i] = Xup[i] @ v[parent] + vJ
                a[i] = (
                    Xup[i] @ a[parent]
                    + S @ qacc[self._qvel_slices[i]]
                    + self.math.cross_motion(v[i], vJ)
                )
            I = self._spatial_inertias[i]
            f[i] = (
                I @ a[i]
                + self.math.cross_force(v[i], I @ v[i])
                - self.math.adjoint(world[i]).T @ fext[i]
            )

        tau = np.zeros(self.NDoF)
        for i in reversed(range(nb)):
            tau[self._qvel_slices[i]] = self._motion_subspaces[i].T @ f[i]
            parent = self._parent_indices[i]
            if parent is not None:
                f[parent] = f[parent] + Xup[i].T @ f[i]
        return tau

    def forward_dynamics(
        self,
        qpos: npt.ArrayLike,
        qvel: npt.ArrayLike,
        tau: npt.ArrayLike,
        g: npt.ArrayLike,
        fext: npt.ArrayLike = None,
    ) -> np.ndarray:
        """Computes the joint accelerations solving M qacc = tau - bias with
        the sparse factorization of the mass matrix.

        Args:
            qpos (npt.ArrayLike): The joints position
            qvel (npt.ArrayLike): The joints velocity
            tau (npt.ArrayLike): The joints torque
            g (npt.ArrayLike): The gravity vector
            fext (npt.ArrayLike, optional): (nb, 6) external wrenches in the world frame

        Raises:
            SingularMassMatrixError: if the mass matrix is not positive definite

        Returns:
            qacc (np.ndarray): The joints acceleration
        """
        bias = self.rnea(qpos, qvel, np.zeros(self.NDoF), g, fext)
        M, lam = self.crba(qpos)
        L = ltl_factor(M, lam, overwrite_a=True)
        return ltl_solve(L, lam, np.asarray(tau, dtype=float) - bias)

    def jacobian(self, body: Union[str, int], qpos: npt.ArrayLike) -> np.ndarray:
        """Returns the Jacobian of `body`.

        Args:
            body (Union[str, int]): The body to which the jacobian will be computed
            qpos (npt.ArrayLike): The joints position

        Returns:
            J (np.ndarray): the 6 x nv matrix mapping the joint velocities to the
            twist of the body, expressed in the world frame
        """
        qpos = np.asarray(qpos, dtype=float)
        world = self.forward_kinematics(qpos)
        i = self.tree.body_index_from_name(body) if isinstance(body, str) else body
        J = np.zeros((6, self.NDoF))
        while i is not None:
            J[:, self._qvel_slices[i]] = (
                self.math.adjoint(world[i]) @ self._motion_subspaces[i]
            )
            i = self._parent_indices[i]
        return J

    def CoM_position(self, qpos: npt.ArrayLike) -> np.ndarray:
        """Returns the CoM position

        Args:
            qpos (npt.ArrayLike): The joints position

        Raises:
            ValueError: if the robot has no mass

        Returns:
            com (np.ndarray): The CoM position
        """
        total_mass = self.get_total_mass()
        if not total_mass > 0:
            raise ValueError(f"The CoM is undefined for the total mass {total_mass}")
        com_pos = np.zeros(3)
        for body, I_H_b in zip(self.tree, self.forward_kinematics(qpos)):
            inertial = body.link.inertial
            com = I_H_b[:3, :3] @ inertial.origin.xyz + I_H_b[:3, 3]
            com_pos += inertial.mass * com
        return com_pos / total_mass

    def get_total_mass(self) -> float:
        """Returns the total mass of the robot

        Returns:
            mass: The total mass
        """
        return self.tree.get_total_mass()
