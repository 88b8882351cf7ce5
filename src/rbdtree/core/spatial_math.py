# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.
# This software may be modified and distributed under the terms of the
# GNU Lesser General Public License v2.1 or any later version.

import numpy as np
import numpy.typing as npt
from scipy.spatial.transform import Rotation

from rbdtree.core.constants import NEAR_ZERO


class SpatialMath:
    """Spatial algebra on numpy arrays.

    Spatial vectors are ordered angular first: twists are [omega; v] and
    wrenches are [n; f], both expressed at the origin of the frame they
    are written in.
    """

    @staticmethod
    def skew(x: npt.ArrayLike) -> np.ndarray:
        # Retrieving the skew sym matrix using a cross product
        return -np.cross(np.asarray(x, dtype=float), np.eye(3), axisa=0, axisb=0)

    @staticmethod
    def unskew(so3: npt.ArrayLike) -> np.ndarray:
        so3 = np.asarray(so3)
        return np.array([so3[2, 1], so3[0, 2], so3[1, 0]])

    @staticmethod
    def near_zero(x: float) -> bool:
        return abs(x) < NEAR_ZERO

    @classmethod
    def axis_angle(cls, expc3: npt.ArrayLike):
        """
        Args:
            expc3 (npt.ArrayLike): exponential coordinates of a rotation

        Returns:
            (np.ndarray, float): the unit rotation axis and the angle
        """
        theta = np.linalg.norm(expc3)
        return np.asarray(expc3) / theta, theta

    @classmethod
    def vec_to_se3(cls, V: npt.ArrayLike) -> np.ndarray:
        """
        Args:
            V (npt.ArrayLike): the twist [omega; v]

        Returns:
            np.ndarray: the 4x4 se(3) matrix of V
        """
        V = np.asarray(V, dtype=float)
        se3 = np.zeros((4, 4))
        se3[:3, :3] = cls.skew(V[:3])
        se3[:3, 3] = V[3:]
        return se3

    @classmethod
    def matrix_exp3(cls, so3: npt.ArrayLike) -> np.ndarray:
        """
        Args:
            so3 (npt.ArrayLike): a so(3) matrix in exponential coordinates

        Returns:
            np.ndarray: the rotation matrix exp(so3)
        """
        so3 = np.asarray(so3, dtype=float)
        omgtheta = cls.unskew(so3)
        if cls.near_zero(np.linalg.norm(omgtheta)):
            return np.eye(3)
        _, theta = cls.axis_angle(omgtheta)
        omgmat = so3 / theta
        return (
            np.eye(3)
            + np.sin(theta) * omgmat
            + (1 - np.cos(theta)) * omgmat @ omgmat
        )

    @classmethod
    def matrix_exp6(cls, se3: npt.ArrayLike) -> np.ndarray:
        """
        Args:
            se3 (npt.ArrayLike): a se(3) matrix in exponential coordinates

        Returns:
            np.ndarray: the homogeneous transform exp(se3)
        """
        se3 = np.asarray(se3, dtype=float)
        omgtheta = cls.unskew(se3[:3, :3])
        if cls.near_zero(np.linalg.norm(omgtheta)):
            return cls.homogeneous(np.eye(3), se3[:3, 3])
        _, theta = cls.axis_angle(omgtheta)
        omgmat = se3[:3, :3] / theta
        G = (
            np.eye(3) * theta
            + (1 - np.cos(theta)) * omgmat
            + (theta - np.sin(theta)) * omgmat @ omgmat
        )
        p = G @ se3[:3, 3] / theta
        return cls.homogeneous(cls.matrix_exp3(se3[:3, :3]), p)

    @staticmethod
    def homogeneous(R: npt.ArrayLike, p: npt.ArrayLike) -> np.ndarray:
        T = np.eye(4)
        T[:3, :3] = R
        T[:3, 3] = np.reshape(p, 3)
        return T

    @classmethod
    def translation(cls, p: npt.ArrayLike) -> np.ndarray:
        return cls.homogeneous(np.eye(3), p)

    @classmethod
    def homogeneous_inverse(cls, H: npt.ArrayLike) -> np.ndarray:
        H = np.asarray(H)
        R = H[:3, :3]
        return cls.homogeneous(R.T, -R.T @ H[:3, 3])

    @classmethod
    def R_from_RPY(cls, rpy: npt.ArrayLike) -> np.ndarray:
        return Rotation.from_euler("xyz", rpy).as_matrix()

    @classmethod
    def H_from_Pos_RPY(cls, xyz: npt.ArrayLike, rpy: npt.ArrayLike) -> np.ndarray:
        return cls.homogeneous(cls.R_from_RPY(rpy), xyz)

    @classmethod
    def spatial_transform(cls, R: npt.ArrayLike, p: npt.ArrayLike) -> np.ndarray:
        """
        Args:
            R (npt.ArrayLike): rotation part of a homogeneous transform
            p (npt.ArrayLike): translation part of a homogeneous transform

        Returns:
            np.ndarray: the 6x6 transform of twists written in the transform's
                        child frame into its parent frame
        """
        X = np.zeros((6, 6))
        X[:3, :3] = R
        X[3:, 3:] = R
        X[3:, :3] = cls.skew(p) @ R
        return X

    @classmethod
    def adjoint(cls, H: npt.ArrayLike) -> np.ndarray:
        H = np.asarray(H)
        return cls.spatial_transform(H[:3, :3], H[:3, 3])

    @classmethod
    def adjoint_inverse(cls, H: npt.ArrayLike) -> np.ndarray:
        """
        Args:
            H (npt.ArrayLike): the transform of a body frame in its parent frame

        Returns:
            np.ndarray: the spatial transform from the parent frame to the body frame
        """
        H = np.asarray(H)
        R = H[:3, :3]
        return cls.spatial_transform(R.T, -R.T @ H[:3, 3])

    @classmethod
    def spatial_skew(cls, v: npt.ArrayLike) -> np.ndarray:
        """
        Args:
            v (npt.ArrayLike): a twist

        Returns:
            np.ndarray: the motion cross product matrix of v
        """
        v = np.asarray(v)
        X = np.zeros((6, 6))
        X[:3, :3] = cls.skew(v[:3])
        X[3:, :3] = cls.skew(v[3:])
        X[3:, 3:] = cls.skew(v[:3])
        return X

    @classmethod
    def spatial_skew_star(cls, v: npt.ArrayLike) -> np.ndarray:
        return -cls.spatial_skew(v).T

    @classmethod
    def cross_motion(cls, v: npt.ArrayLike, m: npt.ArrayLike) -> np.ndarray:
        return cls.spatial_skew(v) @ m

    @classmethod
    def cross_force(cls, v: npt.ArrayLike, f: npt.ArrayLike) -> np.ndarray:
        return cls.spatial_skew_star(v) @ f

    @classmethod
    def spatial_inertia(
        cls, I: npt.ArrayLike, mass: float, c: npt.ArrayLike, rpy: npt.ArrayLike
    ) -> np.ndarray:
        """
        Args:
            I (npt.ArrayLike): 3x3 inertia about the center of mass, in the inertial frame
            mass (float): the mass
            c (npt.ArrayLike): the center of mass position in the body frame
            rpy (npt.ArrayLike): the orientation of the inertial frame in the body frame

        Returns:
            np.ndarray: the 6x6 inertia matrix expressed at the origin of the body frame
        """
        IO = np.zeros((6, 6))
        Sc = cls.skew(c)
        R = cls.R_from_RPY(rpy)
        IO[:3, :3] = R @ np.asarray(I) @ R.T + mass * Sc @ Sc.T
        IO[:3, 3:] = mass * Sc
        IO[3:, :3] = mass * Sc.T
        IO[3:, 3:] = np.eye(3) * mass
        return IO
