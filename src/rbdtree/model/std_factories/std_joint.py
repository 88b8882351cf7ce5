# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.
# This software may be modified and distributed under the terms of the
# GNU Lesser General Public License v2.1 or any later version.

import math

import numpy as np
import urdf_parser_py.urdf

from rbdtree.core.constants import JointType
from rbdtree.core.spatial_math import SpatialMath
from rbdtree.model.abc_factories import Joint, Limits

URDF_JOINT_TYPES = {
    "revolute": JointType.REVOLUTE,
    "continuous": JointType.REVOLUTE,
    "prismatic": JointType.PRISMATIC,
    "fixed": JointType.FIXED,
}


class StdJoint(Joint):
    """Joint built from a urdf_parser_py joint"""

    def __init__(self, joint: urdf_parser_py.urdf.Joint) -> None:
        if joint.type not in URDF_JOINT_TYPES:
            raise ValueError(
                f"The joint {joint.name} has unsupported type {joint.type}"
            )
        self.urdf_type = joint.type
        joint_type = URDF_JOINT_TYPES[joint.type]
        super().__init__(
            name=joint.name,
            parent=joint.parent,
            child=joint.child,
            type=joint_type,
            # the urdf default axis
            axis=[1.0, 0.0, 0.0] if joint.axis is None else joint.axis,
            origin=self._set_origin(joint.origin),
            limit=self._set_limits(joint.limit, joint_type),
        )

    @staticmethod
    def _set_origin(origin: urdf_parser_py.urdf.Pose) -> np.ndarray:
        """
        Args:
            origin (Pose): origin

        Returns:
            np.ndarray: the transform of the joint frame in the parent link frame
        """
        if origin is None:
            return np.eye(4)
        xyz = [0.0, 0.0, 0.0] if origin.xyz is None else origin.xyz
        rpy = [0.0, 0.0, 0.0] if origin.rpy is None else origin.rpy
        return SpatialMath.H_from_Pos_RPY(xyz, rpy)

    def _set_limits(
        self, limit: urdf_parser_py.urdf.JointLimit, joint_type: JointType
    ) -> Limits:
        """
        Args:
            limit (JointLimit): limit

        Returns:
            Limits: set the limits
        """
        default = Limits.default(joint_type)
        if self.urdf_type == "continuous":
            default = Limits(lower=-math.inf, upper=math.inf)
        if limit is None:
            return default
        lower, upper = limit.lower, limit.upper
        if self.urdf_type == "continuous":
            lower, upper = default.lower, default.upper
        return Limits(
            lower=default.lower if lower is None else lower,
            upper=default.upper if upper is None else upper,
            effort=math.inf if limit.effort is None else limit.effort,
            velocity=math.inf if limit.velocity is None else limit.velocity,
        )
