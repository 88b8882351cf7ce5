# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.
# This software may be modified and distributed under the terms of the
# GNU Lesser General Public License v2.1 or any later version.

from rbdtree.computations import KinDynComputations
from rbdtree.core import (
    DEFAULT_GRAVITY,
    NEAR_ZERO,
    JointLimitError,
    JointType,
    RigidBodyTreeError,
    SingularMassMatrixError,
    SizeMismatchError,
    SpatialMath,
)
from rbdtree.core.rbd_algorithms import RBDAlgorithms
from rbdtree.model import Inertial, Joint, Limits, Link, RigidBody, RigidBodyTree
