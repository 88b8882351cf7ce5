# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.
# This software may be modified and distributed under the terms of the
# GNU Lesser General Public License v2.1 or any later version.

from .constants import DEFAULT_GRAVITY, NEAR_ZERO, JointType
from .errors import (
    JointLimitError,
    RigidBodyTreeError,
    SingularMassMatrixError,
    SizeMismatchError,
)
from .sparse_cholesky import ltl_factor, ltl_solve
from .spatial_math import SpatialMath
