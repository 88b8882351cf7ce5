# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.
# This software may be modified and distributed under the terms of the
# GNU Lesser General Public License v2.1 or any later version.

from enum import Enum

import numpy as np

# Below this norm an exponential coordinate is treated as a pure translation
NEAR_ZERO = 1e-6

DEFAULT_GRAVITY = np.array([0.0, 0.0, -9.80665])


class JointType(Enum):
    REVOLUTE = "revolute"
    PRISMATIC = "prismatic"
    FIXED = "fixed"

    @property
    def ndof(self) -> int:
        return 0 if self is JointType.FIXED else 1
