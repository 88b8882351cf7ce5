# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.
# This software may be modified and distributed under the terms of the
# GNU Lesser General Public License v2.1 or any later version.

from typing import Union


class RigidBodyTreeError(ValueError):
    """Raised when the links and joints do not describe a valid kinematic tree.

    Args:
        message (str): the description of the violation
        body (Union[str, int, None]): the offending body, by name or index
    """

    def __init__(self, message: str, body: Union[str, int, None] = None) -> None:
        self.body = body
        if body is not None:
            message = f"{message} (body: {body})"
        super().__init__(message)


class SingularMassMatrixError(ArithmeticError):
    """Raised when the mass matrix factorization meets a non positive pivot.

    Args:
        dof (int): the velocity index of the pivot
        value (float): the pivot value before the square root
    """

    def __init__(self, dof: int, value: float) -> None:
        self.dof = dof
        self.value = value
        super().__init__(
            f"The mass matrix is not positive definite: pivot {value} at dof {dof}"
        )


class JointLimitError(ValueError):
    """Raised when a joint position lies outside the joint limits."""

    def __init__(self, joint: str, value: float, limit) -> None:
        self.joint = joint
        self.value = value
        self.limit = limit
        super().__init__(
            f"{joint} position {value} is outside [{limit.lower}, {limit.upper}]"
        )


class SizeMismatchError(ValueError):
    """Raised when an input vector does not match the model dimensions."""

    def __init__(self, name: str, expected: int, actual: int) -> None:
        self.name = name
        self.expected = expected
        self.actual = actual
        super().__init__(f"{name} has size {actual}, expected {expected}")
