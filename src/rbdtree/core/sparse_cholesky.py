# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.
# This software may be modified and distributed under the terms of the
# GNU Lesser General Public License v2.1 or any later version.

"""Cholesky factorization of a joint space mass matrix that only touches
the entries allowed by the branching of the kinematic tree.

Entry (i, j) of the mass matrix can be non zero only when dof j is on the
ancestor chain of dof i, the chain being given by the elimination array
lam: lam[i] is the previous dof up the tree, or None at the root. Ancestors
always have smaller indices.

The factor L is lower triangular with M = L.T @ L, which fills no entry
outside the ancestor chains.
"""

from typing import Iterator, Sequence, Union

import numpy as np
import numpy.typing as npt

from rbdtree.core.constants import NEAR_ZERO
from rbdtree.core.errors import SingularMassMatrixError

Lambda = Sequence[Union[int, None]]


def ancestors(lam: Lambda, i: int) -> Iterator[int]:
    """Yields lam[i], lam[lam[i]], ... up to the root."""
    k = lam[i]
    while k is not None:
        yield k
        k = lam[k]


def ltl_factor(
    M: npt.ArrayLike, lam: Lambda, overwrite_a: bool = False
) -> np.ndarray:
    """
    Args:
        M (npt.ArrayLike): the symmetric positive definite mass matrix
        lam (Lambda): the elimination array of M
        overwrite_a (bool, optional): factor M in place. Defaults to False.

    Raises:
        SingularMassMatrixError: if a pivot is not positive

    Returns:
        np.ndarray: the lower triangular L such that M = L.T @ L
    """
    H = np.asarray(M, dtype=float) if overwrite_a else np.array(M, dtype=float)
    for k in range(H.shape[0] - 1, -1, -1):
        pivot = H[k, k]
        # also catches nan
        if not pivot > NEAR_ZERO:
            raise SingularMassMatrixError(dof=k, value=float(pivot))
        H[k, k] = np.sqrt(pivot)
        for i in ancestors(lam, k):
            H[k, i] /= H[k, k]
        for i in ancestors(lam, k):
            for j in ancestors(lam, i):
                H[i, j] -= H[k, i] * H[k, j]
            H[i, i] -= H[k, i] * H[k, i]
    return np.tril(H)


def ltl_solve(L: npt.ArrayLike, lam: Lambda, b: npt.ArrayLike) -> np.ndarray:
    """Solves L.T @ L @ x = b with two substitutions along the ancestor chains.

    Args:
        L (npt.ArrayLike): the factor returned by ltl_factor
        lam (Lambda): the elimination array used for the factorization
        b (npt.ArrayLike): the right hand side

    Returns:
        np.ndarray: the solution x
    """
    L = np.asarray(L)
    x = np.array(b, dtype=float)
    n = x.shape[0]
    # L.T @ y = b, from the leaves to the root
    for i in range(n - 1, -1, -1):
        x[i] /= L[i, i]
        for j in ancestors(lam, i):
            x[j] -= L[i, j] * x[i]
    # L @ x = y, from the root to the leaves
    for i in range(n):
        for j in ancestors(lam, i):
            x[i] -= L[i, j] * x[j]
        x[i] /= L[i, i]
    return x
