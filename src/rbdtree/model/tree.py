# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.
# This software may be modified and distributed under the terms of the
# GNU Lesser General Public License v2.1 or any later version.

import dataclasses
import logging
from typing import Dict, Iterator, List, Tuple, Union

import numpy as np
import numpy.typing as npt
from prettytable import PrettyTable

from rbdtree.core.constants import JointType
from rbdtree.core.errors import JointLimitError, RigidBodyTreeError, SizeMismatchError
from rbdtree.model.abc_factories import Joint, Link, ModelFactory

logger = logging.getLogger(__name__)

ROOT_JOINT_PARENT = "world"


@dataclasses.dataclass
class RigidBody:
    """A body of the tree: the link, the joint attaching it to its parent
    and its slots in the generalized coordinate vectors"""

    index: int
    link: Link
    joint: Joint
    parent_index: Union[int, None]
    qpos_dof_map: Tuple[int, int]
    qvel_dof_map: Tuple[int, int]
    children: List[int] = dataclasses.field(default_factory=list)

    @property
    def name(self) -> str:
        return self.link.name

    @property
    def is_fixed(self) -> bool:
        return self.joint.type is JointType.FIXED

    def qpos_slice(self) -> slice:
        return slice(*self.qpos_dof_map)

    def qvel_slice(self) -> slice:
        return slice(*self.qvel_dof_map)


@dataclasses.dataclass
class RigidBodyTree:
    """The kinematic tree, stored as a flat list of bodies in topological order.

    Every body but the base has parent_index < index, so a single ascending
    sweep visits parents before children and a descending sweep visits
    children before parents.
    """

    name: str
    bodies: List[RigidBody]

    def __post_init__(self):
        self.validate()
        self.nq = self.bodies[-1].qpos_dof_map[1] if self.bodies else 0
        self.nv = self.bodies[-1].qvel_dof_map[1] if self.bodies else 0
        self._index_from_name = {body.name: body.index for body in self.bodies}

    @staticmethod
    def build(factory: ModelFactory, root_joint: Joint = None) -> "RigidBodyTree":
        """generates the tree starting from the links-joints factory

        Args:
            factory (ModelFactory): the factory that generates the links and the joints, starting from a description (eg. urdf)
            root_joint (Joint, optional): the joint attaching the root link to the world. Defaults to a fixed joint.

        Returns:
            RigidBodyTree: the tree describing the robot
        """
        return RigidBodyTree.build_tree(
            name=factory.name,
            links=factory.get_links(),
            joints=factory.get_joints(),
            root_joint=root_joint,
        )

    @staticmethod
    def build_tree(
        name: str, links: List[Link], joints: List[Joint], root_joint: Joint = None
    ) -> "RigidBodyTree":
        """builds the tree from the connectivity of the elements

        Args:
            name (str): the robot name
            links (List[Link])
            joints (List[Joint])
            root_joint (Joint, optional): the joint of the root link. Defaults to a fixed joint.

        Returns:
            RigidBodyTree: the tree, with bodies in pre-order
        """
        links_by_name: Dict[str, Link] = {}
        for link in links:
            if link.name in links_by_name:
                raise RigidBodyTreeError("Duplicate link name", link.name)
            links_by_name[link.name] = link

        parent_joint: Dict[str, Joint] = {}
        children: Dict[str, List[str]] = {l: [] for l in links_by_name}
        for joint in joints:
            if joint.child not in links_by_name:
                raise RigidBodyTreeError(
                    f"The joint {joint.name} has an unknown child link {joint.child}"
                )
            if joint.parent not in links_by_name:
                raise RigidBodyTreeError(
                    f"The joint {joint.name} has an unknown parent link {joint.parent}",
                    joint.child,
                )
            if joint.child in parent_joint:
                raise RigidBodyTreeError(
                    f"The link is the child of both {parent_joint[joint.child].name} "
                    f"and {joint.name}",
                    joint.child,
                )
            parent_joint[joint.child] = joint
            children[joint.parent].append(joint.child)

        roots = [l for l in links_by_name if l not in parent_joint]
        if len(roots) == 0:
            raise RigidBodyTreeError("The model has no root link")
        if len(roots) != 1:
            raise RigidBodyTreeError(f"The model has more than one root link: {roots}")
        root = roots[0]
        if root_joint is None:
            root_joint = Joint.fixed(
                name=f"{root}_root_joint", parent=ROOT_JOINT_PARENT, child=root
            )
        parent_joint[root] = root_joint

        # pre-order depth first visit, children in declaration order
        bodies: List[RigidBody] = []
        index_from_name: Dict[str, int] = {}
        stack: List[str] = [root]
        q_counter = 0
        while stack:
            link_name = stack.pop()
            joint = parent_joint[link_name]
            parent_index = (
                None if link_name == root else index_from_name[joint.parent]
            )
            index = len(bodies)
            body = RigidBody(
                index=index,
                link=links_by_name[link_name],
                joint=joint,
                parent_index=parent_index,
                qpos_dof_map=(q_counter, q_counter + joint.ndof),
                qvel_dof_map=(q_counter, q_counter + joint.ndof),
            )
            q_counter += joint.ndof
            logger.debug(
                "%s: body %d, joint %s, dofs %s",
                link_name,
                index,
                joint.name,
                body.qvel_dof_map,
            )
            if parent_index is not None:
                bodies[parent_index].children.append(index)
            bodies.append(body)
            index_from_name[link_name] = index
            stack.extend(reversed(children[link_name]))

        unreachable = [l for l in links_by_name if l not in index_from_name]
        if unreachable:
            raise RigidBodyTreeError(
                f"The links {unreachable} are not connected to the root link {root}"
            )

        tree = RigidBodyTree(name=name, bodies=bodies)
        logger.info(
            "Built the tree %s with %d bodies and %d degrees of freedom",
            name,
            len(tree),
            tree.nv,
        )
        return tree

    def validate(self) -> None:
        """Checks the invariants the dynamics algorithms rely on.

        Raises:
            RigidBodyTreeError: if the bodies do not form a valid tree
        """
        if not self.bodies:
            raise RigidBodyTreeError("The tree has no bodies")
        q_counter = 0
        for i, body in enumerate(self.bodies):
            if body.index != i:
                raise RigidBodyTreeError(
                    f"Body stored at {i} has index {body.index}", i
                )
            if i == 0:
                if body.parent_index is not None:
                    raise RigidBodyTreeError("The base body has a parent", i)
            elif body.parent_index is None:
                raise RigidBodyTreeError("The model has more than one root link", i)
            elif not 0 <= body.parent_index < i:
                raise RigidBodyTreeError(
                    f"Parent index {body.parent_index} does not precede the body", i
                )
            joint = body.joint
            if joint.ndof and not np.any(joint.axis):
                raise RigidBodyTreeError(f"The joint {joint.name} has a zero axis", i)
            for dof_map in (body.qpos_dof_map, body.qvel_dof_map):
                if dof_map != (q_counter, q_counter + joint.ndof):
                    raise RigidBodyTreeError(
                        f"Dof range {dof_map} does not match the {joint.type.value} "
                        f"joint {joint.name} starting at {q_counter}",
                        i,
                    )
            q_counter += joint.ndof

    def __iter__(self) -> Iterator[RigidBody]:
        yield from self.bodies

    def __reversed__(self) -> Iterator[RigidBody]:
        yield from reversed(self.bodies)

    def __getitem__(self, key) -> RigidBody:
        return self.bodies[key]

    def __len__(self) -> int:
        return len(self.bodies)

    @property
    def nb(self) -> int:
        return len(self.bodies)

    @property
    def num_fixed_bodies(self) -> int:
        return sum(body.is_fixed for body in self.bodies)

    @property
    def num_non_fixed_bodies(self) -> int:
        return self.nb - self.num_fixed_bodies

    def body_index_from_name(self, name: str) -> int:
        """
        Args:
            name (str): body name

        Returns:
            int: the index of the body in the topological order
        """
        try:
            return self._index_from_name[name]
        except KeyError:
            raise ValueError(f"{name} is not in the robot model.") from None

    def parent_index(self, index: int) -> Union[int, None]:
        return self.bodies[index].parent_index

    def get_body_names(self) -> List[str]:
        return [body.name for body in self.bodies]

    def get_base_name(self) -> str:
        return self.bodies[0].name

    def get_joint_names(self, include_fixed: bool = False) -> List[str]:
        """
        Args:
            include_fixed (bool, optional): list the fixed joints too. Defaults to False.

        Returns:
            List[str]: the joint names, in velocity index order
        """
        return [
            body.joint.name
            for body in self.bodies
            if include_fixed or not body.is_fixed
        ]

    def get_total_mass(self) -> float:
        """total mass of the robot

        Returns:
            float: the total mass of the robot
        """
        return sum(body.link.inertial.mass for body in self.bodies)

    def kinematics_tree_path(self, source: Union[str, int], target: Union[str, int]):
        """The bodies met going from source to target through the tree.

        Args:
            source (Union[str, int]): the starting body, name or index
            target (Union[str, int]): the final body, name or index

        Returns:
            (List[int], List[int]): the indices from source up to the common
            ancestor (excluded) and from the common ancestor (excluded) down to target
        """
        i = self.body_index_from_name(source) if isinstance(source, str) else source
        j = self.body_index_from_name(target) if isinstance(target, str) else target
        up, down = [], []
        # the deeper index cannot be an ancestor of the other one
        while i != j:
            if i > j:
                up.append(i)
                i = self.bodies[i].parent_index
            else:
                down.append(j)
                j = self.bodies[j].parent_index
        return up, down[::-1]

    def home_configuration(self) -> np.ndarray:
        """
        Returns:
            np.ndarray: the zero configuration, clipped into the joint limits
        """
        qpos = np.zeros(self.nq)
        for body in self.bodies:
            if body.joint.ndof:
                limit = body.joint.limit
                qpos[body.qpos_slice()] = np.clip(0.0, limit.lower, limit.upper)
        return qpos

    def random_configuration(self, rng: np.random.Generator = None) -> np.ndarray:
        """
        Args:
            rng (np.random.Generator, optional): the random generator. Defaults to np.random.default_rng().

        Returns:
            np.ndarray: a configuration drawn uniformly within the joint limits,
                        or within [-pi, pi] for unbounded joints
        """
        rng = np.random.default_rng() if rng is None else rng
        qpos = np.zeros(self.nq)
        for body in self.bodies:
            if body.joint.ndof:
                limit = body.joint.limit
                if limit.is_bounded():
                    low, high = limit.lower, limit.upper
                else:
                    low, high = -np.pi, np.pi
                qpos[body.qpos_slice()] = rng.uniform(low, high, body.joint.ndof)
        return qpos

    def check_configuration(self, qpos: npt.ArrayLike) -> None:
        """
        Args:
            qpos (npt.ArrayLike): the joint positions

        Raises:
            SizeMismatchError: if qpos is not of size nq
            JointLimitError: if a joint position is outside its limits
        """
        qpos = np.asarray(qpos)
        if qpos.shape != (self.nq,):
            raise SizeMismatchError("qpos", self.nq, qpos.size)
        for body in self.bodies:
            for value in qpos[body.qpos_slice()]:
                if not body.joint.limit.contains(value):
                    raise JointLimitError(body.joint.name, value, body.joint.limit)

    def table(self) -> PrettyTable:
        """
        Returns:
            PrettyTable: a table describing bodies, joints and index ranges
        """
        table = PrettyTable()
        table.title = (
            f"{self.name}: {self.num_fixed_bodies} fixed + "
            f"{self.num_non_fixed_bodies} non-fixed bodies, nq={self.nq}, nv={self.nv}"
        )
        table.field_names = [
            "Idx",
            "Body Name",
            "Joint Name",
            "Joint Type",
            "qpos Map",
            "qvel Map",
            "Parent Name",
            "Children Name(s)",
        ]
        for body in self.bodies:
            parent = (
                "None"
                if body.parent_index is None
                else self.bodies[body.parent_index].name
            )
            children = ", ".join(self.bodies[c].name for c in body.children)
            table.add_row(
                [
                    body.index,
                    body.name,
                    body.joint.name,
                    body.joint.type.value,
                    "None" if body.is_fixed else f"{body.qpos_dof_map}",
                    "None" if body.is_fixed else f"{body.qvel_dof_map}",
                    parent,
                    children or "None",
                ]
            )
        return table

    def __str__(self) -> str:
        return self.table().get_string()

    def print_table(self) -> None:
        """print the table that describes the tree"""
        print(self.table())
