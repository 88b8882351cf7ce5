# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.
# This software may be modified and distributed under the terms of the
# GNU Lesser General Public License v2.1 or any later version.

import urdf_parser_py.urdf

from rbdtree.model.abc_factories import Inertia, Inertial, Link, Pose


class StdLink(Link):
    """Link built from a urdf_parser_py link"""

    def __init__(self, link: urdf_parser_py.urdf.Link):
        super().__init__(name=link.name, inertial=self._set_inertia(link))

    @staticmethod
    def _set_inertia(link: urdf_parser_py.urdf.Link) -> Inertial:
        """
        Args:
            link (urdf_parser_py.urdf.Link): the urdf link

        Returns:
            Inertial: set the inertia, zero if the link has none
        """
        inertial = link.inertial
        if inertial is None:
            return Inertial.zero()

        inertia = (
            Inertia.zero()
            if inertial.inertia is None
            else Inertia.build(
                ixx=inertial.inertia.ixx,
                ixy=inertial.inertia.ixy,
                ixz=inertial.inertia.ixz,
                iyy=inertial.inertia.iyy,
                iyz=inertial.inertia.iyz,
                izz=inertial.inertia.izz,
            )
        )
        origin = inertial.origin
        pose = (
            Pose.zero()
            if origin is None
            else Pose.build(origin.xyz or [0, 0, 0], origin.rpy or [0, 0, 0])
        )
        return Inertial(mass=float(inertial.mass or 0.0), inertia=inertia, origin=pose)
