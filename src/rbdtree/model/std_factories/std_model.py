# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.
# This software may be modified and distributed under the terms of the
# GNU Lesser General Public License v2.1 or any later version.

import logging
import pathlib
import xml.etree.ElementTree as ET
from typing import List, Union

import urdf_parser_py.urdf

from rbdtree.model.abc_factories import ModelFactory
from rbdtree.model.std_factories.std_joint import StdJoint
from rbdtree.model.std_factories.std_link import StdLink

logger = logging.getLogger(__name__)


def urdf_remove_sensors_tags(xml_string: str) -> bytes:
    # Parse the XML string
    root = ET.fromstring(xml_string)

    # Find and remove all tags named "sensor" that are child of
    # root node (i.e. robot)
    for sensors_tag in root.findall("sensor"):
        logger.debug("Removing the sensor tag %s", sensors_tag.get("name"))
        root.remove(sensors_tag)

    # Convert the modified XML back to a string
    return ET.tostring(root)


def get_xml_string(path: Union[str, pathlib.Path]) -> str:
    """
    Args:
        path (Union[str, pathlib.Path]): a path to a urdf file, or the urdf itself

    Raises:
        FileNotFoundError: if a path is given and the file does not exist
        ValueError: if the string is neither a path nor a urdf

    Returns:
        str: the urdf content
    """
    if isinstance(path, str) and path.lstrip().startswith("<"):
        root = ET.fromstring(path)
        if root.tag != "robot" and root.find(".//robot") is None:
            raise ValueError(
                f"Invalid urdf string: {path}. It is neither a path nor a urdf string"
            )
        return path

    path = pathlib.Path(path)
    if not path.is_file():
        raise FileNotFoundError(path)
    logger.info("Loading the model from %s", path)
    with path.open() as xml_file:
        return xml_file.read()


class URDFModelFactory(ModelFactory):
    """This factory generates robot elements from urdf_parser_py

    Args:
        ModelFactory: the Model factory
    """

    def __init__(self, path: Union[str, pathlib.Path]):
        xml_string = get_xml_string(path)

        # urdf_parser_py does not parse the sensor elements and warns every
        # time it meets one, so they are removed before hand
        xml_string_without_sensors_tags = urdf_remove_sensors_tags(xml_string)
        self.urdf_desc = urdf_parser_py.urdf.URDF.from_xml_string(
            xml_string_without_sensors_tags
        )
        self.name = self.urdf_desc.name

    def get_joints(self) -> List[StdJoint]:
        """
        Returns:
            List[StdJoint]: build the list of the joints
        """
        return [StdJoint(j) for j in self.urdf_desc.joints]

    def get_links(self) -> List[StdLink]:
        """
        Returns:
            List[StdLink]: build the list of the links. Links without inertial
            become massless bodies.
        """
        return [StdLink(l) for l in self.urdf_desc.links]
