from .abc_factories import Inertia, Inertial, Joint, Limits, Link, ModelFactory, Pose
from .tree import RigidBody, RigidBodyTree
from .std_factories import StdJoint, StdLink, URDFModelFactory
