from .std_joint import StdJoint
from .std_link import StdLink
from .std_model import URDFModelFactory
