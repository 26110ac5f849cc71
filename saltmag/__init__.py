# Licensed under a 3-clause BSD style license - see LICENSE.rst
"""
saltmag: synthetic photometry and model errors for the SALT2 supernova model
"""

from astropy.config import ConfigItem, ConfigNamespace

__version__ = "0.1.dev0"


# Create default configurations.
class _Conf(ConfigNamespace):
    """Configuration parameters for saltmag."""
    model_dir = ConfigItem(
        None,
        "Root directory of private SALT2 model versions. If set, a model "
        "version 'V' is read from '<model_dir>/V' instead of the default "
        "location. Example: model_dir = /home/user/models/SALT2",
        cfgtype='string(default=None)')
    sndata_root = ConfigItem(
        None,
        "Root of the public model area. If None, the SNDATA_ROOT "
        "environment variable is used and model version 'V' is read from "
        "'<root>/models/SALT2/V'.",
        cfgtype='string(default=None)')

# Create an instance of the class we just defined.
conf = _Conf()

# clean up namespace
del ConfigItem, ConfigNamespace

# import all the things into the top-level namespace
from .filters import *
from .colorlaw import *
from .templates import *
from .errormaps import *
from .latetime import *
from .integrate import *
from .errmodel import *
from .io import *
from .model import *
