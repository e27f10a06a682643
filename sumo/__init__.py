# emacs: -*- mode: python; py-indent-offset: 4; tab-width: 4; indent-tabs-mode: nil -*-
# ex: set sts=4 ts=4 sw=4 noet:
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the sumo package for the
#   copyright and license terms.
#
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""sumo - launch EC2 instances and volumes, and converge them with chef

Instances are started from a configured image, waited upon until they are
reachable over SSH, bootstrapped with the chef client and assigned a role.
"""

from .log import lgr

import atexit
atexit.register(lgr.log, 5, "Exiting")

from .version import __version__

lgr.log(5, "Done importing main __init__")
