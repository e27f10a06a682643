# emacs: -*- mode: python; py-indent-offset: 4; tab-width: 4; indent-tabs-mode: nil -*-
# ex: set sts=4 ts=4 sw=4 noet:
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the sumo package for the
#   copyright and license terms.
#
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""Facility for managing compute resources: instances, volumes and the
SSH access to them.

"""

__docformat__ = 'restructuredtext'

from .base import Instance, Volume
from .aws_ec2 import ProviderClient
from .ssh import RemoteExecutor, Step
from .poller import ReadinessPoller
from .inventory import InventoryCache
