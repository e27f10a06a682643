# emacs: -*- mode: python; py-indent-offset: 4; tab-width: 4; indent-tabs-mode: nil -*-
# ex: set sts=4 ts=4 sw=4 noet:
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the sumo package for the
#   copyright and license terms.
#
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""Single entry point tying configuration, provider and SSH access together.
"""

from .config import ConfigManager
from .resource import InventoryCache
from .resource import ProviderClient
from .resource import ReadinessPoller
from .resource import RemoteExecutor
from .support.exceptions import ResourceNotFoundError
from .workflow import ProvisioningWorkflow
from .workflow import VolumeWorkflow
from . import consts

import logging
lgr = logging.getLogger('sumo.manager')


class Manager(object):
    """Owns the collaborators of one sumo session.

    Typically a sumo process has a single Manager.  It holds the inventory
    snapshot, so all lookups through it share (and may see stale) data until
    `inventory.refresh()` is called.

    Parameters
    ----------
    config : ConfigManager, optional
    provider, executor, poller : optional
      Created from `config` if not given.
    """

    def __init__(self, config=None, provider=None, executor=None,
                 poller=None):
        self.config = config or ConfigManager()
        self.provider = provider or ProviderClient.from_config(self.config)
        self.executor = executor or RemoteExecutor.from_config(self.config)
        self.poller = poller or ReadinessPoller.from_config(
            self.config, self.provider, self.executor)
        self.inventory = InventoryCache(self.provider)
        self.volumes = VolumeWorkflow(self.config, self.provider,
                                      self.executor)
        self._resources = {}

    def workflow(self, instance_id=None, hostname=None):
        """Return a ProvisioningWorkflow, for a new or an existing instance"""
        return ProvisioningWorkflow(
            self.config, self.provider, self.executor, self.poller,
            instance_id=instance_id, hostname=hostname)

    def get_instance(self, ref):
        """Find an instance by id or hostname, raising if there is none"""
        instance = self.inventory.find(ref)
        if instance is None:
            raise ResourceNotFoundError("No instance matches %r" % ref)
        return instance

    def get_volume(self, ref):
        volume = self.inventory.find_volume(ref)
        if volume is None:
            raise ResourceNotFoundError("No volume matches %r" % ref)
        return volume

    def workflow_for(self, ref):
        """Return a ProvisioningWorkflow picking up instance `ref`"""
        instance = self.get_instance(ref)
        return self.workflow(instance_id=instance.instance_id,
                             hostname=instance.hostname)

    def terminate(self, instance_id):
        self.provider.terminate_instance(instance_id)

    def console_output(self, instance_id):
        return self.provider.get_console_output(instance_id)

    def resources(self, hostname):
        """Return the services listed in /root/resources on `hostname`

        Entries mentioning localhost refer to `hostname`.  Fetched once per
        hostname.
        """
        if hostname not in self._resources:
            raw = self.executor.read_file(hostname, consts.RESOURCES_FILE)
            self._resources[hostname] = [
                line.replace('localhost', hostname)
                for line in raw.splitlines()
            ]
        return self._resources[hostname]
