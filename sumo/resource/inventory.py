# ex: set sts=4 ts=4 sw=4 noet:
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the sumo package for the
#   copyright and license terms.
#
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""Local snapshot of the instances and volumes known to the provider."""

from .. import consts

import logging
lgr = logging.getLogger('sumo.resource.inventory')


def _normalize(ref):
    return ref.strip().lower()


def _strip_prefix(id_, prefix):
    return id_[len(prefix):] if id_.startswith(prefix) else id_


class InventoryCache(object):
    """Snapshot of instances and volumes.

    Nothing is fetched until the first `refresh` (or first access), and the
    snapshot is never invalidated behind the caller's back: it may be stale.
    Anything which must observe the current state should use `refresh` or
    query the provider directly.

    Parameters
    ----------
    provider : ProviderClient
    """

    def __init__(self, provider):
        self.provider = provider
        self._instances = None
        self._volumes = None

    def refresh(self):
        """Re-fetch both instances and volumes"""
        self.refresh_instances()
        self.refresh_volumes()

    def refresh_instances(self):
        self._instances = self.provider.list_instances()
        lgr.debug("Fetched %d instances", len(self._instances))
        return self._instances

    def refresh_volumes(self):
        self._volumes = self.provider.list_volumes()
        lgr.debug("Fetched %d volumes", len(self._volumes))
        return self._volumes

    def invalidate(self):
        self._instances = None
        self._volumes = None

    @property
    def populated(self):
        return self._instances is not None

    #
    # Instances
    #

    @property
    def instances(self):
        if self._instances is None:
            self.refresh_instances()
        return self._instances

    def find(self, ref):
        """Find an instance by id, id without 'i-', or hostname

        The reference is stripped and lower-cased first.

        Returns
        -------
        Instance or None
        """
        if not ref:
            return None
        ref = _normalize(ref)
        for instance in self.instances:
            if instance.hostname == ref \
                    or instance.instance_id == ref \
                    or _strip_prefix(instance.instance_id,
                                     consts.INSTANCE_ID_PREFIX) == ref:
                return instance
        return None

    def list_by_status(self, status):
        return [i for i in self.instances if i.status == status]

    def running(self):
        return self.list_by_status('running')

    def pending(self):
        return self.list_by_status('pending')

    #
    # Volumes
    #

    @property
    def volumes(self):
        if self._volumes is None:
            self.refresh_volumes()
        return self._volumes

    def find_volume(self, ref):
        """Find a volume by id or id without 'vol-'

        Returns
        -------
        Volume or None
        """
        if not ref:
            return None
        ref = _normalize(ref)
        for volume in self.volumes:
            if volume.volume_id == ref \
                    or _strip_prefix(volume.volume_id,
                                     consts.VOLUME_ID_PREFIX) == ref:
                return volume
        return None

    def available_volumes(self):
        return [v for v in self.volumes if v.status == 'available']

    def attached_volumes(self):
        return [v for v in self.volumes if v.status == 'in-use']

    def nondestroyed_volumes(self):
        return [v for v in self.volumes if v.status != 'deleting']

    def volumes_of(self, instance_id):
        """Volumes attached to `instance_id`"""
        return [v for v in self.volumes if v.instance_id == instance_id]
