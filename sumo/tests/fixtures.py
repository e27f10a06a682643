# ex: set sts=4 ts=4 sw=4 noet:
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the sumo package for the
#   copyright and license terms.
#
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""Fixtures and in-memory stand-ins for the provider and the SSH executor"""

import os.path as op

import pytest
import yaml

from sumo.config import ConfigManager
from sumo.resource.base import Instance, Volume
from sumo.resource.ssh import as_steps
from sumo.support.exceptions import ConfigError
from sumo.support.exceptions import ExecError
from sumo.support.exceptions import TransferError


class FakeProvider(object):
    """Keeps instances and volumes in memory, recording every call"""

    def __init__(self, instances=None, volumes=None):
        self.instances = list(instances or [])
        self.volumes = list(volumes or [])
        self.calls = []
        self.groups = set()
        self.rules = set()
        self._counter = 0

    def _next_id(self, prefix):
        self._counter += 1
        return '%s%08x' % (prefix, self._counter)

    def launch_instance(self, image, size=None, zone=None, key_name=None,
                        groups=()):
        if not image:
            raise ConfigError("No AMI selected")
        self.calls.append(('launch_instance', image, size, zone, key_name,
                           list(groups)))
        instance_id = self._next_id('i-')
        self.instances.append(Instance(instance_id, status='pending'))
        return instance_id

    def list_instances(self):
        self.calls.append(('list_instances',))
        return list(self.instances)

    def list_volumes(self):
        self.calls.append(('list_volumes',))
        return list(self.volumes)

    def terminate_instance(self, instance_id):
        self.calls.append(('terminate_instance', instance_id))

    def get_console_output(self, instance_id):
        return "console of %s" % instance_id

    def create_volume(self, size, zone):
        self.calls.append(('create_volume', size, zone))
        volume_id = self._next_id('vol-')
        self.volumes.append(Volume(volume_id, size=size, status='available'))
        return volume_id

    def attach_volume(self, volume_id, instance_id, device):
        self.calls.append(('attach_volume', volume_id, instance_id, device))

    def detach_volume(self, volume_id, force=True):
        self.calls.append(('detach_volume', volume_id, force))

    def delete_volume(self, volume_id):
        self.calls.append(('delete_volume', volume_id))
        self.volumes = [
            Volume(v.volume_id, size=v.size, status='deleting')
            if v.volume_id == volume_id else v
            for v in self.volumes]

    def ensure_keypair(self, name, key_filename):
        self.calls.append(('ensure_keypair', name, key_filename))
        return 'KEY'

    def ensure_security_group(self, name, description=None):
        self.calls.append(('ensure_security_group', name))
        self.groups.add(name)

    def authorize_ingress(self, name, port, cidr='0.0.0.0/0', protocol='tcp'):
        self.calls.append(('authorize_ingress', name, port))
        self.rules.add((name, port, cidr))


class FakeExecutor(object):
    """Records commands instead of running them.

    Parameters
    ----------
    fail_on : str, optional
      Running a command containing this string fails with ExecError.
    checks : list of bool, optional
      Results of consecutive `check` calls.  True once exhausted.
    satisfied : iterable of str, optional
      `unless` tests which succeed, i.e. steps to skip.
    """

    logfile = '/tmp/sumo-test.log'

    def __init__(self, fail_on=None, checks=None, satisfied=(),
                 files=None):
        self.fail_on = fail_on
        self.checks = list(checks or [])
        self.satisfied = set(satisfied)
        self.files = files or {}
        self.commands = []
        self.transfers = []
        self.checked = []

    def run_steps(self, host, steps):
        executed = []
        for step in as_steps(steps):
            if step.unless and step.unless in self.satisfied:
                continue
            self.commands.append((host, step.command))
            if self.fail_on and self.fail_on in step.command:
                raise ExecError(host, step, code=1, logfile=self.logfile)
            executed.append(step)
        return executed

    def run_commands(self, host, commands):
        return self.run_steps(host, commands)

    def check(self, host):
        self.checked.append(host)
        return self.checks.pop(0) if self.checks else True

    def transfer_file(self, host, local_path, remote_path="."):
        if self.fail_on and self.fail_on in local_path:
            raise TransferError(local_path)
        self.transfers.append((host, local_path, remote_path))

    def read_file(self, host, path):
        self.commands.append((host, 'sudo cat %s' % path))
        return self.files[path]


@pytest.fixture
def state_dir(tmpdir):
    return str(tmpdir.mkdir('sumo'))


@pytest.fixture
def config(state_dir):
    """ConfigManager reading a config.yml with credentials and no delays"""
    with open(op.join(state_dir, 'config.yml'), 'w') as f:
        yaml.safe_dump({
            'access_id': 'my-access-id',
            'access_secret': 'my-access-secret',
            'availability_zone': 'us-west-2b',
            'hostname_poll_interval': 0,
            'port_poll_interval': 0,
            'shell_retry_delay': 0,
        }, f)
    return ConfigManager(state_dir=state_dir)


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def executor():
    return FakeExecutor()
