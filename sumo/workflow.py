# emacs: -*- mode: python; py-indent-offset: 4; tab-width: 4; indent-tabs-mode: nil -*-
# ex: set sts=4 ts=4 sw=4 noet:
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the sumo package for the
#   copyright and license terms.
#
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""Provisioning of instances and volumes.

An instance goes through

  launching -> waiting-network -> waiting-shell -> bootstrapping
    -> applying-role -> provisioned

and ends up in `failed` if a remote step, a file transfer or the role
assignment fails.  A host which does not become reachable over SSH leaves
the workflow in waiting-shell, from where `wait_for_shell` may be retried.
"""

from . import consts
from . import recipes
from .cmd import Runner
from .dochelpers import exc_str
from .support.exceptions import CommandError
from .support.exceptions import ConfigError
from .support.exceptions import TransferError
from .support.exceptions import WorkflowError

import logging
lgr = logging.getLogger('sumo.workflow')


class State(object):
    LAUNCHING = 'launching'
    WAITING_NETWORK = 'waiting-network'
    WAITING_SHELL = 'waiting-shell'
    BOOTSTRAPPING = 'bootstrapping'
    APPLYING_ROLE = 'applying-role'
    PROVISIONED = 'provisioned'
    FAILED = 'failed'

    TERMINAL = (PROVISIONED, FAILED)


class ProvisioningWorkflow(object):
    """Drives a single instance from launch to an applied chef role.

    Parameters
    ----------
    config : ConfigManager
    provider : ProviderClient
    executor : RemoteExecutor
    poller : ReadinessPoller
    runner : Runner, optional
      Runs the local knife command assigning the role.
    instance_id, hostname : str, optional
      To pick up an instance launched before.
    """

    def __init__(self, config, provider, executor, poller, runner=None,
                 instance_id=None, hostname=None):
        self.config = config
        self.provider = provider
        self.executor = executor
        self.poller = poller
        self.runner = runner or Runner()
        self.instance_id = instance_id
        self.hostname = hostname
        self.error = None
        if hostname:
            self.state = State.WAITING_SHELL
        elif instance_id:
            self.state = State.WAITING_NETWORK
        else:
            self.state = State.LAUNCHING

    def __repr__(self):
        return "<%s %s %s>" % (self.__class__.__name__,
                               self.instance_id or self.hostname, self.state)

    def _transition(self, state):
        lgr.debug("%s: %s -> %s", self.instance_id or self.hostname,
                  self.state, state)
        self.state = state

    def _fail(self, exc):
        self.error = exc
        self._transition(State.FAILED)
        lgr.error("Provisioning of %s failed: %s",
                  self.instance_id or self.hostname, exc_str(exc))

    def _require_hostname(self, action):
        if not self.hostname:
            raise WorkflowError(
                "Cannot %s before the hostname of the instance is known"
                % action)

    #
    # Steps
    #

    def launch(self):
        """Launch the configured image, making sure access is set up first

        Returns
        -------
        str
          Id of the new instance.

        Raises
        ------
        ConfigError
          If no image is configured, before anything is done.
        """
        if self.state != State.LAUNCHING:
            raise WorkflowError("Instance %s was launched already"
                                % self.instance_id)
        ami = self.config.get('ami')
        if not ami:
            raise ConfigError("No AMI selected")

        self.provider.ensure_keypair(consts.KEYPAIR_NAME,
                                     self.config.keypair_file)
        self.provider.ensure_security_group(consts.SECURITY_GROUP_NAME)
        self.provider.authorize_ingress(consts.SECURITY_GROUP_NAME,
                                        consts.SSH_PORT)

        self.instance_id = self.provider.launch_instance(
            ami,
            size=self.config.get('instance_size'),
            zone=self.config.get('availability_zone'),
            key_name=consts.KEYPAIR_NAME,
            groups=[consts.SECURITY_GROUP_NAME],
        )
        self._transition(State.WAITING_NETWORK)
        return self.instance_id

    def wait_for_network(self, private_ip=False, cancel=None):
        """Block until the instance has a hostname (or a private IP)

        The address found is used for all further remote steps.
        """
        if private_ip:
            self.hostname = self.poller.wait_for_private_ip(
                self.instance_id, cancel=cancel)
        else:
            self.hostname = self.poller.wait_for_hostname(
                self.instance_id, cancel=cancel)
        lgr.info("Instance %s is at %s", self.instance_id, self.hostname)
        self._transition(State.WAITING_SHELL)
        return self.hostname

    def wait_for_shell(self, cancel=None):
        """Block until the host accepts SSH sessions

        Returns
        -------
        bool
          False if the host did not become reachable.  The workflow stays
          waiting for the shell then, and this may be called again.
        """
        self._require_hostname("wait for SSH")
        if not self.poller.wait_for_shell_reachable(self.hostname,
                                                    cancel=cancel):
            return False
        self._transition(State.BOOTSTRAPPING)
        return True

    def bootstrap(self):
        """Install chef and get the cookbooks onto the host

        Cookbooks come from the `cookbooks_url` repository or, if that is not
        configured, are copied from the local `cookbooks_dir`.  The
        `chef-validation` key is installed if configured.
        """
        self._require_hostname("bootstrap")
        self._transition(State.BOOTSTRAPPING)
        config = self.config
        cookbooks_url = config.get('cookbooks_url')
        try:
            self.executor.run_steps(
                self.hostname, recipes.bootstrap_steps(cookbooks_url))
            if not cookbooks_url and config.get('cookbooks_dir'):
                self.executor.transfer_file(
                    self.hostname, config.getpath('cookbooks_dir'),
                    consts.COOKBOOKS_DIR)
            if config.get('chef-validation'):
                self.executor.transfer_file(
                    self.hostname, config.getpath('chef-validation'),
                    "validation.pem")
                self.executor.run_steps(
                    self.hostname, recipes.install_validation_steps())
        except (CommandError, TransferError) as exc:
            self._fail(exc)
            raise
        self._transition(State.APPLYING_ROLE)

    def assign_role(self, role):
        """Add `role` to the run list of the instance's chef node"""
        if not self.instance_id:
            raise WorkflowError("Cannot assign a role without an instance id")
        self.runner.run(['knife', 'node', 'run_list', 'add',
                         self.instance_id, 'role[%s]' % role])
        lgr.info("Assigned role %s to %s", role, self.instance_id)

    def apply_role(self, role):
        """Register the host with chef, assign `role` and converge"""
        self._require_hostname("apply a role")
        self._transition(State.APPLYING_ROLE)
        try:
            self.executor.run_steps(self.hostname,
                                    recipes.first_converge_steps())
            self.assign_role(role)
            self.executor.run_steps(self.hostname, [recipes.converge_step()])
        except CommandError as exc:
            self._fail(exc)
            raise
        self._transition(State.PROVISIONED)

    def provision(self, role=None, private_ip=False, cancel=None):
        """Run all the remaining steps up to an applied `role`

        Without a `role`, stops once the host is bootstrapped.

        Returns
        -------
        str
          The state reached: provisioned (applying-role without a `role`),
          or waiting-shell if the host did not become reachable over SSH.
        """
        if self.state == State.LAUNCHING:
            self.launch()
        if self.state == State.WAITING_NETWORK:
            self.wait_for_network(private_ip=private_ip, cancel=cancel)
        if self.state == State.WAITING_SHELL:
            if not self.wait_for_shell(cancel=cancel):
                return self.state
        if self.state == State.BOOTSTRAPPING:
            self.bootstrap()
        if role and self.state in (State.APPLYING_ROLE, State.PROVISIONED):
            self.apply_role(role)
        return self.state


class VolumeWorkflow(object):
    """Creation, attachment, formatting and removal of volumes"""

    def __init__(self, config, provider, executor):
        self.config = config
        self.provider = provider
        self.executor = executor

    def create(self, size):
        """Create a volume of `size` GiB in the configured zone"""
        return self.provider.create_volume(
            size, self.config.require('availability_zone'))

    def attach(self, volume_id, instance_id, device):
        self.provider.attach_volume(volume_id, instance_id, device)
        lgr.info("Attached %s to %s as %s", volume_id, instance_id, device)

    def format(self, hostname, device, mountpoint):
        """Mount `device` at `mountpoint`, partitioning it if needed"""
        self.executor.run_steps(
            hostname, recipes.format_volume_steps(device, mountpoint))
        lgr.info("Mounted %s at %s:%s", device, hostname, mountpoint)

    def detach(self, volume_id, force=True):
        """Detach a volume, by default even if it is in use"""
        self.provider.detach_volume(volume_id, force=force)
        lgr.info("Detached %s", volume_id)

    def destroy(self, volume_id):
        self.provider.delete_volume(volume_id)
        lgr.info("Deleted %s", volume_id)
