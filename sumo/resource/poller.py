# ex: set sts=4 ts=4 sw=4 noet:
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the sumo package for the
#   copyright and license terms.
#
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""Waiting for freshly launched instances to become usable."""

import socket

from .. import consts
from ..support.exceptions import InvalidArgument
from ..support.exceptions import NotReadyError
from ..support.exceptions import WaitTimeoutError
from ..support.retry import RetryPolicy

import logging
lgr = logging.getLogger('sumo.resource.poller')


def check_instance_id(instance_id):
    if not instance_id or not instance_id.startswith(consts.INSTANCE_ID_PREFIX):
        raise InvalidArgument("Not an instance id: %r" % (instance_id,))


class PortClosedError(NotReadyError):
    """The SSH port does not accept connections yet"""
    pass


class ShellRefusedError(NotReadyError):
    """The SSH port is open, but running a command failed"""
    pass


class ReadinessPoller(object):
    """Polls the provider and the hosts until instances are ready for use.

    Parameters
    ----------
    provider : ProviderClient
      Queried for the instance list.  Never a cached inventory, since waits
      must observe fresh state.
    executor : RemoteExecutor
      Used to run an authenticated no-op on the host.
    network_policy : RetryPolicy, optional
      Paces the waits for hostname and private IP.  One second apart and
      unbounded by default.
    port_policy : RetryPolicy, optional
      Paces the connection attempts to the SSH port.  Unbounded by default.
    shell_attempts : int
      Number of authenticated commands to try before giving up.
    shell_retry_delay : float
      Seconds to wait after a failed authenticated command.
    connect_timeout : float
      Timeout of a single TCP connection attempt.
    """

    def __init__(self, provider, executor, network_policy=None,
                 port_policy=None, shell_attempts=10, shell_retry_delay=5,
                 connect_timeout=4, port=consts.SSH_PORT):
        self.provider = provider
        self.executor = executor
        self.network_policy = network_policy or RetryPolicy(interval=1)
        self.port_policy = port_policy or RetryPolicy(interval=1)
        self.shell_attempts = shell_attempts
        self.shell_retry_delay = shell_retry_delay
        self.connect_timeout = connect_timeout
        self.port = port

    @classmethod
    def from_config(cls, config, provider, executor):
        timeout = config.get('wait_timeout')
        return cls(
            provider,
            executor,
            network_policy=RetryPolicy(
                interval=config['hostname_poll_interval'],
                max_duration=timeout),
            port_policy=RetryPolicy(
                interval=config['port_poll_interval'],
                max_duration=timeout),
            shell_attempts=config['shell_attempts'],
            shell_retry_delay=config['shell_retry_delay'],
            connect_timeout=config['shell_connect_timeout'],
        )

    def instance_info(self, instance_id):
        """Return freshly fetched Instance `instance_id`, or None"""
        for instance in self.provider.list_instances():
            if instance.instance_id == instance_id:
                return instance
        return None

    def _wait_for_field(self, instance_id, field, cancel=None):
        check_instance_id(instance_id)

        def fetch():
            instance = self.instance_info(instance_id)
            value = getattr(instance, field) if instance else None
            if not value:
                lgr.log(5, "No %s for %s yet", field, instance_id)
                raise NotReadyError(instance_id)
            return value

        try:
            value = self.network_policy.call(fetch, cancel=cancel)
        except NotReadyError:
            raise WaitTimeoutError(
                "Instance %s did not get a %s" % (instance_id, field))
        lgr.debug("Instance %s has %s %s", instance_id, field, value)
        return value

    def wait_for_hostname(self, instance_id, cancel=None):
        """Block until instance `instance_id` has a public DNS name

        Raises
        ------
        InvalidArgument
          If `instance_id` does not look like an instance id.
        WaitTimeoutError
          Only if the network policy is bounded.
        """
        return self._wait_for_field(instance_id, 'hostname', cancel)

    def wait_for_private_ip(self, instance_id, cancel=None):
        """Block until instance `instance_id` has a private IP address"""
        return self._wait_for_field(instance_id, 'private_ip', cancel)

    def port_open(self, hostname):
        """Whether a TCP connection to the SSH port of `hostname` succeeds

        Refused or unreachable connections, timeouts and resolution failures
        are all reported as False.
        """
        try:
            sock = socket.create_connection((hostname, self.port),
                                            timeout=self.connect_timeout)
        except (socket.gaierror, socket.timeout, OSError) as exc:
            lgr.log(5, "%s:%s not reachable: %s", hostname, self.port, exc)
            return False
        sock.close()
        return True

    def wait_for_shell_reachable(self, hostname, cancel=None):
        """Block until commands can be run on `hostname` over SSH

        The SSH port is polled until it accepts connections; attempts which fail
        do not count against `shell_attempts`.  Once it does, an authenticated
        no-op is tried.  A failed no-op is followed by `shell_retry_delay`
        alone, a closed port by the port policy's delay.

        Returns
        -------
        bool
          True as soon as the no-op succeeded.  False once it failed
          `shell_attempts` times, or the port policy ran out.
        """
        if not hostname:
            raise InvalidArgument("No hostname given")
        failures = []
        port_wait = self.port_policy.wait()

        def attempt():
            if not self.port_open(hostname):
                raise PortClosedError(hostname)
            if not self.executor.check(hostname):
                failures.append(hostname)
                lgr.debug("SSH to %s failed (%d/%d)",
                          hostname, len(failures), self.shell_attempts)
                raise ShellRefusedError(hostname)

        def budget_spent(retry_state):
            return len(failures) >= self.shell_attempts

        def pace(retry_state):
            if isinstance(retry_state.outcome.exception(), ShellRefusedError):
                return self.shell_retry_delay
            return port_wait(retry_state)

        try:
            self.port_policy.call(attempt, cancel=cancel, stop=budget_spent,
                                  wait=pace)
        except NotReadyError:
            if len(failures) >= self.shell_attempts:
                lgr.warning("Giving up on SSH to %s after %d attempts",
                            hostname, len(failures))
            else:
                lgr.warning("Timed out waiting for SSH on %s", hostname)
            return False
        lgr.info("%s is reachable over SSH", hostname)
        return True
