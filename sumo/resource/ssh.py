# ex: set sts=4 ts=4 sw=4 noet:
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the sumo package for the
#   copyright and license terms.
#
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""Execution of command steps on, and copying of files to, remote hosts."""

import os.path as op
import threading

import attr
import invoke
import paramiko
from fabric import Connection
from scp import SCPClient, SCPException
from ..log import LoggerHelper

import logging
lgr = logging.getLogger('sumo.resource.ssh')
# Add Paramiko logging for log levels below DEBUG
if lgr.getEffectiveLevel() < logging.DEBUG:
    LoggerHelper("paramiko").get_initialized_logger()

from .. import consts
from ..dochelpers import exc_str
from ..support.exceptions import ExecError
from ..support.exceptions import InvalidArgument
from ..support.exceptions import TransferError
from ..utils import assure_dir
from ..utils import attrib
from ..utils import expandpath

# Silence CryptographyDeprecationWarning's.
import warnings
warnings.filterwarnings(action="ignore", module=".*paramiko.*")

# known_hosts is shared by all executors of the process
_known_hosts_lock = threading.Lock()

# Failures of the transport itself, as opposed to a command exiting non-zero
TRANSPORT_ERRORS = (paramiko.SSHException, OSError, EOFError)


@attr.s(frozen=True)
class Step(object):
    """A single remote command

    If `unless` is given, it is a shell test run first; when it succeeds the
    step is considered satisfied already and `command` is not run.
    """

    command = attrib(default=attr.NOTHING)
    unless = attrib(doc="Shell test marking the step as already done")
    description = attrib(doc="Human readable name of the step")

    def __str__(self):
        return self.description or self.command


def as_steps(commands):
    """Return a list of Steps for `commands` (Steps or plain strings)"""
    return [c if isinstance(c, Step) else Step(c) for c in commands]


def _check_host(host):
    if not host:
        raise InvalidArgument("No host given: %r" % (host,))


class RemoteExecutor(object):
    """Runs command steps on remote hosts over SSH.

    The output of all commands is appended to `logfile`.  Before the first
    batch of commands is run on a host, its key is registered in the local
    known_hosts, and the configured deploy key and known_hosts file are
    copied to it.

    Parameters
    ----------
    user : str
      Login on the remote hosts.
    key_filename : str
      Private key to authenticate with.
    logfile : str
      File to append the output of remote commands to.
    deploy_key : str, optional
      Local file to install as ~/.ssh/id_rsa on the hosts.
    known_hosts : str, optional
      Local file to install as ~/.ssh/known_hosts on the hosts.
    known_hosts_file : str
      The local known_hosts to register host keys in.
    """

    def __init__(self, user, key_filename, logfile, deploy_key=None,
                 known_hosts=None, known_hosts_file='~/.ssh/known_hosts',
                 port=consts.SSH_PORT, connect_timeout=None):
        self.user = user
        self.key_filename = key_filename
        self.logfile = expandpath(logfile)
        self.deploy_key = deploy_key
        self.known_hosts = known_hosts
        self.known_hosts_file = expandpath(known_hosts_file)
        self.port = port
        self.connect_timeout = connect_timeout
        self._connections = {}
        self._trusted = set()

    @classmethod
    def from_config(cls, config):
        return cls(
            user=config['user'],
            key_filename=config.keypair_file,
            logfile=config.logfile,
            deploy_key=config.getpath('deploy_key'),
            known_hosts=config.getpath('known_hosts'),
            connect_timeout=config.get('shell_connect_timeout'),
        )

    def _connect(self, host):
        if host not in self._connections:
            lgr.debug("SSH connecting to %s@%s:%s, authenticating with %s",
                      self.user, host, self.port, self.key_filename)
            self._connections[host] = Connection(
                host,
                user=self.user,
                port=self.port,
                connect_timeout=self.connect_timeout,
                connect_kwargs={'key_filename': [self.key_filename]},
            )
        return self._connections[host]

    def close(self):
        for connection in self._connections.values():
            connection.close()
        self._connections = {}

    def _execute(self, connection, command):
        """Run `command` and return (exit code, stdout, stderr)"""
        try:
            result = connection.run(command, hide=True)
        except invoke.exceptions.UnexpectedExit as e:
            result = e.result
        return result.return_code, result.stdout, result.stderr

    #
    # Trust
    #

    def _fetch_host_key(self, host):
        transport = paramiko.Transport((host, self.port))
        try:
            transport.start_client(timeout=self.connect_timeout)
            return transport.get_remote_server_key()
        finally:
            transport.close()

    def _is_known(self, host):
        # callers hold _known_hosts_lock
        host_keys = paramiko.HostKeys()
        if op.exists(self.known_hosts_file):
            host_keys.load(self.known_hosts_file)
        return host_keys.lookup(host) is not None

    def register_host_key(self, host):
        """Add the key of `host` to the local known_hosts

        The key is fetched without holding the known_hosts lock, so a slow
        host does not hold up the registration of others.

        Returns
        -------
        bool
          False if the host was known already.
        """
        _check_host(host)
        with _known_hosts_lock:
            if self._is_known(host):
                return False
        key = self._fetch_host_key(host)
        with _known_hosts_lock:
            # registered by another executor in the meantime
            if self._is_known(host):
                return False
            assure_dir(op.dirname(self.known_hosts_file))
            with open(self.known_hosts_file, 'a') as f:
                f.write('%s %s %s\n' % (host, key.get_name(), key.get_base64()))
        lgr.info("Added %s key of %s to %s",
                 key.get_name(), host, self.known_hosts_file)
        return True

    def trust_host(self, host):
        """Establish trust with `host` before running commands on it

        Done once per host in this executor, but safe to repeat.
        """
        if host in self._trusted:
            return
        try:
            self.register_host_key(host)
        except TRANSPORT_ERRORS as exc:
            raise ExecError(host, "register host key", logfile=self.logfile,
                            stderr=exc_str(exc))
        if self.deploy_key:
            self.transfer_file(host, self.deploy_key, ".ssh/id_rsa")
        if self.known_hosts:
            self.transfer_file(host, self.known_hosts, ".ssh/known_hosts")
        self._trusted.add(host)

    #
    # Commands
    #

    def run_steps(self, host, steps):
        """Run `steps` on `host` one after another

        Execution stops at the first failing step.

        Returns
        -------
        list of Step
          Steps which were executed, i.e. not skipped by their `unless` test.

        Raises
        ------
        ExecError
          For the first step which failed.
        """
        _check_host(host)
        steps = as_steps(steps)
        self.trust_host(host)
        connection = self._connect(host)
        assure_dir(op.dirname(self.logfile) or op.curdir)
        executed = []
        with open(self.logfile, 'a') as log:
            for step in steps:
                try:
                    if step.unless:
                        code, _, _ = self._execute(connection, step.unless)
                        if code == 0:
                            lgr.debug("Skipping satisfied step '%s' on %s",
                                      step, host)
                            log.write("# %s: skipped %s\n" % (host, step))
                            continue
                    lgr.debug("Running '%s' on %s", step, host)
                    log.write("# %s: %s\n" % (host, step.command))
                    code, out, err = self._execute(connection, step.command)
                except TRANSPORT_ERRORS as exc:
                    log.write("%s\n" % exc_str(exc))
                    raise ExecError(host, step, logfile=self.logfile,
                                    stderr=exc_str(exc))
                log.write(out)
                log.write(err)
                log.flush()
                if code:
                    lgr.error("'%s' failed on %s with exit code %s",
                              step, host, code)
                    raise ExecError(host, step, code=code,
                                    logfile=self.logfile,
                                    stdout=out, stderr=err)
                executed.append(step)
        return executed

    def run_commands(self, host, commands):
        """Run `commands` on `host`, each only if all previous ones succeeded
        """
        return self.run_steps(host, commands)

    def check(self, host):
        """Whether a no-op command can be run on `host`"""
        _check_host(host)
        try:
            code, _, _ = self._execute(self._connect(host), 'true')
        except TRANSPORT_ERRORS as exc:
            lgr.debug("No SSH session with %s: %s", host, exc_str(exc))
            connection = self._connections.pop(host, None)
            if connection is not None:
                connection.close()
            return False
        return code == 0

    def read_file(self, host, path):
        """Return the content of (root owned) `path` on `host`"""
        _check_host(host)
        command = 'sudo cat %s' % path
        try:
            code, out, err = self._execute(self._connect(host), command)
        except TRANSPORT_ERRORS as exc:
            raise ExecError(host, command, logfile=self.logfile,
                            stderr=exc_str(exc))
        if code:
            raise ExecError(host, command, code=code, stdout=out, stderr=err)
        return out

    #
    # Files
    #

    def transfer_file(self, host, local_path, remote_path="."):
        """Copy `local_path` (recursively) to `remote_path` on `host`

        Raises
        ------
        TransferError
        InvalidArgument
          If `host` is empty.
        """
        _check_host(host)
        path = expandpath(local_path)
        if not op.exists(path):
            raise TransferError(local_path, "no such file or directory")
        lgr.debug("Copying %s to %s:%s", path, host, remote_path)
        try:
            connection = self._connect(host)
            connection.open()
            with SCPClient(connection.client.get_transport()) as scp:
                scp.put(path, remote_path=remote_path, recursive=True)
        except (SCPException,) + TRANSPORT_ERRORS as exc:
            raise TransferError(local_path, exc_str(exc))
