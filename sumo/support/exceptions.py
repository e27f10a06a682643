# emacs: -*- mode: python; py-indent-offset: 4; tab-width: 4; indent-tabs-mode: nil -*-
# ex: set sts=4 ts=4 sw=4 noet:
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the sumo package for the
#   copyright and license terms.
#
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
""" sumo exceptions
"""


class CommandError(RuntimeError):
    """Thrown if a command call fails.
    """

    def __init__(self, cmd="", msg="", code=None, stdout="", stderr=""):
        RuntimeError.__init__(self, msg)
        self.cmd = cmd
        self.msg = msg
        self.code = code
        self.stdout = stdout
        self.stderr = stderr

    def __str__(self):
        to_str = "%s: " % self.__class__.__name__
        if self.cmd:
            to_str += "command '%s'" % (self.cmd,)
        if self.code:
            to_str += " failed with exitcode %d" % self.code
        to_str += "\n%s" % self.msg
        return to_str


class ExecError(CommandError):
    """Thrown if a step of a remote command batch fails.

    Carries the host, the failing step and the log file with the combined
    output of the batch.
    """

    def __init__(self, host, step=None, code=None, logfile=None,
                 stdout="", stderr=""):
        self.host = host
        self.step = step
        self.logfile = logfile
        msg = "failed on %s" % host
        if logfile:
            msg += "\nCheck %s for the output" % logfile
        CommandError.__init__(
            self,
            cmd=getattr(step, 'command', step) or "",
            msg=msg, code=code, stdout=stdout, stderr=stderr)


class TransferError(RuntimeError):
    """Thrown if a file could not be copied to a remote host"""

    def __init__(self, path, msg=""):
        RuntimeError.__init__(self, path)
        self.path = path
        self.msg = msg

    def __str__(self):
        to_str = "failed to transfer %s" % self.path
        if self.msg:
            to_str += ": %s" % self.msg
        return to_str


class InvalidArgument(ValueError):
    """Thrown for malformed identifiers, e.g. an instance id without 'i-'"""
    pass


class ConfigError(RuntimeError):
    """To be raised when configuration is missing or invalid"""
    pass


class MissingConfigFileError(ConfigError):
    """To be raised when missing the configuration file"""
    pass


class ProviderError(RuntimeError):
    """A call to the cloud control plane failed.

    Parameters
    ----------
    operation : str
      Name of the API operation, e.g. 'run_instances'.
    code : str, optional
      Error code reported by the provider.
    msg : str, optional
    """

    def __init__(self, operation, code=None, msg=""):
        RuntimeError.__init__(self, msg)
        self.operation = operation
        self.code = code
        self.msg = msg

    def __str__(self):
        to_str = "%s failed" % self.operation
        if self.code:
            to_str += " (%s)" % self.code
        if self.msg:
            to_str += ": %s" % self.msg
        return to_str


class ResourceNotFoundError(RuntimeError):
    """To be raised whenever specified instance or volume was not found"""
    pass


class WorkflowError(RuntimeError):
    """To be raised when a provisioning step is requested out of order"""
    pass


#
# Waiting
#

class NotReadyError(RuntimeError):
    """A polled resource is not there yet, try again"""
    pass


class WaitTimeoutError(RuntimeError):
    """A bounded wait ran out of attempts or time"""
    pass


class WaitCancelledError(RuntimeError):
    """A wait was cancelled through its cancel token"""
    pass
