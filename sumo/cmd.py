# emacs: -*- mode: python; py-indent-offset: 4; tab-width: 4; indent-tabs-mode: nil -*-
# ex: set sts=4 ts=4 sw=4 noet:
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the sumo package for the
#   copyright and license terms.
#
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""Wrapper for local command calls
"""

import logging
import shlex
import subprocess

from .support.exceptions import CommandError

lgr = logging.getLogger('sumo.cmd')


class Runner(object):
    """Provides a wrapper for calling functions and commands.

    Parameters
    ----------
    cwd : str, optional
      Directory to run commands in.
    env : dict, optional
      Environment for the commands.  Inherited if not provided.
    """

    __slots__ = ['cwd', 'env']

    def __init__(self, cwd=None, env=None):
        self.cwd = cwd
        self.env = env

    def __call__(self, cmd, *args, **kwargs):
        """Convenience shortcut for `run`"""
        return self.run(cmd, *args, **kwargs)

    def run(self, cmd, expect_stderr=False, expect_fail=False, cwd=None):
        """Runs the command `cmd` and returns (stdout, stderr)

        Parameters
        ----------
        cmd : list or str
          A list of arguments, or a string which is split with shlex.
        expect_stderr : bool
          Whether output to stderr is normal and should only be logged at
          DEBUG level rather than as a warning.
        expect_fail : bool
          Whether a failure is anticipated, in which case it is logged at
          DEBUG level only.  CommandError is raised regardless.

        Raises
        ------
        CommandError
          If the command exits with non-zero status or cannot be started.
        """
        if isinstance(cmd, str):
            cmd = shlex.split(cmd)
        lgr.debug("Running: %s", cmd)

        try:
            proc = subprocess.run(
                cmd,
                cwd=cwd or self.cwd,
                env=self.env,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                universal_newlines=True)
        except OSError as exc:
            raise CommandError(str(cmd), "Failed to start: %s" % exc)

        if proc.stderr:
            log = lgr.debug if expect_stderr else lgr.warning
            log("stderr of %s: %s", cmd, proc.stderr.rstrip())

        if proc.returncode:
            msg = "Failed to run %r. Exit code=%d. out=%s err=%s" \
                  % (cmd, proc.returncode, proc.stdout, proc.stderr)
            (lgr.debug if expect_fail else lgr.error)(msg)
            raise CommandError(str(cmd), msg, proc.returncode,
                               proc.stdout, proc.stderr)
        lgr.log(8, "Finished running %r with status %s", cmd, proc.returncode)
        return proc.stdout, proc.stderr
