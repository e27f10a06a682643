# emacs: -*- mode: python; py-indent-offset: 4; tab-width: 4; indent-tabs-mode: nil -*-
# ex: set sts=4 ts=4 sw=4 noet:
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the sumo package for the
#   copyright and license terms.
#
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""Logging setup and utilities, including colored logging
"""

import logging
import os
import sys

__all__ = ['LoggerHelper', 'lgr']


class ColorFormatter(logging.Formatter):

    BLACK, RED, GREEN, YELLOW, BLUE, MAGENTA, CYAN, WHITE = range(8)
    RESET_SEQ = "\033[0m"
    COLOR_SEQ = "\033[1;%dm"

    COLORS = {
        'WARNING': YELLOW,
        'INFO': WHITE,
        'DEBUG': BLUE,
        'CRITICAL': YELLOW,
        'ERROR': RED,
    }

    def __init__(self, use_color=None, log_name=False):
        if use_color is None:
            use_color = sys.stderr.isatty() \
                and os.environ.get('SUMO_LOGCOLOR', '1') != '0'
        self.use_color = use_color
        msg = "%(asctime)-15s [%(levelname)s] "
        if log_name:
            msg += "%(name)s "
        msg += "%(message)s"
        logging.Formatter.__init__(self, msg)

    def format(self, record):
        levelname = record.levelname
        if self.use_color and levelname in self.COLORS:
            fore_color = 30 + self.COLORS[levelname]
            record.levelname = self.COLOR_SEQ % fore_color \
                + levelname + self.RESET_SEQ
        try:
            return logging.Formatter.format(self, record)
        finally:
            record.levelname = levelname


class LoggerHelper(object):
    """Helper to establish and control a Logger"""

    def __init__(self, name='sumo', logtarget=None):
        """

        Parameters
        ----------
        name : str
          Name of the logger, also used as the prefix of the environment
          variables (e.g. SUMO_LOGLEVEL) consulted for its settings.
        logtarget : str, optional
          Name of the logger to configure, if different from `name`.
        """
        self.name = name
        self.lgr = logging.getLogger(logtarget if logtarget is not None else name)

    def _get_environ(self, var, default=None):
        return os.environ.get(self.name.upper() + '_%s' % var.upper(), default)

    def set_level(self, level=None, default='WARNING'):
        """Helper to set loglevel for an arbitrary logger

        By default operates for 'sumo'.
        TODO: deduce name from upper module name so it could be reused without changes
        """
        if level is None:
            # see if nothing in the environment
            level = self._get_environ('LOGLEVEL')
        if level is None:
            level = default

        try:
            # it might be a string which still represents an int
            log_level = int(level)
        except ValueError:
            # or a string which corresponds to a constant;)
            log_level = getattr(logging, level.upper())

        self.lgr.setLevel(log_level)

    def get_initialized_logger(self, logtarget=None):
        """Initialize and return the logger

        Parameters
        ----------
        logtarget: str, optional
          Which log target to request logger for: 'stderr', 'stdout' or a path
          to a file.  If not provided, SUMO_LOGTARGET is consulted and
          'stderr' is the default.

        Returns
        -------
        logging.Logger
        """
        if logtarget is None:
            logtarget = self._get_environ('LOGTARGET', 'stderr')

        if logtarget.lower() in ('stderr', 'stdout'):
            loghandler = logging.StreamHandler(
                getattr(sys, logtarget.lower()))
            use_color = None
        else:
            # must be a simple filename
            loghandler = logging.FileHandler(os.path.expanduser(logtarget))
            use_color = False

        log_name = self._get_environ('LOGNAME', '0') != '0'
        loghandler.setFormatter(
            ColorFormatter(use_color=use_color, log_name=log_name))
        self.lgr.addHandler(loghandler)

        self.set_level()  # set default logging level
        return self.lgr


lgr = LoggerHelper().get_initialized_logger()
