# emacs: -*- mode: python; py-indent-offset: 4; tab-width: 4; indent-tabs-mode: nil -*-
# ex: set sts=4 ts=4 sw=4 noet:
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the sumo package for the
#   copyright and license terms.
#
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""Configuration of sumo: defaults merged with the user's config.yml
"""

import os
import os.path as op

import yaml
from appdirs import AppDirs

from . import consts
from .support.exceptions import ConfigError
from .support.exceptions import MissingConfigFileError
from .utils import expandpath

import logging
lgr = logging.getLogger('sumo.config')


DEFAULTS = {
    'user': 'ubuntu',
    'ami': 'ami-1234de7b',  # Ubuntu 10.04 LTS (Lucid Lynx)
    'availability_zone': 'us-east-1d',
    'instance_size': 't1.micro',
    # polling
    'hostname_poll_interval': 1,
    'port_poll_interval': 1,
    'shell_connect_timeout': 4,
    'shell_attempts': 10,
    'shell_retry_delay': 5,
    'wait_timeout': None,
}


def get_state_dir():
    """Return the per-user directory with config.yml, the keypair and logs

    SUMO_DIR environment variable takes precedence.
    """
    path = os.environ.get('SUMO_DIR')
    if path:
        return expandpath(path)
    return AppDirs('sumo').user_config_dir


class ConfigManager(object):
    """Flat key/value configuration

    Values come from (in increasing priority) the built-in defaults, the
    configuration file, and explicit `set` calls.  The file is read on first
    access.

    Parameters
    ----------
    filename : str, optional
      Configuration file to load.  Defaults to config.yml within the state
      directory.
    state_dir : str, optional
      Directory holding the keypair and the default log file.
    """

    def __init__(self, filename=None, state_dir=None):
        self.state_dir = state_dir or get_state_dir()
        self.filename = filename or op.join(self.state_dir,
                                            consts.CONFIG_FILENAME)
        self._store = None
        self._overrides = {}

    def _read(self):
        lgr.debug("Reading configuration from %s", self.filename)
        try:
            with open(self.filename) as f:
                loaded = yaml.safe_load(f)
        except FileNotFoundError:
            raise MissingConfigFileError(
                "Sumo is not configured, please fill in %s" % self.filename)
        except yaml.YAMLError as exc:
            raise ConfigError(
                "Failed to parse %s: %s" % (self.filename, exc))
        if loaded is None:
            return {}
        if not isinstance(loaded, dict):
            raise ConfigError(
                "%s must contain a mapping of settings, got %s"
                % (self.filename, type(loaded).__name__))
        return loaded

    def reload(self):
        store = dict(DEFAULTS)
        store.update(self._read())
        store.update(self._overrides)
        self._store = store

    @property
    def store(self):
        if self._store is None:
            self.reload()
        return self._store

    def __getitem__(self, key):
        return self.store[key]

    def __contains__(self, key):
        return self.store.get(key) is not None

    def get(self, key, default=None):
        value = self.store.get(key)
        return default if value is None else value

    def set(self, key, value):
        """Override a setting for the lifetime of this manager"""
        self._overrides[key] = value
        if self._store is not None:
            self._store[key] = value

    def getpath(self, key, default=None):
        value = self.get(key, default)
        return expandpath(value) if value else value

    def require(self, key):
        """Return the value for `key`, raising ConfigError if it is unset"""
        value = self.get(key)
        if value is None:
            raise ConfigError(
                "'%s' is not set, please add it to %s" % (key, self.filename))
        return value

    @property
    def keypair_file(self):
        return op.join(self.state_dir, consts.KEYPAIR_FILENAME)

    @property
    def logfile(self):
        return self.getpath('logfile',
                            op.join(self.state_dir, consts.LOG_FILENAME))

    @property
    def region(self):
        """Region of the configured availability zone (e.g. us-east-1)"""
        zone = self.require('availability_zone')
        return zone[:-1]

    @property
    def endpoint(self):
        return '%s.%s' % (self.region, consts.EC2_DOMAIN)
