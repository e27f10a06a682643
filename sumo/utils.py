# emacs: -*- mode: python; py-indent-offset: 4; tab-width: 4; indent-tabs-mode: nil -*-
# ex: set sts=4 ts=4 sw=4 noet:
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the sumo package for the
#   copyright and license terms.
#
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##

import logging
import os
import os.path as op
from contextlib import contextmanager
from io import StringIO

import attr

lgr = logging.getLogger("sumo.utils")


def attrib(*args, **kwargs):
    """Extend the attr.ib to include our metadata elements.

    ATM we support additional keyword args which are then stored within
    `metadata`:
    - `doc` for documentation to describe the attribute (e.g. in --help)

    Also, when the `default` argument of attr.ib is unspecified, set it to
    None.
    """
    doc = kwargs.pop('doc', None)
    metadata = kwargs.get('metadata', {})
    if doc:
        metadata['doc'] = doc
    if metadata:
        kwargs['metadata'] = metadata
    return attr.ib(*args, default=kwargs.pop('default', None), **kwargs)


def assure_dir(*args):
    """Make sure directory exists.

    Joins the list of arguments to an os-specific path to the desired
    directory and creates it, if it not exists yet.
    """
    dirname = op.join(*args)
    if not op.exists(dirname):
        os.makedirs(dirname)
    return dirname


def expandpath(path):
    """Expand ~ and environment variables within a path"""
    return op.expandvars(op.expanduser(path))


@contextmanager
def swallow_logs(new_level=None, name='sumo'):
    """Context manager to consume all logs.

    Yields an object with `out` (all logged text) and `lines` (that text
    split into lines) to introspect what was logged.
    """
    lgr = logging.getLogger(name)

    # Keep old settings
    old_level = lgr.level
    old_handlers = lgr.handlers

    class StringIOAdapter(object):
        """Little adapter to help getting out values

        And to stay consistent with how swallow_outputs behaves
        """
        def __init__(self):
            self._out = StringIO()

        def write(self, s):
            self._out.write(s)

        def flush(self):
            pass

        @property
        def out(self):
            return self._out.getvalue()

        @property
        def lines(self):
            return self.out.splitlines()

        def cleanup(self):
            self._out.close()

    if new_level is not None:
        lgr.setLevel(new_level)

    adapter = StringIOAdapter()
    swallow_handler = logging.StreamHandler(adapter)
    swallow_handler.setFormatter(logging.Formatter('[%(levelname)s] %(message)s'))
    # we need to use the same handler level so everything passes through
    if new_level is not None:
        swallow_handler.setLevel(new_level)
    lgr.handlers = [swallow_handler]

    try:
        yield adapter
    finally:
        lgr.handlers = old_handlers
        lgr.setLevel(old_level)
        adapter.cleanup()
