# emacs: -*- mode: python; py-indent-offset: 4; tab-width: 4; indent-tabs-mode: nil -*-
# ex: set sts=4 ts=4 sw=4 noet:
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the sumo package for the
#   copyright and license terms.
#
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""Utils to help with exception reporting
"""

import os
import sys
import traceback


def exc_str(exc=None, limit=None):
    """Enhanced str for exceptions.  Should include original location

    Parameters
    ----------
    exc : Exception, optional
      Exception to render.  If not provided, the one currently being
      handled is used.
    limit : int, optional
      How many traceback entries to include.  SUMO_EXC_STR_TBLIMIT or 1.
    """
    out = str(exc)
    if limit is None:
        limit = int(os.environ.get('SUMO_EXC_STR_TBLIMIT', '1'))
    try:
        exctype, value, tb = sys.exc_info()
        if not exc:
            exc = value
            out = str(exc)
        # we can only report location for the exception being handled
        if exc is not value:
            return out
        entries = traceback.extract_tb(tb)
        if entries:
            out += " [%s]" % (','.join(['%s:%s:%d' % (os.path.basename(x[0]), x[2], x[1]) for x in entries[-limit:]]))
    except Exception:
        return out  # To the best of our abilities
    return out
