# emacs: -*- mode: python; py-indent-offset: 4; tab-width: 4; indent-tabs-mode: nil -*-
# ex: set sts=4 ts=4 sw=4 noet:
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the sumo package for the
#   copyright and license terms.
#
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""Retry policies and cancellation for the polling loops."""

import threading
import time
from functools import partial

import attr
from tenacity import Retrying
from tenacity import retry_if_exception_type
from tenacity import stop_after_attempt
from tenacity import stop_after_delay
from tenacity import stop_any
from tenacity import stop_never
from tenacity import wait_exponential
from tenacity import wait_fixed

from ..utils import attrib
from .exceptions import NotReadyError
from .exceptions import WaitCancelledError

import logging
lgr = logging.getLogger('sumo.support.retry')


class CancelToken(object):
    """Cancellation flag shared between a waiter and whoever may abort it.

    `cancel` may be called from any thread; a pending `sleep` returns
    immediately.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self):
        return self._event.is_set()

    def check(self):
        """Raise WaitCancelledError if the token has been cancelled"""
        if self._event.is_set():
            raise WaitCancelledError("wait was cancelled")

    def sleep(self, seconds):
        """Sleep up to `seconds`, raising WaitCancelledError if cancelled"""
        if self._event.wait(seconds):
            raise WaitCancelledError("wait was cancelled")

    def __call__(self, retry_state):
        # as a tenacity stop condition: never stops, raises once cancelled
        self.check()
        return False


@attr.s
class RetryPolicy(object):
    """How often, how long and how far apart to retry.

    The default is an unbounded loop with a fixed one second delay.  The
    policy is turned into a `tenacity.Retrying` by `retrying`.
    """

    interval = attrib(default=1.0,
        doc="Delay (in seconds) after the first attempt")
    max_attempts = attrib(
        doc="Number of attempts after which to give up. None for no limit")
    max_duration = attrib(
        doc="Seconds after which to give up. None for no limit")
    backoff = attrib(default=1.0,
        doc="Factor to multiply the delay with after every attempt")
    max_interval = attrib(
        doc="Upper bound for the delay between attempts")
    sleep = attrib(default=time.sleep, repr=False)

    @property
    def bounded(self):
        return self.max_attempts is not None or self.max_duration is not None

    def stop(self):
        """Return the tenacity stop condition for the bounds"""
        stops = []
        if self.max_attempts is not None:
            stops.append(stop_after_attempt(self.max_attempts))
        if self.max_duration is not None:
            stops.append(stop_after_delay(self.max_duration))
        return stop_any(*stops) if stops else stop_never

    def wait(self):
        """Return the tenacity wait strategy for the delays"""
        if self.backoff == 1:
            interval = self.interval
            if self.max_interval is not None:
                interval = min(interval, self.max_interval)
            return wait_fixed(interval)
        kwargs = {}
        if self.max_interval is not None:
            kwargs['max'] = self.max_interval
        return wait_exponential(multiplier=self.interval,
                                exp_base=self.backoff, **kwargs)

    def pause(self, seconds, cancel=None):
        """Sleep for `seconds`, honoring the cancel token if one is given"""
        if cancel is not None:
            cancel.check()
            if seconds > 0:
                cancel.sleep(seconds)
        elif seconds > 0:
            self.sleep(seconds)

    def retrying(self, cancel=None, retry_on=NotReadyError, stop=None,
                 wait=None):
        """Return a tenacity.Retrying for this policy

        Once the policy (or the extra `stop`) gives up, the last exception
        is re-raised.

        Parameters
        ----------
        cancel : CancelToken, optional
          Checked after every attempt and while sleeping.
        retry_on : exception class or tuple
          Exceptions which mean "try again".  Anything else propagates
          immediately.
        stop : callable, optional
          Additional tenacity stop condition.
        wait : callable, optional
          Tenacity wait strategy to use instead of the policy's delays.
        """
        stops = [self.stop()]
        if stop is not None:
            stops.append(stop)
        if cancel is not None:
            stops.insert(0, cancel)
        return Retrying(
            retry=retry_if_exception_type(retry_on),
            stop=stop_any(*stops),
            wait=wait or self.wait(),
            sleep=partial(self.pause, cancel=cancel),
            reraise=True,
        )

    def call(self, fn, cancel=None, **kwargs):
        """Call `fn` until it does not raise NotReadyError and return its result

        Raises
        ------
        WaitCancelledError
          If `cancel` fires, possibly before the first attempt.
        NotReadyError
          The last one raised by `fn`, once the policy ran out.
        """
        if cancel is not None:
            cancel.check()
        return self.retrying(cancel=cancel, **kwargs)(fn)
