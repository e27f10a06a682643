# ex: set sts=4 ts=4 sw=4 noet:
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the sumo package for the
#   copyright and license terms.
#
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##

import threading
import time

import pytest
from tenacity import Retrying

from ..support.exceptions import NotReadyError
from ..support.exceptions import WaitCancelledError
from ..support.retry import CancelToken
from ..support.retry import RetryPolicy


class Flaky(object):
    """Raises NotReadyError until called `ready_after` times"""

    def __init__(self, ready_after=None):
        self.ready_after = ready_after
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.ready_after is None or self.calls < self.ready_after:
            raise NotReadyError("not yet")
        return self.calls


@pytest.fixture
def sleeps():
    return []


def test_retrying_is_tenacity():
    assert isinstance(RetryPolicy().retrying(), Retrying)


def test_max_attempts(sleeps):
    policy = RetryPolicy(interval=2, max_attempts=3, sleep=sleeps.append)
    assert policy.bounded
    fn = Flaky()
    with pytest.raises(NotReadyError):
        policy.call(fn)
    assert fn.calls == 3
    assert sleeps == [2, 2]


def test_ready_in_time(sleeps):
    policy = RetryPolicy(interval=1, max_attempts=5, sleep=sleeps.append)
    assert policy.call(Flaky(ready_after=3)) == 3
    assert sleeps == [1, 1]


def test_backoff(sleeps):
    policy = RetryPolicy(interval=1, backoff=2, max_interval=5,
                         max_attempts=6, sleep=sleeps.append)
    with pytest.raises(NotReadyError):
        policy.call(Flaky())
    assert sleeps == [1, 2, 4, 5, 5]


def test_fixed_interval_capped(sleeps):
    policy = RetryPolicy(interval=10, max_interval=3, max_attempts=3,
                         sleep=sleeps.append)
    with pytest.raises(NotReadyError):
        policy.call(Flaky())
    assert sleeps == [3, 3]


def test_max_duration():
    policy = RetryPolicy(interval=0.01, max_duration=0.05)
    fn = Flaky()
    start = time.monotonic()
    with pytest.raises(NotReadyError):
        policy.call(fn)
    assert fn.calls > 1
    assert time.monotonic() - start < 5


def test_unbounded(sleeps):
    policy = RetryPolicy(interval=0.5, sleep=sleeps.append)
    assert not policy.bounded
    assert policy.call(Flaky(ready_after=100)) == 100
    assert len(sleeps) == 99


def test_other_errors_propagate(sleeps):
    policy = RetryPolicy(sleep=sleeps.append)

    def broken():
        raise KeyError("broken")

    with pytest.raises(KeyError):
        policy.call(broken)
    assert sleeps == []


def test_extra_stop_and_wait(sleeps):
    policy = RetryPolicy(interval=1, sleep=sleeps.append)
    fn = Flaky()
    with pytest.raises(NotReadyError):
        policy.call(fn, stop=lambda state: state.attempt_number >= 4,
                    wait=lambda state: 7)
    assert fn.calls == 4
    assert sleeps == [7, 7, 7]


def test_zero_interval_does_not_sleep(sleeps):
    policy = RetryPolicy(interval=0, max_attempts=3, sleep=sleeps.append)
    with pytest.raises(NotReadyError):
        policy.call(Flaky())
    assert sleeps == []


def test_cancelled_before_start():
    cancel = CancelToken()
    cancel.cancel()
    assert cancel.cancelled
    fn = Flaky(ready_after=1)
    with pytest.raises(WaitCancelledError):
        RetryPolicy().call(fn, cancel=cancel)
    assert fn.calls == 0


def test_cancelled_between_attempts(sleeps):
    cancel = CancelToken()

    def cancel_on_second():
        if fn.calls == 1:
            cancel.cancel()
        fn()

    fn = Flaky()
    policy = RetryPolicy(interval=0, sleep=sleeps.append)
    with pytest.raises(WaitCancelledError):
        policy.call(cancel_on_second, cancel=cancel)
    assert fn.calls == 2


def test_cancel_while_sleeping():
    cancel = CancelToken()
    policy = RetryPolicy(interval=30)
    timer = threading.Timer(0.05, cancel.cancel)
    timer.start()
    fn = Flaky()
    start = time.monotonic()
    with pytest.raises(WaitCancelledError):
        policy.call(fn, cancel=cancel)
    timer.join()
    assert fn.calls == 1
    assert time.monotonic() - start < 30


def test_pause_uses_token_sleep(sleeps):
    policy = RetryPolicy(sleep=sleeps.append)
    policy.pause(5)
    assert sleeps == [5]
    cancel = CancelToken()
    policy.pause(0, cancel)
    cancel.cancel()
    with pytest.raises(WaitCancelledError):
        policy.pause(0, cancel)
    assert sleeps == [5]
