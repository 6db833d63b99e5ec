import os
import sys

import pytest
import requests

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from meetingai.utils.retry import is_transient_error, with_retry


def _failing(error, calls):
    def fn():
        calls.append(1)
        raise error
    return fn


def test_non_retryable_error_runs_once():
    calls, delays = [], []
    err = ValueError("bad request")
    with pytest.raises(ValueError) as exc:
        with_retry(_failing(err, calls), sleep=delays.append)
    assert exc.value is err
    assert len(calls) == 1
    assert delays == []


def test_exhausts_retries_and_reraises_last_error():
    calls, delays = [], []
    err = requests.exceptions.ConnectionError("connection reset by peer")
    with pytest.raises(requests.exceptions.ConnectionError) as exc:
        with_retry(_failing(err, calls), max_retries=3, sleep=delays.append)
    assert exc.value is err
    assert len(calls) == 4
    assert delays == [1.0, 2.0, 4.0]


def test_delays_are_capped():
    delays = []
    with pytest.raises(TimeoutError):
        with_retry(_failing(TimeoutError("timed out"), []), max_retries=3, initial_delay=4,
                   backoff_multiplier=3, max_delay=10, sleep=delays.append)
    assert delays == [4, 10, 10]


def test_succeeds_after_transient_failures():
    attempts = []

    def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise requests.exceptions.Timeout("read timed out")
        return "ok"

    assert with_retry(flaky, sleep=lambda s: None) == "ok"
    assert len(attempts) == 3


def test_custom_predicate():
    calls = []
    with pytest.raises(KeyError):
        with_retry(_failing(KeyError("x"), calls), max_retries=2, should_retry=lambda e: True,
                   sleep=lambda s: None)
    assert len(calls) == 3


def test_transient_classification():
    assert is_transient_error(requests.exceptions.ConnectionError())
    assert is_transient_error(RuntimeError("socket hang up"))
    assert is_transient_error(RuntimeError("fetch failed"))
    assert not is_transient_error(ValueError("Invalid API key"))
