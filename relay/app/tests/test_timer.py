"""
Unit Tests for the Shared Session Timer
=======================================

Tests for relay/app/realtime/timer.py
"""

import asyncio
import time

import pytest

from relay.app.realtime.timer import SessionTimer, format_elapsed


@pytest.mark.parametrize(
    "seconds,expected",
    [
        (0, "00:00:00"),
        (1, "00:00:01"),
        (59, "00:00:59"),
        (60, "00:01:00"),
        (3599, "00:59:59"),
        (3725, "01:02:05"),
        (360000, "100:00:00"),
    ],
)
def test_format_elapsed(seconds, expected):
    assert format_elapsed(seconds) == expected


def test_new_timer_is_stopped_at_zero():
    timer = SessionTimer(on_tick=lambda: None)
    assert timer.running is False
    assert timer.elapsed_seconds == 0
    assert timer.formatted == "00:00:00"


@pytest.mark.asyncio
async def test_start_is_idempotent_and_ticks_once_per_interval():
    ticks = []
    timer = SessionTimer(on_tick=lambda: ticks.append(timer.elapsed_seconds), interval=0.1)

    assert timer.start() is True
    first_task = timer._task
    assert timer.start() is False
    assert timer._task is first_task

    await asyncio.sleep(0.35)
    await timer.aclose()

    # A duplicate tick task would have produced about six ticks
    assert 2 <= len(ticks) <= 4
    assert ticks == list(range(1, len(ticks) + 1))


@pytest.mark.asyncio
async def test_stop_is_idempotent():
    timer = SessionTimer(on_tick=lambda: None, interval=0.05)

    assert timer.stop() is False
    timer.start()
    assert timer.stop() is True
    assert timer.stop() is False
    assert timer.running is False


@pytest.mark.asyncio
async def test_stop_then_start_resumes_from_held_seconds():
    timer = SessionTimer(on_tick=lambda: None, interval=0.05)
    timer.elapsed_seconds = 41

    timer.start()
    await asyncio.sleep(0.08)
    timer.stop()
    held = timer.elapsed_seconds
    assert held >= 42

    await asyncio.sleep(0.1)
    assert timer.elapsed_seconds == held

    timer.start()
    await asyncio.sleep(0.08)
    await timer.aclose()
    assert timer.elapsed_seconds > held


@pytest.mark.asyncio
async def test_reset_keeps_running_state():
    timer = SessionTimer(on_tick=lambda: None, interval=0.05)
    timer.start()
    await asyncio.sleep(0.12)

    timer.reset()

    assert timer.elapsed_seconds == 0
    assert timer.running is True

    await asyncio.sleep(0.07)
    assert timer.elapsed_seconds >= 1
    await timer.aclose()


def test_reset_while_stopped_stays_stopped():
    timer = SessionTimer(on_tick=lambda: None)
    timer.elapsed_seconds = 10

    timer.reset()

    assert timer.elapsed_seconds == 0
    assert timer.running is False


@pytest.mark.asyncio
async def test_failing_tick_callback_does_not_stop_the_timer():
    calls = []

    def on_tick():
        calls.append(1)
        raise RuntimeError("boom")

    timer = SessionTimer(on_tick=on_tick, interval=0.05)
    timer.start()
    await asyncio.sleep(0.18)
    await timer.aclose()

    assert len(calls) >= 2


@pytest.mark.asyncio
async def test_blocked_loop_does_not_replay_missed_ticks():
    ticks = []
    timer = SessionTimer(on_tick=lambda: ticks.append(timer.elapsed_seconds), interval=0.05)
    timer.start()
    await asyncio.sleep(0.01)

    # Block the event loop across several tick deadlines
    time.sleep(0.3)
    await asyncio.sleep(0.03)
    await timer.aclose()

    assert len(ticks) <= 2
