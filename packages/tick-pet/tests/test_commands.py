"""Tests for CommandQueue."""

import pytest
from tick_pet.commands import Clean, CommandQueue, Feed, Play


def test_drain_runs_in_fifo_order():
    queue = CommandQueue()
    order = []
    queue.handle(Feed, lambda cmd: order.append(cmd.food) or True)
    queue.handle(Play, lambda cmd: order.append("play") or True)
    queue.enqueue(Feed("snack"))
    queue.enqueue(Play())
    queue.enqueue(Feed())
    assert queue.pending() == 3
    queue.drain()
    assert order == ["snack", "play", "meal"]
    assert queue.pending() == 0


def test_drain_reports_acceptance():
    queue = CommandQueue()
    queue.handle(Feed, lambda cmd: cmd.food == "meal")
    queue.enqueue(Feed("meal"))
    queue.enqueue(Feed("snack"))
    assert queue.drain() == [(Feed("meal"), True), (Feed("snack"), False)]


def test_unknown_command_rejected_at_enqueue():
    queue = CommandQueue()
    with pytest.raises(TypeError):
        queue.enqueue(Clean())


def test_later_handler_replaces_earlier():
    queue = CommandQueue()
    queue.handle(Play, lambda cmd: False)
    queue.handle(Play, lambda cmd: True)
    queue.enqueue(Play())
    assert queue.drain() == [(Play(), True)]


def test_empty_drain():
    assert CommandQueue().drain() == []
