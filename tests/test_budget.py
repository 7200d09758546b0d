"""Tests for RestartBudget."""
from tabkeeper.supervisor import RestartBudget


def test_initial_budget():
    budget = RestartBudget(5)
    assert budget.attempts == 0
    assert budget.remaining == 5
    assert not budget.exhausted


def test_consume_until_exhausted():
    budget = RestartBudget(3)
    assert [budget.consume() for _ in range(5)] == [True, True, True, False, False]
    assert budget.attempts == 3
    assert budget.remaining == 0
    assert budget.exhausted


def test_zero_budget_never_restarts():
    assert not RestartBudget(0).consume()


def test_never_reset_by_default(clock):
    budget = RestartBudget(5, clock=clock)
    budget.consume()
    budget.note_started()
    clock.advance(3600)
    budget.note_exit(1)
    assert budget.attempts == 1


def test_reset_after_long_uptime(clock):
    budget = RestartBudget(5, reset_after_uptime=30.0, clock=clock)
    budget.consume()
    budget.consume()

    budget.note_started()
    clock.advance(10)
    budget.note_exit(1)
    assert budget.attempts == 2

    budget.note_started()
    clock.advance(30)
    budget.note_exit(1)
    assert budget.attempts == 0


def test_exit_without_start_does_not_reset(clock):
    budget = RestartBudget(5, reset_after_uptime=1.0, clock=clock)
    budget.consume()
    clock.advance(10)
    budget.note_exit(None)
    assert budget.attempts == 1


def test_stats():
    budget = RestartBudget(5)
    budget.note_exit(1)
    budget.note_exit(1)
    budget.note_exit(None)
    budget.consume()
    stats = budget.stats
    assert stats["attempts"] == 1
    assert stats["remaining"] == 4
    assert stats["exit_codes"] == {"1": 2, "None": 1}
