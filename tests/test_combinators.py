"""
聚合组合子测试：resolve / reject / all / race
"""

from deferred_future import FutureValue, all_of, race, resolve, reject, deferred
from future_helpers import manual_config, ScriptedThenable


def test_static_resolve_and_reject():
    scheduler, config = manual_config()
    error = ValueError("rejected")

    fulfilled = FutureValue.resolve("value", config=config)
    rejected = FutureValue.reject(error, config=config)

    assert fulfilled.value == "value"
    assert rejected.reason is error


def test_all_empty_fulfills_immediately():
    _, config = manual_config()

    combined = FutureValue.all([], config=config)

    assert combined.is_fulfilled()
    assert combined.value == []


def test_all_preserves_input_order():
    scheduler, config = manual_config()

    combined = FutureValue.all([resolve(1, config=config), resolve(2, config=config)], config=config)
    scheduler.run_until_idle()

    assert combined.value == [1, 2]


def test_all_order_independent_of_completion_order():
    """结果顺序与各输入的完成先后无关"""
    scheduler, config = manual_config()
    first = deferred(config=config)
    second = deferred(config=config)

    combined = all_of([first.future, second.future], config=config)

    second.resolve("b")
    scheduler.run_until_idle()
    assert combined.is_pending()

    first.resolve("a")
    scheduler.run_until_idle()
    assert combined.value == ["a", "b"]


def test_all_rejects_on_first_failure():
    scheduler, config = manual_config()
    error = ValueError("e")
    late = deferred(config=config)

    combined = all_of([resolve(1, config=config), reject(error, config=config), late.future], config=config)
    scheduler.run_until_idle()
    assert combined.reason is error

    late.resolve(3)
    scheduler.run_until_idle()
    assert combined.is_rejected()
    assert combined.reason is error


def test_all_first_rejection_wins():
    scheduler, config = manual_config()
    first = deferred(config=config)
    second = deferred(config=config)

    combined = all_of([first.future, second.future], config=config)
    second.reject("second")
    scheduler.run_until_idle()
    first.reject("first")
    scheduler.run_until_idle()

    assert combined.reason == "second"


def test_all_accepts_plain_values_thenables_and_generators():
    scheduler, config = manual_config()

    inputs = (item for item in [1, resolve(2, config=config), ScriptedThenable(("resolve", 3))])
    combined = all_of(inputs, config=config)
    scheduler.run_until_idle()

    assert combined.value == [1, 2, 3]


def test_race_forwards_first_settlement():
    scheduler, config = manual_config()
    slow = deferred(config=config)
    fast = deferred(config=config)

    winner = race([slow.future, fast.future], config=config)
    fast.resolve("fast")
    scheduler.run_until_idle()
    slow.resolve("slow")
    scheduler.run_until_idle()

    assert winner.value == "fast"


def test_race_forwards_first_rejection():
    scheduler, config = manual_config()
    slow = deferred(config=config)
    fast = deferred(config=config)
    error = RuntimeError("fast failure")

    loser = FutureValue.race([slow.future, fast.future], config=config)
    fast.reject(error)
    scheduler.run_until_idle()
    slow.resolve("slow")
    scheduler.run_until_idle()

    assert loser.reason is error


def test_race_tie_break_follows_iteration_order():
    """调用时已全部结算的输入，按迭代顺序决胜"""
    scheduler, config = manual_config()
    error = ValueError("b")

    a_first = race([resolve("a", config=config), reject(error, config=config)], config=config)
    b_first = race([reject(error, config=config), resolve("a", config=config)], config=config)
    scheduler.run_until_idle()

    assert a_first.value == "a"
    assert b_first.reason is error


def test_race_empty_stays_pending():
    scheduler, config = manual_config()

    never = race([], config=config)
    scheduler.run_until_idle()

    assert never.is_pending()
