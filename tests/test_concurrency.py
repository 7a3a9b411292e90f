import random
import threading
import time
from concurrent.futures import ThreadPoolExecutor

from hookwire import HookRegistry

HOOKS = (1, 2, 3, 4)
TIMEOUT = 60


class _Counter:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.value = 0

    def __call__(self, *args, **kwargs) -> None:
        with self._lock:
            self.value += 1


def test_concurrent_add_execute_remove_stays_consistent() -> None:
    registry = HookRegistry()
    counter = _Counter()
    rng = random.Random(7)
    plan = [(rng.choice(HOOKS), rng.random() < 0.05) for _ in range(12_000)]

    def operate(hook_id: int, keep: bool) -> tuple[int, int, bool]:
        callback_id = registry.add(hook_id, counter)
        registry.execute(hook_id, "payload")
        registry.active(hook_id)
        if not keep:
            registry.remove(hook_id, callback_id)
        return hook_id, callback_id, keep

    with ThreadPoolExecutor(max_workers=32) as pool:
        futures = [pool.submit(operate, hook_id, keep) for hook_id, keep in plan]
        results = [future.result(timeout=TIMEOUT) for future in futures]

    for hook_id in HOOKS:
        issued = [callback_id for hid, callback_id, _ in results if hid == hook_id]
        kept = sorted(callback_id for hid, callback_id, keep in results if hid == hook_id and keep)
        assert len(issued) == len(set(issued))
        assert registry.count(hook_id) == len(kept)
        snapshot = registry.snapshot(hook_id)
        assert sorted(snapshot.callback_ids if snapshot else []) == kept
        assert registry.active(hook_id) == bool(kept)

    assert len({callback_id for _, callback_id, _ in results}) == len(results)

    # Every add was followed by an execute of the same hook, so each
    # operation ran at least its own callback.
    assert counter.value >= len(plan)


def test_executions_of_one_hook_never_overlap() -> None:
    registry = HookRegistry()
    state_lock = threading.Lock()
    state = {"running": 0, "peak": 0}

    def tracked(*args, **kwargs) -> None:
        with state_lock:
            state["running"] += 1
            state["peak"] = max(state["peak"], state["running"])
        time.sleep(0.0005)
        with state_lock:
            state["running"] -= 1

    registry.add(1, tracked)
    registry.add(1, tracked)

    def operate(n: int) -> None:
        registry.execute(1, n)
        if n % 10 == 0:
            registry.remove(1, registry.add(1, tracked))

    with ThreadPoolExecutor(max_workers=8) as pool:
        for future in [pool.submit(operate, n) for n in range(200)]:
            future.result(timeout=TIMEOUT)

    assert state["peak"] == 1
    assert registry.count(1) == 2


def test_slow_callback_does_not_block_other_hooks() -> None:
    registry = HookRegistry()
    started = threading.Event()
    release = threading.Event()
    calls: list[str] = []

    def slow() -> None:
        started.set()
        release.wait(timeout=TIMEOUT)

    registry.add(1, slow)
    worker = threading.Thread(target=registry.execute, args=(1,), daemon=True)
    worker.start()
    assert started.wait(timeout=5)

    def other_hook() -> None:
        registry.add(2, lambda: calls.append("two"))
        registry.execute(2)
        registry.add(3, lambda: calls.append("three"))
        registry.remove_all(3)
        assert 2 in registry
        assert 3 not in registry

    try:
        with ThreadPoolExecutor(max_workers=1) as pool:
            pool.submit(other_hook).result(timeout=5)
    finally:
        release.set()
        worker.join(timeout=5)

    assert calls == ["two"]


def test_remove_all_racing_with_add_keeps_mapping_consistent() -> None:
    registry = HookRegistry()
    counter = _Counter()
    stop = threading.Event()

    def detacher() -> None:
        while not stop.is_set():
            registry.remove_all(1)

    def adder(n: int) -> int:
        callback_id = registry.add(1, counter)
        registry.execute(1)
        return callback_id

    detachers = [threading.Thread(target=detacher, daemon=True) for _ in range(2)]
    for thread in detachers:
        thread.start()
    try:
        with ThreadPoolExecutor(max_workers=8) as pool:
            issued = [future.result(timeout=TIMEOUT) for future in [pool.submit(adder, n) for n in range(3_000)]]
    finally:
        stop.set()
        for thread in detachers:
            thread.join(timeout=5)

    assert len(set(issued)) == len(issued)

    snapshot = registry.snapshot(1)
    remaining = 0 if snapshot is None else len(snapshot.callback_ids)
    assert registry.count(1) == remaining

    before = counter.value
    registry.execute(1)
    assert counter.value - before == remaining

    # Once detaching stops, nothing registered afterwards is lost.
    for _ in range(5):
        registry.add(1, counter)
    assert registry.count(1) == remaining + 5


def test_reentrant_callbacks_under_contention_do_not_deadlock() -> None:
    registry = HookRegistry()
    counter = _Counter()

    def chaining(*args, **kwargs) -> None:
        registry.add(2, counter)
        registry.active(1)

    registry.add(1, chaining)

    def execute_one(n: int) -> None:
        registry.execute(1, n)

    def churn_two(n: int) -> None:
        registry.remove_all(2)
        registry.add(2, counter)
        registry.execute(2)

    with ThreadPoolExecutor(max_workers=16) as pool:
        futures = [pool.submit(execute_one, n) for n in range(500)]
        futures += [pool.submit(churn_two, n) for n in range(500)]
        for future in futures:
            future.result(timeout=TIMEOUT)

    assert registry.count(1) == 1
    assert 2 in registry


def test_suspend_racing_with_remove_all_always_lands() -> None:
    registry = HookRegistry()
    stop = threading.Event()

    def detacher() -> None:
        while not stop.is_set():
            registry.remove_all(1)

    def suspender(n: int) -> None:
        registry.suspend(1)

    thread = threading.Thread(target=detacher, daemon=True)
    thread.start()
    try:
        with ThreadPoolExecutor(max_workers=8) as pool:
            for future in [pool.submit(suspender, n) for n in range(2_000)]:
                future.result(timeout=TIMEOUT)
    finally:
        stop.set()
        thread.join(timeout=5)

    registry.suspend(1)
    assert registry.is_suspended(1)
    assert registry.hook_ids() == [1]
