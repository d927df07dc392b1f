import threading
import time

from studentleave.core.locks import KeyedLock


def test_same_key_is_serialized():
    locks = KeyedLock()
    active = []
    overlaps = []

    def work():
        with locks.hold("leave:1"):
            active.append(1)
            if len(active) > 1:
                overlaps.append(True)
            time.sleep(0.01)
            active.pop()

    threads = [threading.Thread(target=work) for _ in range(5)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert overlaps == []


def test_different_keys_do_not_block():
    locks = KeyedLock()

    with locks.hold("leave:1"):
        acquired = threading.Event()

        def other():
            with locks.hold("leave:2"):
                acquired.set()

        thread = threading.Thread(target=other)
        thread.start()
        assert acquired.wait(timeout=1)
        thread.join()


def test_locks_are_released_after_use():
    locks = KeyedLock()

    with locks.hold("leave:1"):
        assert len(locks) == 1

    assert len(locks) == 0
