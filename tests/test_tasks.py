"""Tests for lazy background tasks."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from openmrs_records.tasks import Task


@pytest.fixture
def executor():
    pool = ThreadPoolExecutor(max_workers=2)
    yield pool
    pool.shutdown(wait=True)


class TestTask:
    """Tests for Task scheduling and delivery."""

    def test_not_run_until_requested(self, executor):
        calls = []
        task = Task(lambda: calls.append(1), executor)

        assert calls == []
        assert not task.started

    def test_result_runs_once(self, executor):
        calls = []

        def work():
            calls.append(1)
            return len(calls)

        task = Task(work, executor)

        assert task.result(timeout=5) == 1
        assert task.result(timeout=5) == 1
        assert calls == [1]

    def test_error_propagates_to_result(self, executor):
        def fail():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            Task(fail, executor).result(timeout=5)

    def test_subscribe_success(self, executor):
        done = threading.Event()
        received = []

        def on_success(value):
            received.append(value)
            done.set()

        Task(lambda: "ok", executor).subscribe(on_success)

        assert done.wait(timeout=5)
        assert received == ["ok"]

    def test_subscribe_error(self, executor):
        done = threading.Event()
        errors = []

        def fail():
            raise ValueError("bad")

        def on_error(exc):
            errors.append(exc)
            done.set()

        Task(fail, executor).subscribe(lambda value: None, on_error)

        assert done.wait(timeout=5)
        assert isinstance(errors[0], ValueError)

    def test_map_is_lazy(self, executor):
        calls = []

        def work():
            calls.append(1)
            return 20

        mapped = Task(work, executor).map(lambda value: value + 1)

        assert calls == []
        assert mapped.result(timeout=5) == 21

    def test_map_reuses_finished_source(self, executor):
        calls = []

        def work():
            calls.append(1)
            return len(calls)

        task = Task(work, executor)
        assert task.result(timeout=5) == 1

        assert task.map(lambda value: value * 10).result(timeout=5) == 10
        assert calls == [1]

    def test_map_error_propagates(self, executor):
        def explode(value):
            raise ValueError(f"cannot map {value}")

        mapped = Task(lambda: 3, executor).map(explode)

        with pytest.raises(ValueError, match="cannot map 3"):
            mapped.result(timeout=5)

    def test_map_on_single_worker_pool(self):
        pool = ThreadPoolExecutor(max_workers=1)
        try:
            mapped = Task(lambda: 2, pool).map(lambda value: value + 1).map(str)

            assert mapped.result(timeout=5) == "3"
        finally:
            pool.shutdown(wait=True)

    def test_inline_runs_on_calling_thread(self):
        threads = []
        pool = ThreadPoolExecutor(max_workers=1)
        try:
            task = Task(lambda: threads.append(threading.get_ident()) or "done", pool, inline=lambda: True)

            assert task.result(timeout=5) == "done"
            assert threads == [threading.get_ident()]
        finally:
            pool.shutdown(wait=True)

    def test_inline_false_uses_pool(self, executor):
        threads = []
        task = Task(lambda: threads.append(threading.get_ident()), executor, inline=lambda: False)

        task.result(timeout=5)

        assert threads != [threading.get_ident()]
