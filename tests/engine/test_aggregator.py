from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from bfwiki_crawler.engine.aggregator import AtomicCounter, CrawlProgress, TargetSet


def test_atomic_counter_survives_concurrent_increments() -> None:
    counter = AtomicCounter()
    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(lambda _: counter.increment(), range(1000)))
    assert counter.value == 1000
    assert counter.decrement(10) == 990


def test_target_set_reports_new_urls() -> None:
    targets = TargetSet()
    assert targets.add_all(["a", "b"]) == 2
    assert targets.add_all(["b", "c", "c"]) == 1
    assert len(targets) == 3
    assert "c" in targets
    assert targets.to_set() == {"a", "b", "c"}


def test_crawl_progress_merges_results_from_threads() -> None:
    progress: CrawlProgress[int] = CrawlProgress()

    def work(index: int) -> None:
        progress.increment_active()
        progress.merge_results([index, index])
        progress.increment_succeeded()
        progress.decrement_active()

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(work, range(100)))
    progress.increment_failed()
    progress.increment_discovered(3)

    assert progress.snapshot() == {
        "pages_discovered": 3,
        "items_succeeded": 100,
        "items_failed": 1,
        "active_workers": 0,
    }
    assert progress.result_count == 200
    results = progress.take_results()
    assert sorted(results) == sorted(list(range(100)) * 2)
    assert progress.take_results() == []


def test_crawl_progress_single_merges_from_threads() -> None:
    progress: CrawlProgress[str] = CrawlProgress()

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(lambda index: progress.merge_result(f"unit-{index}"), range(500)))

    assert progress.result_count == 500
    assert sorted(progress.take_results()) == sorted(f"unit-{index}" for index in range(500))
    assert progress.result_count == 0
