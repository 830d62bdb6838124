from concurrent.futures import ThreadPoolExecutor

from catalog_sync.pipeline.reporter import Entity, Outcome, RunReporter


def test_counts_and_failures_are_aggregated():
    reporter = RunReporter()
    reporter.record(Entity.CATEGORY, Outcome.CREATED)
    reporter.record(Entity.RESOURCE, Outcome.UPDATED)
    reporter.record_failure(Entity.RESOURCE, "https://b", "boom")
    reporter.record_invalid_row("line 3: missing url")

    summary = reporter.summary()

    assert summary.count(Entity.CATEGORY, Outcome.CREATED) == 1
    assert summary.count(Entity.RESOURCE, Outcome.UPDATED) == 1
    assert summary.count(Entity.RESOURCE, Outcome.FAILED) == 1
    assert summary.total_failed == 1
    assert summary.ok is False
    assert summary.failures[0].key == "https://b"
    assert summary.invalid_rows == ["line 3: missing url"]


def test_format_lines_lists_every_entity_and_failure():
    reporter = RunReporter()
    reporter.record_failure(Entity.SUBCATEGORY, "ai/llm", "blocked-by-parent")

    lines = reporter.summary().format_lines()

    assert lines[0] == "category: 0 created, 0 updated, 0 skipped, 0 failed"
    assert lines[1] == "subcategory: 0 created, 0 updated, 0 skipped, 1 failed"
    assert lines[-1] == "FAILED subcategory ai/llm: blocked-by-parent"


def test_summary_is_a_snapshot():
    reporter = RunReporter()
    summary = reporter.summary()
    reporter.record(Entity.CATEGORY, Outcome.CREATED)
    assert summary.count(Entity.CATEGORY, Outcome.CREATED) == 0


def test_concurrent_records_are_not_lost():
    reporter = RunReporter()

    def work(index: int) -> None:
        reporter.record(Entity.RESOURCE, Outcome.CREATED)

    with ThreadPoolExecutor(max_workers=8) as executor:
        list(executor.map(work, range(500)))

    assert reporter.summary().count(Entity.RESOURCE, Outcome.CREATED) == 500
