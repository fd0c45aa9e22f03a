"""Tests for folded keys, counters and fold statistics."""

import logging
from collections import Counter

from stackfold import FoldStats, fold_key, merge_counters, process_label
from stackfold.aggregate import MAX_WARNINGS, record_sample


class TestProcessLabel:
    def test_comm_only(self):
        assert process_label("app", 10, 11) == "app"

    def test_pid(self):
        assert process_label("app", 10, 11, include_pid=True) == "app-10"

    def test_pid_and_tid(self):
        assert process_label("app", 10, 11, include_pid=True, include_tid=True) == "app-10/11"

    def test_tid_only(self):
        assert process_label("app", 10, 11, include_tid=True) == "app/11"

    def test_missing_pid(self):
        assert process_label("app", None, 11, include_pid=True, include_tid=True) == "app-?/11"

    def test_spaces_replaced(self):
        assert process_label("V8 WorkerThread", 1, 2) == "V8_WorkerThread"


def test_fold_key():
    assert fold_key("app", ["main", "work"]) == "app;main;work"
    assert fold_key("app", []) == "app"


def test_record_sample_counts():
    c = Counter()
    record_sample(c, "app", ["main"])
    record_sample(c, "app", ["main"])
    record_sample(c, "app", [])
    assert c == Counter({"app;main": 2, "app": 1})


def test_merge_counters_sums_and_consumes():
    a = Counter({"app;main": 2, "app;x": 1})
    b = Counter({"app;main": 3})
    merged = merge_counters([a, b])
    assert merged == Counter({"app;main": 5, "app;x": 1})
    assert not a and not b


def test_stats_merge():
    a = FoldStats(records=3, kept=2, filtered=1)
    a.merge(FoldStats(records=1, kept=1, malformed_frames=4))
    assert (a.records, a.kept, a.filtered, a.malformed_frames) == (4, 3, 1, 4)


def test_warnings_are_capped(caplog):
    caplog.set_level(logging.WARNING)
    log = logging.getLogger("stackfold.test")
    stats = FoldStats()
    for i in range(MAX_WARNINGS + 5):
        stats.warn(log, "bad line %d", i)
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    # MAX_WARNINGS messages plus the notice about the rest
    assert len(warnings) == MAX_WARNINGS + 1
    assert stats.warnings == MAX_WARNINGS + 5
