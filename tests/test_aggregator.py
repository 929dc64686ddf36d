import threading

import pytest

from dirprobe.aggregator import ResultAggregator, write_report
from dirprobe.models import Classification, ProbeOutcome, ProbeState


def _found(candidate, status=200):
    return ProbeOutcome(candidate=candidate, url="http://x/" + candidate, state=ProbeState.COMPLETED,
                        status=status, classification=Classification.HIGHLIGHT)


def test_append_order_and_lines():
    agg = ResultAggregator()
    agg.add(_found("b", 301))
    agg.add(_found("a"))
    assert len(agg) == 2
    assert agg.lines() == ["b - Status: 301", "a - Status: 200"]


def test_rejects_ignored_outcomes():
    agg = ResultAggregator()
    with pytest.raises(ValueError):
        agg.add(ProbeOutcome(candidate="x", url="u", state=ProbeState.COMPLETED, status=404))
    assert len(agg) == 0


def test_finalize_once():
    agg = ResultAggregator()
    agg.add(_found("a"))
    result = agg.finalize(processed=3, total=3, elapsed=1.5)
    assert result.lines() == ["a - Status: 200"]
    assert (result.processed, result.total, result.elapsed, result.cancelled) == (3, 3, 1.5, False)
    with pytest.raises(RuntimeError):
        agg.finalize(processed=3, total=3, elapsed=1.5)
    with pytest.raises(RuntimeError):
        agg.add(_found("b"))


def test_concurrent_appends():
    agg = ResultAggregator()

    def worker(n):
        for i in range(100):
            agg.add(_found(f"{n}-{i}"))

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    lines = agg.lines()
    assert len(lines) == 800
    assert len(set(lines)) == 800


def test_write_report_overwrites(tmp_path):
    out = tmp_path / "results.txt"
    out.write_text("stale\nstale\nstale\n")
    agg = ResultAggregator()
    agg.add(_found("admin"))
    agg.add(_found("backup.zip", 301))
    write_report(out, agg.finalize(processed=2, total=2, elapsed=0.1))
    assert out.read_text().splitlines() == ["admin - Status: 200", "backup.zip - Status: 301"]


def test_write_report_empty(tmp_path):
    out = tmp_path / "results.txt"
    write_report(out, ResultAggregator().finalize(processed=0, total=0, elapsed=0))
    assert out.read_text() == ""
