"""Unit tests for the end-to-end outage pipeline."""

import pytest
from structlog.testing import capture_logs

from outage_calc.core.exceptions import (
    MalformedDurationError,
    MissingImputationBasisError,
    NonAlternatingEventsError,
)
from outage_calc.schemas.events import END_OF_TIME
from outage_calc.services import pipeline
from outage_calc.services.downtime import build_downtime_intervals
from outage_calc.services.imputer import impute_missing_events
from outage_calc.services.pipeline import compute_outages, group_by_host
from tests.factories import at, make_event


def _spans(report):
    return [(w.start, w.end) for w in report.windows]


class TestGroupByHost:
    def test_first_appearance_order(self):
        events = [
            make_event("B", "down", "01:00"),
            make_event("A", "down", "02:00"),
            make_event("B", "up", "03:00"),
        ]
        grouped = group_by_host(events)
        assert list(grouped) == ["B", "A"]
        assert len(grouped["B"]) == 2


class TestComputeOutages:
    def test_two_hosts_overlapping_downtime(self):
        events = [
            make_event("A", "down", "10:00"),
            make_event("A", "up", "10:30"),
            make_event("B", "down", "10:15"),
            make_event("B", "up", "10:45"),
        ]
        report = compute_outages(events)

        assert _spans(report) == [(at("10:15"), at("10:30"))]
        assert report.complete
        assert report.always_up_hosts == []

    def test_host_never_down_flags_uptime(self):
        events = [
            make_event("A", "down", "10:00"),
            make_event("A", "up", "10:30"),
            make_event("B", "down", "10:00"),
            make_event("B", "up", "10:30"),
        ]
        flagged = []
        report = compute_outages(events, expected_hosts=["A", "B", "C"], on_always_up=flagged.append)

        assert report.windows == []
        assert report.always_up_hosts == ["C"]
        assert report.unmonitored_hosts == ["C"]
        assert flagged == ["C"]

    def test_host_reporting_only_up_was_down_before_the_log(self):
        events = [
            make_event("A", "down", "10:00"),
            make_event("A", "up", "10:30"),
            make_event("B", "down", "10:00"),
            make_event("B", "up", "10:30"),
            make_event("C", "up", "09:00"),
        ]
        report = compute_outages(events)

        assert report.windows == []
        assert report.always_up_hosts == []

    def test_imputation_scenario(self):
        events = [
            make_event("A", "down", "00:00"),
            make_event("A", "down", "02:00", hint="1hr"),
        ]
        report = compute_outages(events)

        assert _spans(report) == [(at("00:00"), at("01:00")), (at("02:00"), END_OF_TIME)]
        [summary] = report.hosts
        assert summary.host == "A"
        assert summary.events == 2
        assert summary.imputed == 1
        assert summary.downtime_intervals == 2

    def test_empty_input(self):
        report = compute_outages([])
        assert report.windows == []
        assert report.hosts == []

    def test_missing_hint_aborts_run(self):
        events = [
            make_event("A", "down", "00:00"),
            make_event("A", "down", "02:00"),
            make_event("B", "down", "00:00"),
        ]
        with capture_logs() as logs:
            with pytest.raises(MissingImputationBasisError):
                compute_outages(events)
        failed = [entry for entry in logs if entry["event"] == "host_processing_failed"]
        assert failed[0]["host"] == "A"

    def test_malformed_hint_aborts_run(self):
        events = [
            make_event("A", "up", "00:00"),
            make_event("A", "up", "02:00", hint="1 hour"),
        ]
        with pytest.raises(MalformedDurationError):
            compute_outages(events)

    def test_skip_failed_hosts_marks_report_incomplete(self):
        events = [
            make_event("A", "down", "00:00"),
            make_event("A", "down", "02:00"),
            make_event("B", "down", "01:00"),
            make_event("B", "up", "03:00"),
        ]
        report = compute_outages(events, skip_failed_hosts=True)

        assert not report.complete
        assert [f.host for f in report.failures] == ["A"]
        assert report.failures[0].code == "missing_imputation_basis"
        assert _spans(report) == [(at("01:00"), at("03:00"))]

    def test_contract_violation_always_propagates(self, monkeypatch):
        monkeypatch.setattr(pipeline, "impute_missing_events", lambda events: iter(events))
        events = [make_event("A", "down", "00:00"), make_event("A", "down", "01:00")]
        with pytest.raises(NonAlternatingEventsError):
            compute_outages(events, skip_failed_hosts=True)

    def test_unsorted_input(self):
        events = [
            make_event("B", "up", "10:45"),
            make_event("A", "up", "10:30"),
            make_event("B", "down", "10:15"),
            make_event("A", "down", "10:00"),
        ]
        assert _spans(compute_outages(events)) == [(at("10:15"), at("10:30"))]

    def test_every_window_covered_by_every_host(self):
        events = [
            make_event("A", "up", "01:00"),
            make_event("A", "down", "03:00"),
            make_event("A", "up", "06:00"),
            make_event("A", "down", "08:00"),
            make_event("B", "down", "00:30"),
            make_event("B", "up", "04:00"),
            make_event("B", "up", "07:30", hint="2hrs"),
            make_event("C", "up", "02:00"),
            make_event("C", "down", "02:30"),
        ]
        report = compute_outages(events)

        assert _spans(report) == [
            (at("00:30"), at("01:00")),
            (at("03:00"), at("04:00")),
            (at("05:30"), at("06:00")),
        ]
        for window in report.windows:
            for host, host_events in group_by_host(events).items():
                intervals = list(build_downtime_intervals(impute_missing_events(host_events)))
                assert any(i.start <= window.start and window.end <= i.end for i in intervals), host

    def test_same_instant_flap_gives_one_maximal_window(self):
        events = [
            make_event("A", "down", "00:00"),
            make_event("A", "up", "01:00"),
            make_event("A", "down", "01:00"),
            make_event("A", "up", "02:00"),
            make_event("B", "down", "00:00"),
            make_event("B", "up", "03:00"),
        ]
        report = compute_outages(events)

        assert _spans(report) == [(at("00:00"), at("02:00"))]
        for previous, current in zip(report.windows, report.windows[1:]):
            assert previous.end < current.start

    def test_hint_reaching_past_previous_event_can_be_skipped(self):
        events = [
            make_event("A", "down", "01:00"),
            make_event("A", "down", "02:00", hint="3hrs"),
            make_event("B", "down", "01:00"),
            make_event("B", "up", "03:00"),
        ]
        report = compute_outages(events, skip_failed_hosts=True)

        assert [f.host for f in report.failures] == ["A"]
        assert report.failures[0].code == "missing_imputation_basis"
