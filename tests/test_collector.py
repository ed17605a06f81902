"""Tests for concurrent collection and cross-instance sums."""

import threading

from kannelstatus.collector import aggregate, collect, fetch_all
from kannelstatus.config import Config, InstanceConfig, MonitorConfig
from kannelstatus.fetcher import status_url
from kannelstatus.models import LinkState, StatusFetch
from kannelstatus.render import render_dashboard

from conftest import NOW, build_status_xml, make_fetch


class TestFetchAll:
    """Tests for fetch_all function."""

    def test_preserves_configured_order(self, config: Config) -> None:
        bodies = {f"Kannel {n}": build_status_xml(received=n) for n in (1, 2, 3)}

        results = fetch_all(config, fetch=make_fetch(bodies))

        assert [r.instance.name for r in results] == ["Kannel 1", "Kannel 2", "Kannel 3"]
        assert all(r.ok for r in results)

    def test_passes_user_agent(self, config: Config) -> None:
        seen: list[str] = []

        def fetch(instance: InstanceConfig, user_agent: str) -> StatusFetch:
            seen.append(user_agent)
            return StatusFetch(instance=instance, url=status_url(instance), body="", error=None)

        fetch_all(config, fetch=fetch)

        assert seen == [config.monitor.user_agent] * 3

    def test_exception_becomes_failed_fetch(self, config: Config) -> None:
        """A crashing fetch fails only its own instance."""

        def fetch(instance: InstanceConfig, user_agent: str) -> StatusFetch:
            if instance.name == "Kannel 2":
                raise RuntimeError("boom")
            return StatusFetch(instance=instance, url=status_url(instance), body="<gateway/>", error=None)

        results = fetch_all(config, fetch=fetch)

        assert [r.ok for r in results] == [True, False, True]
        assert results[1].error == "boom"

    def test_slow_instance_hits_render_timeout(self, three_instances: list[InstanceConfig]) -> None:
        """An instance still pending at the render timeout is marked failed."""
        config = Config(instances=three_instances, monitor=MonitorConfig(render_timeout=1, max_workers=3))
        release = threading.Event()

        def fetch(instance: InstanceConfig, user_agent: str) -> StatusFetch:
            if instance.name == "Kannel 3":
                release.wait(5)
            return StatusFetch(instance=instance, url=status_url(instance), body="<gateway/>", error=None)

        try:
            results = fetch_all(config, fetch=fetch)
        finally:
            release.set()

        assert [r.ok for r in results] == [True, True, False]
        assert results[2].error == "No response within 1s render timeout"


class TestCollect:
    """Tests for collect function."""

    def test_failed_instance_contributes_nothing(self, config: Config) -> None:
        """Instance 2 is down: the others render, and it adds nothing to totals."""
        bodies = {
            "Kannel 1": build_status_xml(received=10, sent=20, links=(("a", "online 5s"),)),
            "Kannel 2": None,
            "Kannel 3": build_status_xml(received=30, sent=40, links=(("b", "online 5s"), ("c", "dead"))),
        }

        reports = collect(config, now=NOW, fetch=make_fetch(bodies))
        totals = aggregate(reports)

        assert [r.index for r in reports] == [0, 1, 2]
        assert [r.ok for r in reports] == [True, False, True]
        assert reports[1].fetch.error == "Connection failed: connection refused"
        assert totals.received == 40
        assert totals.sent == 60
        assert totals.links == 3
        assert totals.link_states[LinkState.ONLINE] == 2
        assert totals.link_states[LinkState.DEAD] == 1

    def test_all_instances_down(self, config: Config) -> None:
        bodies = {f"Kannel {n}": None for n in (1, 2, 3)}

        reports = collect(config, now=NOW, fetch=make_fetch(bodies))
        totals = aggregate(reports)

        assert not any(r.ok for r in reports)
        assert totals.received == 0
        assert totals.links == 0


class TestAggregate:
    """Tests for aggregate function."""

    def test_sums_counters(self, config: Config) -> None:
        bodies = {
            "Kannel 1": build_status_xml(
                received=100, received_queued=1, sent=200, sent_queued=2, inbound="1.50", outbound="0.25"
            ),
            "Kannel 2": build_status_xml(
                received=5, received_queued=3, sent=6, sent_queued=4, inbound="2.00", outbound="0.75"
            ),
            "Kannel 3": build_status_xml(),
        }

        totals = aggregate(collect(config, now=NOW, fetch=make_fetch(bodies)))

        assert totals.received == 105
        assert totals.sent == 206
        assert totals.queued_mo == 4
        assert totals.queued_mt == 6
        assert totals.inbound == 3.5
        assert totals.outbound == 1.0

    def test_empty_report_list(self) -> None:
        """With no reports every total is zero and every state is present."""
        totals = aggregate([])

        assert totals.received == 0
        assert totals.inbound == 0.0
        assert totals.links == 0
        assert set(totals.link_states) == set(LinkState)
        assert all(count == 0 for count in totals.link_states.values())


class TestOversizedCounters:
    """A malformed counter stays local to its instance."""

    def test_page_renders_all_instances(self, config: Config) -> None:
        huge = "9" * 400
        bodies = {
            "Kannel 1": build_status_xml(received=10),
            "Kannel 2": build_status_xml(received=int(huge), inbound=huge),
            "Kannel 3": build_status_xml(received=30),
        }

        reports = collect(config, now=NOW, fetch=make_fetch(bodies))
        totals = aggregate(reports)
        html = render_dashboard(reports, totals, refresh=60, now=NOW)

        assert reports[1].received_total == int(huge)
        assert reports[1].inbound == 0.0
        assert totals.received == int(huge) + 40
        assert '<span class="green">(0) (Kannel 1) ' in html
        assert '<span class="green">(2) (Kannel 3) ' in html
        assert "(0) <b>10</b> msgs<br />" in html
        assert "(2) <b>30</b> msgs<br />" in html
