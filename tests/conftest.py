"""Shared fixtures: bearerbox status documents and instance configs."""

from collections.abc import Callable
from datetime import datetime

import pytest

from kannelstatus.config import Config, InstanceConfig, MonitorConfig
from kannelstatus.fetcher import status_url
from kannelstatus.models import StatusFetch

# Shaped like the status.xml a 1.4.x bearerbox returns.
STATUS_XML = """<?xml version="1.0"?>
<gateway>
<version>Kannel bearerbox version `1.4.5'.
Build `Jun  1 2020 10:00:00', compiler `9.3.0'.</version>
<status>running, uptime 2d 3h 10m 5s</status>
<wdp><received><total>7</total><queued>0</queued></received><sent><total>8</total><queued>0</queued></sent><inbound>0.00</inbound><outbound>0.00</outbound></wdp>
<sms><received><total>1234567</total><queued>12</queued></received><sent><total>2500</total><queued>95</queued></sent><storesize>0</storesize><inbound>12.50</inbound><outbound>3.25</outbound></sms>
<dlr><queued>0</queued><storage>internal</storage></dlr>
<boxes>
<box><type>smsbox</type><id>sms1</id><IP>10.0.0.5</IP><queue>3</queue><status>on-line 0d 1h 2m 3s</status><ssl>no</ssl></box>
<box><type>wapbox</type><id></id><IP>10.0.0.6</IP><queue>0</queue><status>on-line 1d 0h 0m 0s</status><ssl>yes</ssl></box>
</boxes>
<smscs><count>4</count>
<smsc><name>SMPP:a.example.com:2775</name><id>link-a</id><status>online 3600s</status><received>100</received><sent>200</sent><failed>1</failed><queued>0</queued></smsc>
<smsc><name>SMPP:b.example.com:2775</name><id>link-b</id><status>online 60s</status><received>5</received><sent>6</sent><failed>0</failed><queued>2</queued></smsc>
<smsc><name>SMPP:c.example.com:2775</name><id>link-c</id><status>disconnected</status><received>0</received><sent>0</sent><failed>0</failed><queued>4</queued></smsc>
<smsc><name>HTTP:d</name><id>link-d</id><status>re-connecting</status><received>0</received><sent>0</sent><failed>3</failed><queued>0</queued></smsc>
</smscs>
</gateway>
"""

NOW = datetime(2026, 1, 17, 12, 0, 0)


def build_status_xml(
    *,
    status: str = "running, uptime 2d 3h 10m 5s",
    received: int = 0,
    received_queued: int = 0,
    sent: int = 0,
    sent_queued: int = 0,
    inbound: str = "0.00",
    outbound: str = "0.00",
    boxes: tuple[tuple[str, str], ...] = (),
    links: tuple[tuple[str, str], ...] = (),
) -> str:
    """Build a minimal status document.

    Args:
        boxes: (type, id) pairs.
        links: (smsc-id, status text) pairs.
    """
    box_xml = "".join(
        f"<box><type>{box_type}</type><id>{box_id}</id><IP>127.0.0.1</IP><queue>0</queue>"
        f"<status>on-line 0d 0h 5m 0s</status><ssl>no</ssl></box>"
        for box_type, box_id in boxes
    )
    link_xml = "".join(
        f"<smsc><name>{link_id}-name</name><id>{link_id}</id><status>{link_status}</status>"
        f"<received>1</received><sent>2</sent><failed>0</failed><queued>0</queued></smsc>"
        for link_id, link_status in links
    )
    return f"""<?xml version="1.0"?>
<gateway>
<version>Kannel bearerbox version `1.4.5'.</version>
<status>{status}</status>
<sms><received><total>{received}</total><queued>{received_queued}</queued></received><sent><total>{sent}</total><queued>{sent_queued}</queued></sent><inbound>{inbound}</inbound><outbound>{outbound}</outbound></sms>
<boxes>{box_xml}</boxes>
<smscs><count>{len(links)}</count>{link_xml}</smscs>
</gateway>
"""


def make_fetch(bodies: dict[str, str | None]) -> Callable[[InstanceConfig, str], StatusFetch]:
    """Create a fetch function serving canned bodies by instance name.

    A None body simulates a connection failure.
    """

    def fetch(instance: InstanceConfig, user_agent: str) -> StatusFetch:
        body = bodies[instance.name]
        if body is None:
            return StatusFetch(
                instance=instance,
                url=status_url(instance),
                body="",
                error="Connection failed: connection refused",
            )
        return StatusFetch(instance=instance, url=status_url(instance), body=body, error=None)

    return fetch


@pytest.fixture
def instance() -> InstanceConfig:
    """Create a single instance configuration."""
    return InstanceConfig(
        name="Kannel 1",
        base_url="http://kannel.example.com:13000",
        status_password="foobar",
        admin_password="admin",
        timeout=5,
    )


@pytest.fixture
def three_instances() -> list[InstanceConfig]:
    """Create three instance configurations on different ports."""
    return [
        InstanceConfig(
            name=f"Kannel {n}",
            base_url=f"http://kannel.example.com:{n}3000",
            status_password="foobar",
            admin_password="admin",
        )
        for n in (1, 2, 3)
    ]


@pytest.fixture
def config(three_instances: list[InstanceConfig]) -> Config:
    """Create a configuration monitoring three instances."""
    return Config(
        instances=three_instances,
        monitor=MonitorConfig(max_workers=3, render_timeout=5),
    )
