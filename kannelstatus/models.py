"""Data models for bearerbox status results."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .config import InstanceConfig


class LinkState(str, Enum):
    """Lifecycle state of an SMSC link, as worded by the bearerbox."""

    ONLINE = "online"
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    RECONNECTING = "re-connecting"
    DEAD = "dead"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class StatusFetch:
    """Result of fetching one instance's status document.

    Attributes:
        instance: The instance that was polled.
        url: Status URL that was requested (including the password).
        body: Raw response body, empty string if the fetch failed.
        error: Error description if the fetch failed, None otherwise.
        response_time_ms: Time spent on the request in milliseconds.
    """

    instance: InstanceConfig
    url: str
    body: str
    error: str | None
    response_time_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class Uptime:
    """An uptime counter split into its parts, with the derived start time.

    Attributes:
        label: Text before the uptime (e.g. "running"), empty for boxes.
        days, hours, minutes, seconds: Uptime components as reported.
        started: Current time minus the total uptime.
    """

    label: str
    days: int
    hours: int
    minutes: int
    seconds: int
    started: datetime

    @property
    def total_seconds(self) -> int:
        return self.days * 86400 + self.hours * 3600 + self.minutes * 60 + self.seconds

    def __str__(self) -> str:
        return f"{self.days}d {self.hours}h {self.minutes}m {self.seconds}s"


@dataclass(frozen=True)
class BoxInfo:
    """A box (smsbox, wapbox, ...) connected to the bearerbox."""

    type: str
    id: str
    ip: str
    queue: str
    status: str
    ssl: str
    uptime: Uptime | None = None


@dataclass(frozen=True)
class LinkInfo:
    """One SMSC link and its counters.

    Attributes:
        id: The smsc-id used by admin commands.
        name: Descriptive connection name.
        status: Raw status text (e.g. "online 3600s").
        state: Recognized state, or None if the text matches none.
        received, sent, failed, queued: Message counters.
        online_seconds: Seconds online, when the status carries it.
        started: Current time minus online_seconds.
    """

    id: str
    name: str
    status: str
    state: LinkState | None
    received: int
    sent: int
    failed: int
    queued: int
    online_seconds: int | None = None
    started: datetime | None = None


@dataclass(frozen=True)
class InstanceReport:
    """Everything the dashboard shows for one instance in one render.

    Built from a StatusFetch. For a failed fetch every metric is empty or
    zero so the instance adds nothing to the overall sums.
    """

    index: int
    fetch: StatusFetch
    uptime: Uptime | None = None
    inbound: float = 0.0
    outbound: float = 0.0
    inbound_text: str = ""
    outbound_text: str = ""
    version: str = ""
    received_total: int = 0
    received_queued: int = 0
    sent_total: int = 0
    sent_queued: int = 0
    boxes: list[BoxInfo] = field(default_factory=list)
    links: list[LinkInfo] = field(default_factory=list)
    link_count: int = 0
    link_states: dict[LinkState, int] = field(default_factory=dict)
    link_ids: dict[LinkState, list[str]] = field(default_factory=dict)

    @property
    def instance(self) -> InstanceConfig:
        return self.fetch.instance

    @property
    def ok(self) -> bool:
        return self.fetch.ok

    @property
    def has_status(self) -> bool:
        """True when the fetch succeeded and returned a non-empty document."""
        return self.fetch.ok and bool(self.fetch.body)


@dataclass(frozen=True)
class Totals:
    """Cross-instance sums for one render."""

    received: int = 0
    inbound: float = 0.0
    sent: int = 0
    outbound: float = 0.0
    queued_mo: int = 0
    queued_mt: int = 0
    links: int = 0
    link_states: dict[LinkState, int] = field(default_factory=dict)
