"""Admin command URLs for the bearerbox HTTP administration interface.

The dashboard only builds the links; the operator's browser issues the
request after a confirmation prompt.
"""

from urllib.parse import urlencode

from .config import InstanceConfig

# Instance-wide commands, in the order they are shown.
ADMIN_COMMANDS = ("suspend", "isolate", "resume", "flush-dlr", "shutdown", "restart")

# Per-link commands, each taking an smsc-id.
LINK_COMMANDS = ("stop-smsc", "start-smsc")


def admin_url(instance: InstanceConfig, command: str) -> str:
    """Build the URL for an instance-wide admin command.

    Raises:
        ValueError: If the command is not a known instance command.
    """
    if command not in ADMIN_COMMANDS:
        raise ValueError(f"Unknown admin command: {command}")
    query = urlencode({"password": instance.admin_password})
    return f"{instance.base_url}/{command}?{query}"


def link_admin_url(instance: InstanceConfig, command: str, smsc_id: str) -> str:
    """Build the URL for a per-link admin command (stop-smsc, start-smsc).

    Raises:
        ValueError: If the command is not a known link command.
    """
    if command not in LINK_COMMANDS:
        raise ValueError(f"Unknown link command: {command}")
    query = urlencode({"password": instance.admin_password, "smsc": smsc_id})
    return f"{instance.base_url}/{command}?{query}"
