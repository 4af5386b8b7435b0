"""sacana: Slack-driven account provisioning bot."""

from sacana.config import __version__
