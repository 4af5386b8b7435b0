"""Slack Web API and RTM adapter."""

from sacana.adapters.slack.client import SlackClient
from sacana.adapters.slack.payloads import decode_event
from sacana.adapters.slack.rtm import RtmStream

__all__ = ["SlackClient", "decode_event", "RtmStream"]
