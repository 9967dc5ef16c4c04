"""Linking package __init__.py"""
from .pending import PendingLink, PendingLinkRegistry
from .store import IdentityMapStore
from .resolver import LinkOutcome, LinkResolver, LinkResult, parse_link_command

__all__ = [
    "PendingLink", "PendingLinkRegistry",
    "IdentityMapStore",
    "LinkOutcome", "LinkResolver", "LinkResult", "parse_link_command",
]
