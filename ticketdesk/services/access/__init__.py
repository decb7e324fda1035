"""Ticket access resolution."""

from ticketdesk.services.access.facts import (
    AccessDecision,
    AccessFacts,
    AccessFactsLookup,
    AccessGrant,
    EffectiveAccess,
    TicketFacts,
)
from ticketdesk.services.access.resolver import AccessResolver, decide, parse_resource_id

__all__ = [
    "AccessDecision",
    "AccessFacts",
    "AccessFactsLookup",
    "AccessGrant",
    "AccessResolver",
    "EffectiveAccess",
    "TicketFacts",
    "decide",
    "parse_resource_id",
]
