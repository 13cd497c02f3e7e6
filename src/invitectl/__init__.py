"""invitectl — invite accounting and rank promotion for community guilds."""

__version__ = "0.3.0"
