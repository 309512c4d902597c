"""Strava MCP server with a stateless OAuth delegation front end."""

__version__ = "1.0.0"
