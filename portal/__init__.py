"""EPIC-Q portal application.

Server side: models, global search, the unified notification feed and its
WebSocket refresh signal.  ``portal.client`` holds the async API client
used by the coordinator and admin front ends.
"""
