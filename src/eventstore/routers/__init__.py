"""HTTP routers for the event store."""
