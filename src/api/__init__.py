"""HTTP layer: app factory, routers and dependencies."""
