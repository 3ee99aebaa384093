"""RouteWatch HTTP API routers."""
