"""RouteWatch — synthetic endpoint monitoring with an SSRF-safe outbound pipeline."""

__version__ = "0.1.0"
