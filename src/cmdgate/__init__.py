"""cmdgate -- Minimal HTTP daemon with a gated command endpoint.

Serves a static info page, a health probe, and a ``/cmd`` endpoint that
runs one of a handful of server-defined shell commands and returns
their captured output.
"""

__version__ = "0.1.0"
