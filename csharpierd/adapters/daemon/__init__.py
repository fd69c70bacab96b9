"""Management of the CSharpier formatting server process.

This package keeps one CSharpier server running across CLI invocations and
proxies format requests to it over HTTP.

Architecture:
- lock.py: Lock serializing concurrent CLI invocations
- health.py: Process liveness and HTTP responsiveness probes
- lifecycle.py: Server process spawn/stop
- client.py: Format requests (implements the request proxy)
"""

from csharpierd.adapters.daemon.client import FormatClient

__all__ = ["FormatClient"]
