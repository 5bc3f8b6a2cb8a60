"""Static informational page served at ``/`` and ``/index.html``."""

from __future__ import annotations

import math
import platform
import sys
from string import Template

_PAGE = Template("""
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>cmdgate</title>
  <style>
    * { margin: 0; padding: 0; box-sizing: border-box; }
    body {
      font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Oxygen, Ubuntu, Cantarell, sans-serif;
      background: #000; color: #fff; min-height: 100vh;
      display: flex; align-items: center; justify-content: center; padding: 20px;
    }
    .container { text-align: center; max-width: 720px; }
    h1 { font-size: 3rem; margin-bottom: 1rem; font-weight: 300; }
    p { font-size: 1.1rem; color: #ccc; margin-bottom: 1.5rem; }
    .info { background: #111; padding: 1.5rem; border-radius: 8px; margin-top: 1.5rem; }
    .info-item { margin: .6rem 0; padding: .5rem; border-bottom: 1px solid #222; }
    .label { color: #888; font-size: 0.9rem; }
    .value { color: #fff; font-size: 1.05rem; margin-top: .25rem; }
  </style>
</head>
<body>
  <div class="container">
    <h1>cmdgate</h1>
    <p>Health probe at /health, whitelisted commands at /cmd?command=&lt;name&gt;</p>
    <div class="info">
      <div class="info-item"><div class="label">Server</div><div class="value">$runtime</div></div>
      <div class="info-item"><div class="label">Port</div><div class="value">$port</div></div>
      <div class="info-item"><div class="label">Platform</div><div class="value">$platform</div></div>
      <div class="info-item"><div class="label">Uptime</div><div class="value">$uptime seconds</div></div>
    </div>
  </div>
</body>
</html>
""")


def runtime_version() -> str:
    return f"{platform.python_implementation()} {platform.python_version()}"


def render_info_page(port: int, uptime_seconds: float) -> str:
    """Render the info page; uptime is shown in whole seconds."""
    return _PAGE.substitute(
        runtime=runtime_version(),
        port=port,
        platform=sys.platform,
        uptime=math.floor(uptime_seconds),
    )
