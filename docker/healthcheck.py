"""Container healthcheck: exit 0 when the API answers its probe.

``LMN_HEALTHCHECK_PATH=/ready`` switches from liveness to readiness, so
the container only reports healthy once the service is wired.
"""

from __future__ import annotations

import os
import sys
import urllib.error
import urllib.request

port = os.environ.get("LMN_API_PORT", "8080")
path = os.environ.get("LMN_HEALTHCHECK_PATH", "/health")

try:
    with urllib.request.urlopen(f"http://localhost:{port}{path}", timeout=5) as resp:
        status = resp.status
except (urllib.error.URLError, OSError) as e:
    print(f"healthcheck {path} failed: {e}", file=sys.stderr)
    sys.exit(1)

sys.exit(0 if status == 200 else 1)
