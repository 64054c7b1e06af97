"""docweaver version.

Read by the CLI ``--version`` option, the startup error report and the
``User-Agent`` header sent to LLM endpoints. Keep in step with
``pyproject.toml``.
"""

from __future__ import annotations

__version__ = "0.3.0"
