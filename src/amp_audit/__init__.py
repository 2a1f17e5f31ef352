"""amp-audit core library.

This package discovers (canonical URL, AMP URL) pairs from a seed page or
sitemap and validates the AMP pages it finds, one throttled request at a time.

Repo rules:
- Per-item failures are recorded in the report, never retried.
- Only a failed seed fetch aborts a run.
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
