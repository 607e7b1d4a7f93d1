"""
Provision the certificate and project-media buckets.

The API does this on every cold start; this script runs the same bootstrap
by hand, e.g. after rotating storage credentials or pointing at a new
endpoint.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portfolio_backend.bootstrap import ensure_buckets
from portfolio_backend.dependencies import get_asset_policies, get_object_store

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only report which buckets exist; create nothing.",
    )
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)

    store = get_object_store()
    policies = get_asset_policies()
    if args.dry_run:
        for policy in policies:
            exists = store.bucket_exists(policy.bucket)
            logger.info("%s: %s", policy.bucket, "present" if exists else "missing")
        return 0

    results = ensure_buckets(store, policies)
    failed = [bucket for bucket, ok in results.items() if not ok]
    for bucket in failed:
        logger.error("Bucket %s could not be provisioned", bucket)
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
