"""
Idempotent bucket provisioning, run on every cold start.
"""

from __future__ import annotations

import logging
from typing import Iterable

from portfolio_backend.storage import ObjectStore
from portfolio_backend.uploads import AssetPolicy

logger = logging.getLogger(__name__)


def ensure_bucket(store: ObjectStore, policy: AssetPolicy) -> bool:
    """
    Create the policy's bucket if it does not exist yet.

    An existing bucket gets its access settings re-applied, which finishes a
    provisioning run that failed after the bucket itself was created.
    Returns True when the bucket is ready. Failures are logged and reported
    as False so the remaining routes stay servable.
    """
    allowed = list(policy.allowed_mime_types)
    try:
        if store.bucket_exists(policy.bucket):
            store.configure_bucket(policy.bucket, allowed_mime_types=allowed, public=False)
            return True
        store.create_bucket(policy.bucket, allowed_mime_types=allowed, public=False)
    except Exception:
        logger.exception("Error initializing %s bucket %s", policy.label, policy.bucket)
        return False
    logger.info("Created %s bucket %s", policy.label, policy.bucket)
    return True


def ensure_buckets(store: ObjectStore, policies: Iterable[AssetPolicy]) -> dict[str, bool]:
    return {policy.bucket: ensure_bucket(store, policy) for policy in policies}
