"""Summary figures derived from the metadata store."""

from collections import Counter
from datetime import datetime
from typing import Optional

from common.constants import DEFAULT_MIME_TYPE, NO_TYPE_SENTINEL
from common.types import UploadStatistics
from lifecycle.metadata_store import MetadataStore


def get_upload_statistics(store: MetadataStore, now: Optional[datetime] = None) -> UploadStatistics:
    """
    Scan the live records and summarize them.

    uploads_today compares calendar days in the machine's local timezone.
    most_uploaded_type breaks ties by the order records are listed in.

    Args:
        store: Store to scan
        now: Reference time for "today" (defaults to the store's clock)

    Returns:
        UploadStatistics; all zero with most_uploaded_type "none" for an empty store
    """
    records = store.get_stored_files()
    if not records:
        return UploadStatistics()

    if now is None:
        now = store.clock()
    today = now.astimezone().date()

    total_size = sum(r.size for r in records)
    uploads_today = sum(1 for r in records if r.uploaded_at.astimezone().date() == today)

    # Counter.most_common keeps first-encountered order among equal counts
    type_counts = Counter(r.content_type or DEFAULT_MIME_TYPE for r in records)
    most_uploaded_type = type_counts.most_common(1)[0][0] if type_counts else NO_TYPE_SENTINEL

    return UploadStatistics(
        total_uploads=len(records),
        uploads_today=uploads_today,
        total_size=total_size,
        average_file_size=round(total_size / len(records)),
        most_uploaded_type=most_uploaded_type,
    )
