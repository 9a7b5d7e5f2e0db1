# tests/test_taxonomy.py
from app.core.taxonomy import (
    CATALOG,
    EMERGENCY_SYMPTOMS,
    ROUTINE_SYMPTOMS,
    URGENT_SYMPTOMS,
    Urgency,
    bucket_of,
    entries_for,
)


def test_buckets_are_disjoint_and_complete():
    all_phrases = [e.text for e in CATALOG]
    assert len(all_phrases) == len(set(all_phrases))
    assert len(all_phrases) == len(EMERGENCY_SYMPTOMS) + len(URGENT_SYMPTOMS) + len(ROUTINE_SYMPTOMS)


def test_bucket_lookup_for_canned_phrases():
    assert bucket_of("Seizures or convulsions") is Urgency.EMERGENCY
    assert bucket_of("Persistent vomiting") is Urgency.URGENT
    assert bucket_of("Minor scratching") is Urgency.ROUTINE


def test_free_text_is_not_classified():
    assert bucket_of("ate a sock yesterday") is None
    # lookups are exact; no fuzzy matching of canned phrases
    assert bucket_of("seizures or convulsions") is None


def test_entries_for_keeps_display_order():
    assert [e.text for e in entries_for(Urgency.URGENT)] == list(URGENT_SYMPTOMS)
    assert all(e.bucket is Urgency.ROUTINE for e in entries_for(Urgency.ROUTINE))


def test_rank_orders_buckets_by_severity():
    assert Urgency.EMERGENCY.rank > Urgency.URGENT.rank > Urgency.ROUTINE.rank
