from datetime import datetime, timedelta, timezone

from hashwatch.extractor import RawPost, extract

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def _item(**overrides) -> dict:
    item = {
        "id": "42",
        "ownerUsername": "goldsmith_co",
        "caption": "DM us or email contact@shop.com!",
        "timestamp": (NOW - timedelta(hours=3)).isoformat(),
        "url": "https://www.instagram.com/p/abc/",
        "likesCount": 12,
    }
    item.update(overrides)
    return item


def test_extract_builds_lead() -> None:
    lead = extract(_item(), "weddingrings", window_hours=48, now=NOW)

    assert lead is not None
    assert lead.id == "post-42"
    assert lead.company_name == "goldsmith_co"
    assert lead.contact_name == "goldsmith_co"
    assert lead.website == "https://instagram.com/goldsmith_co"
    assert lead.business_type == "#weddingrings"
    assert lead.raw_email == "contact@shop.com"
    assert lead.email_verification_status == "valid"
    assert lead.score == 90
    assert lead.post_age == "3h ago"
    assert lead.notes == '[3h ago] "DM us or email contact@shop.com!..."'
    assert lead.post_url == "https://www.instagram.com/p/abc/"


def test_extract_without_email() -> None:
    lead = extract(_item(caption="Beautiful rings for the big day"), "weddingrings", now=NOW)

    assert lead is not None
    assert lead.raw_email is None
    assert lead.email_verification_status == "unknown"


def test_extract_truncates_caption_in_notes() -> None:
    lead = extract(_item(caption="x" * 80), "rings", now=NOW)
    assert lead is not None
    assert lead.notes == '[3h ago] "' + "x" * 50 + '..."'


def test_extract_rejects_stale_and_undated() -> None:
    stale = _item(timestamp=(NOW - timedelta(hours=50)).isoformat())
    assert extract(stale, "rings", window_hours=48, now=NOW) is None
    assert extract(_item(timestamp=None), "rings", now=NOW) is None
    assert extract(_item(timestamp="??"), "rings", now=NOW) is None


def test_extract_rejects_items_without_id() -> None:
    assert extract(_item(id=None), "rings", now=NOW) is None
    assert extract("not a dict", "rings", now=NOW) is None


def test_author_fallback_chain() -> None:
    post = RawPost.from_item({"id": 1, "owner": {"username": "nested"}})
    assert post is not None and post.author == "nested"

    post = RawPost.from_item({"id": 1, "username": "plain"})
    assert post is not None and post.author == "plain"

    post = RawPost.from_item({"id": 1})
    assert post is not None and post.author == "Unknown"
    assert post.caption == ""
