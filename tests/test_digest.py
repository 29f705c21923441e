from __future__ import annotations

import pytest

from specwatch import digest
from specwatch.models import ParsedChangelog

ENTRY_A = "January 22, 2025 - Added webhook filtering for message events and call summaries"
ENTRY_B = "December 6, 2024 - Contacts endpoint now supports custom field updates in bulk"
ENTRY_C = "November 25, 2024 - Deprecated legacy phone number lookup in favour of search"


def _changelog(
    *entries: str, version: str = "1.0.0", raw: str = "<html></html>"
) -> ParsedChangelog:
    return ParsedChangelog(latest_version=version, changelog_entries=entries, raw_text=raw)


def test_hash_string_known_values():
    assert digest.hash_string("") == "0"
    assert digest.hash_string("ab") == "3105"
    # Same polynomial as Java's String.hashCode
    assert digest.hash_string("hello") == "99162322"
    assert digest.hash_string("polygenelubricants") == "-2147483648"


def test_hash_string_walks_utf16_code_units():
    # U+1F600 is the surrogate pair D83D DE00
    assert digest.hash_string("\U0001F600") == str(0xD83D * 31 + 0xDE00)


def test_hash_string_stays_in_signed_32_bit_range():
    value = int(digest.hash_string("x" * 5000))
    assert -(2**31) <= value < 2**31


def test_fingerprint_of_known_entry_lists():
    assert digest.fingerprint(_changelog()) == "2914"  # "[]"
    assert digest.fingerprint(_changelog("a")) == "85147669"  # '["a"]'


def test_canonical_entries_matches_compact_json():
    value = _changelog("café", 'say "hi"')
    assert digest.canonical_entries(value) == '["café","say \\"hi\\""]'


def test_fingerprint_is_deterministic():
    first = digest.fingerprint(_changelog(ENTRY_A, ENTRY_B))
    second = digest.fingerprint(_changelog(ENTRY_A, ENTRY_B))
    assert first == second


def test_fingerprint_accepts_cached_mapping():
    parsed = _changelog(ENTRY_A, ENTRY_B)
    assert digest.fingerprint(parsed.as_json()) == digest.fingerprint(parsed)


def test_fingerprint_rejects_mapping_without_entries():
    with pytest.raises(ValueError):
        digest.fingerprint({"latestVersion": "1.0.0"})


@pytest.mark.parametrize(
    "other",
    [
        (ENTRY_A, ENTRY_C),  # content
        (ENTRY_B, ENTRY_A),  # order
        (ENTRY_A,),  # count
        (ENTRY_A, ENTRY_B, ENTRY_C),
    ],
)
def test_equal_is_sensitive_to_entries(other):
    assert not digest.equal(_changelog(ENTRY_A, ENTRY_B), _changelog(*other))


def test_equal_ignores_version_and_raw_text():
    a = _changelog(ENTRY_A, version="1.0.0", raw="<p>one</p>")
    b = _changelog(ENTRY_A, version="9.9.9", raw="<p>two</p>")
    assert digest.equal(a, b)


def test_equal_with_missing_side_is_false():
    assert not digest.equal(_changelog(ENTRY_A), None)
    assert not digest.equal(None, _changelog(ENTRY_A))
