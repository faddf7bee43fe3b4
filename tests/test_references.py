import pytest

from slack_bridge.directory.index import DirectoryView
from slack_bridge.directory.resolver import DirectoryResolver
from slack_bridge.errors import InvalidReferenceError, NotFoundError
from slack_bridge.references import (
    ChannelName,
    ConversationTarget,
    Permalink,
    RawId,
    UserHandle,
    build_permalink,
    parse_reference,
    resolve_reference,
    validate_ts,
)

from fakes import make_snapshot


@pytest.fixture
def resolver():
    return DirectoryResolver(DirectoryView.from_snapshot(make_snapshot()))


@pytest.mark.parametrize(
    "token, expected",
    [
        ("C0GENERAL", RawId("C0GENERAL")),
        ("  D0ALICE01 ", RawId("D0ALICE01")),
        ("#general", ChannelName("#general")),
        ("@alice", UserHandle("@alice")),
        ("@mpdm-alice--bob-1", UserHandle("@mpdm-alice--bob-1")),
    ],
)
def test_parse_plain_references(token, expected):
    assert parse_reference(token) == expected


def test_parse_message_permalink():
    ref = parse_reference("https://acme.slack.com/archives/C0GENERAL/p1700000000123456")
    assert ref == Permalink("C0GENERAL", ts="1700000000.123456")


def test_parse_threaded_permalink():
    ref = parse_reference(
        "https://acme.slack.com/archives/C0GENERAL/p1700000050000200"
        "?thread_ts=1700000000.123456&cid=C0GENERAL"
    )
    assert ref == Permalink("C0GENERAL", ts="1700000050.000200", thread_ts="1700000000.123456")


def test_parse_channel_permalink_without_message():
    assert parse_reference("https://acme.slack.com/archives/G0SECRET1") == Permalink("G0SECRET1")


@pytest.mark.parametrize(
    "token",
    [
        "",
        "   ",
        "general",
        "#has space",
        "ftp://acme.slack.com/archives/C0GENERAL",
        "https://acme.slack.com/messages/C0GENERAL",
        "https://acme.slack.com/archives/general/p1700000000123456",
        "https://acme.slack.com/archives/C0GENERAL/p17000",
        "https://acme.slack.com/archives/C0GENERAL/p1700000000123456/extra",
        "https://acme.slack.com/archives/C0GENERAL/p1700000000123456?thread_ts=abc",
    ],
)
def test_parse_rejects_malformed_tokens(token):
    with pytest.raises(InvalidReferenceError):
        parse_reference(token)


def test_resolve_names_through_directory(resolver):
    assert resolve_reference("#random", resolver) == ConversationTarget("C0RANDOM1")
    assert resolve_reference("@bob", resolver) == ConversationTarget("D0BOB0001")
    assert resolve_reference(ChannelName("#general"), resolver) == ConversationTarget("C0GENERAL")


def test_resolve_permalink_skips_directory(resolver):
    target = resolve_reference(
        "https://acme.slack.com/archives/C9UNKNOWN/p1700000000123456", resolver
    )
    assert target == ConversationTarget("C9UNKNOWN", ts="1700000000.123456")


def test_resolve_unknown_name(resolver):
    with pytest.raises(NotFoundError):
        resolve_reference("#does-not-exist", resolver)


def test_validate_ts():
    assert validate_ts("1700000000.123456") == "1700000000.123456"
    with pytest.raises(InvalidReferenceError):
        validate_ts("1700000000")


def test_built_permalinks_parse_back():
    link = build_permalink("acme.slack.com/", "C0GENERAL", "1700000050.000200", "1700000000.123456")

    assert link.startswith("https://acme.slack.com/archives/C0GENERAL/p1700000050000200")
    assert parse_reference(link) == Permalink(
        "C0GENERAL", ts="1700000050.000200", thread_ts="1700000000.123456"
    )
    assert build_permalink("https://acme.slack.com", "D0ALICE01", "1700000000.000001") == (
        "https://acme.slack.com/archives/D0ALICE01/p1700000000000001"
    )
