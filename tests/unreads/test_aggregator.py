import asyncio

import pytest

from slack_bridge.directory.index import DirectoryView
from slack_bridge.directory.resolver import DirectoryResolver
from slack_bridge.errors import UnreadCountsError
from slack_bridge.unreads.aggregator import (
    Category,
    UnreadAggregator,
    UnreadQuery,
    classify,
    unread_count,
)

from fakes import FakeSlackClient, make_snapshot


def _resolver():
    return DirectoryResolver(DirectoryView.from_snapshot(make_snapshot()))


def _aggregate(client, **query):
    aggregator = UnreadAggregator(client, history_concurrency=2)
    return asyncio.run(aggregator.aggregate(_resolver(), UnreadQuery(**query)))


def _client(channels=(), mpims=(), ims=()):
    client = FakeSlackClient()
    client.counts = {"channels": list(channels), "mpims": list(mpims), "ims": list(ims)}
    return client


def test_priority_ordering_beats_unread_count():
    client = _client(
        channels=[
            {"id": "C0GENERAL", "unread_count": 5, "latest": "1700000300.000000"},
            {"id": "C0PARTNER", "unread_count": 2, "latest": "1700000200.000000"},
        ],
        ims=[{"id": "D0ALICE01", "dm_count": 1, "latest": "1700000100.000000"}],
    )

    report = _aggregate(client)

    assert [c.channel_id for c in report.channels] == ["D0ALICE01", "C0PARTNER", "C0GENERAL"]
    assert [c.category for c in report.channels] == [Category.DM, Category.PARTNER, Category.INTERNAL]
    assert report.total_unread == 8


def test_truncation_keeps_highest_priority():
    client = _client(
        channels=[
            {"id": "C0GENERAL", "unread_count": 9},
            {"id": "C0RANDOM1", "unread_count": 3},
            {"id": "C0PARTNER", "unread_count": 1},
        ],
        mpims=[{"id": "G0MPDM001", "unread_count": 2}],
        ims=[{"id": "D0BOB0001", "dm_count": 4}],
    )

    report = _aggregate(client, max_channels=2)

    assert [c.channel_id for c in report.channels] == ["D0BOB0001", "G0MPDM001"]
    assert report.total_channels == 5
    assert report.total_unread == 19


def test_ties_break_on_recent_activity_then_id():
    client = _client(
        channels=[
            {"id": "C0RANDOM1", "unread_count": 2, "latest": "1700000001.000000"},
            {"id": "C0GENERAL", "unread_count": 2, "latest": "1700000009.000000"},
            {"id": "C0ZZZZZZ1", "unread_count": 2, "latest": "1700000001.000000"},
            {"id": "C0AAAAAA1", "unread_count": 2, "latest": "1700000001.000000"},
        ],
    )

    report = _aggregate(client)

    assert [c.channel_id for c in report.channels] == [
        "C0GENERAL",
        "C0AAAAAA1",
        "C0RANDOM1",
        "C0ZZZZZZ1",
    ]


def test_zero_unread_conversations_are_dropped():
    client = _client(
        channels=[
            {"id": "C0GENERAL", "unread_count": 0, "has_unreads": False},
            {"id": "C0RANDOM1", "has_unreads": True},
        ],
        ims=[{"id": "D0ALICE01", "dm_count": 0}],
    )

    report = _aggregate(client)

    assert [c.channel_id for c in report.channels] == ["C0RANDOM1"]
    assert report.channels[0].unread_count == 1


def test_type_filter_and_mentions_only():
    client = _client(
        channels=[
            {"id": "C0GENERAL", "unread_count": 4, "mention_count": 1},
            {"id": "C0RANDOM1", "unread_count": 7},
            {"id": "C0PARTNER", "unread_count": 2, "mention_count": 3},
        ],
        ims=[{"id": "D0ALICE01", "dm_count": 1}],
    )

    internal = _aggregate(client, channel_types="internal")
    assert [c.channel_id for c in internal.channels] == ["C0RANDOM1", "C0GENERAL"]

    mentioned = _aggregate(client, mentions_only=True)
    assert [c.channel_id for c in mentioned.channels] == ["C0PARTNER", "C0GENERAL"]
    assert all(c.has_mention for c in mentioned.channels)


def test_unknown_conversations_classified_by_counts_section():
    client = _client(
        mpims=[{"id": "G0UNKNOWN1", "unread_count": 1}],
        channels=[{"id": "C0UNKNOWN1", "unread_count": 1}],
    )

    report = _aggregate(client)

    assert [(c.channel_id, c.category) for c in report.channels] == [
        ("G0UNKNOWN1", Category.GROUP_DM),
        ("C0UNKNOWN1", Category.INTERNAL),
    ]
    assert report.channels[0].name == "G0UNKNOWN1"


def test_messages_fetched_only_for_selected_channels():
    client = _client(
        channels=[
            {"id": "C0GENERAL", "unread_count": 3, "last_read": "1700000000.000100"},
            {"id": "C0RANDOM1", "unread_count": 1},
        ],
        ims=[{"id": "D0ALICE01", "dm_count": 2}],
    )
    client.histories = {
        "D0ALICE01": [
            {"ts": "1700000002.000000", "user": "U0ALICE01", "text": "ping"},
            {"ts": "1700000001.000000", "user": "U0ALICE01", "text": "hello"},
        ],
        "C0GENERAL": [{"ts": "1700000003.000000", "user": "U0BOB0001", "text": "standup", "thread_ts": "1700000003.000000"}],
    }

    report = _aggregate(client, include_messages=True, max_channels=2, max_messages_per_channel=1)

    fetched = [c[1] for c in client.calls if c[0] == "history"]
    assert sorted(fetched) == ["C0GENERAL", "D0ALICE01"]
    history_calls = {c[1]: c for c in client.calls if c[0] == "history"}
    assert history_calls["C0GENERAL"][2:] == (1, "1700000000.000100")
    dm = report.channels[0]
    assert dm.messages == [
        {"ts": "1700000002.000000", "user": "U0ALICE01", "user_handle": "alice", "text": "ping"}
    ]
    assert report.channels[1].messages[0]["thread_ts"] == "1700000003.000000"


def test_history_failure_is_isolated_to_its_channel():
    client = _client(
        channels=[
            {"id": "C0GENERAL", "unread_count": 1},
            {"id": "C0RANDOM1", "unread_count": 1},
        ],
        ims=[{"id": "D0BOB0001", "dm_count": 1}],
    )
    client.histories = {
        "D0BOB0001": [{"ts": "1.000001", "user": "U0BOB0001", "text": "hi"}],
        "C0RANDOM1": [{"ts": "2.000001", "user": "U0ALICE01", "text": "lunch?"}],
    }
    client.failing_history = {"C0GENERAL"}

    report = _aggregate(client, include_messages=True)

    by_id = {c.channel_id: c for c in report.channels}
    assert len(report.channels) == 3
    assert by_id["D0BOB0001"].messages and by_id["D0BOB0001"].error is None
    assert by_id["C0RANDOM1"].messages and by_id["C0RANDOM1"].error is None
    assert by_id["C0GENERAL"].messages == []
    assert "C0GENERAL" in by_id["C0GENERAL"].error
    assert report.partial_failures == 1
    assert report.to_dict()["partial_failures"] == 1


def test_counts_failure_is_fatal():
    client = _client()
    client.fail_counts = True

    with pytest.raises(UnreadCountsError):
        _aggregate(client)


def test_no_history_calls_without_include_messages():
    client = _client(channels=[{"id": "C0GENERAL", "unread_count": 2}])

    report = _aggregate(client)

    assert not [c for c in client.calls if c[0] == "history"]
    assert "messages" not in report.to_dict()["channels"][0]


@pytest.mark.parametrize(
    "kwargs",
    [{"channel_types": "voice"}, {"max_channels": 0}, {"max_messages_per_channel": 0}],
)
def test_invalid_queries_are_rejected(kwargs):
    with pytest.raises(ValueError):
        UnreadQuery(**kwargs)


def test_unread_count_prefers_explicit_figures():
    assert unread_count({"unread_count_display": 4, "unread_count": 9}) == 4
    assert unread_count({"dm_count": 2}) == 2
    assert unread_count({"has_unreads": True}) == 1
    assert unread_count({}) == 0


def test_classify_uses_channel_record():
    view = DirectoryView.from_snapshot(make_snapshot())
    channels = view.index.channels_by_id
    assert classify(channels["D0ALICE01"], "channels") is Category.DM
    assert classify(channels["G0MPDM001"], "channels") is Category.GROUP_DM
    assert classify(channels["C0PARTNER"], "channels") is Category.PARTNER
    assert classify(channels["G0SECRET1"], "channels") is Category.INTERNAL


def test_wrongly_typed_timestamps_do_not_break_ranking():
    client = _client(
        channels=[
            {"id": "C0GENERAL", "unread_count": 2, "latest": {"ts": "1700000000.000100"}, "last_read": ["x"]},
            {"id": "C0RANDOM1", "unread_count": 2, "latest": 1700000009.5, "last_read": True},
        ],
    )
    client.histories = {"C0GENERAL": [{"ts": "1700000000.000100", "text": "hi"}]}

    report = _aggregate(client, include_messages=True)

    assert [c.channel_id for c in report.channels] == ["C0RANDOM1", "C0GENERAL"]
    general = report.channels[1]
    assert general.latest_ts is None
    assert general.last_read is None
    assert report.channels[0].latest_ts == "1700000009.5"
    assert ("history", "C0GENERAL", 10, None) in client.calls
