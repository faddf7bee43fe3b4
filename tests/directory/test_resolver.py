from dataclasses import replace

import pytest

from slack_bridge.directory.index import DirectoryView, ResolutionIndex
from slack_bridge.directory.models import Channel, ChannelType, Snapshot, User
from slack_bridge.directory.resolver import DirectoryResolver
from slack_bridge.errors import AmbiguousError, InvalidReferenceError, NotFoundError

from fakes import make_snapshot


def _resolver(snapshot: Snapshot | None = None) -> DirectoryResolver:
    return DirectoryResolver(DirectoryView.from_snapshot(snapshot or make_snapshot()))


def test_existing_channel_ids_resolve_to_themselves():
    snapshot = make_snapshot()
    resolver = _resolver(snapshot)
    for channel in snapshot.channels:
        assert resolver.resolve_channel(channel.id) == channel.id


def test_unknown_but_well_formed_id_passes_through():
    assert _resolver().resolve_channel("C0NEWCHAN9") == "C0NEWCHAN9"
    assert _resolver().resolve_user("U0NEWUSER9") == "U0NEWUSER9"


def test_hash_name_is_exact_match():
    resolver = _resolver()
    assert resolver.resolve_channel("#general") == "C0GENERAL"
    with pytest.raises(NotFoundError):
        resolver.resolve_channel("#gen")
    with pytest.raises(NotFoundError):
        resolver.resolve_channel("#General")


def test_at_handle_resolves_to_dm():
    resolver = _resolver()
    assert resolver.resolve_channel("@alice") == "D0ALICE01"
    assert resolver.resolve_channel("@bob") == "D0BOB0001"


def test_at_alias_falls_back_to_channel_name():
    assert _resolver().resolve_channel("@mpdm-alice--bob-1") == "G0MPDM001"


def test_at_handle_without_dm_is_not_found():
    with pytest.raises(NotFoundError):
        _resolver().resolve_channel("@carol")


def test_duplicate_channel_name_is_ambiguous():
    base = make_snapshot()
    twin = Channel(id="C0GENERAL2", name="#general", type=ChannelType.PUBLIC)
    resolver = _resolver(replace(base, channels=base.channels + (twin,)))

    with pytest.raises(AmbiguousError) as excinfo:
        resolver.resolve_channel("#general")
    assert excinfo.value.candidates == ("C0GENERAL", "C0GENERAL2")
    # IDs stay unambiguous.
    assert resolver.resolve_channel("C0GENERAL2") == "C0GENERAL2"


def test_index_has_one_entry_per_unique_name():
    base = make_snapshot()
    twin = Channel(id="C0GENERAL2", name="#general", type=ChannelType.PUBLIC)
    index = ResolutionIndex.build(replace(base, channels=base.channels + (twin,)))

    assert len(index.channel_ids_by_name) == len({c.name for c in base.channels})
    assert index.channel_ids_by_name["#general"] == ("C0GENERAL", "C0GENERAL2")
    assert len(index.user_ids_by_handle) == len(base.users)


def test_resolve_user_by_handle():
    resolver = _resolver()
    assert resolver.resolve_user("@alice") == "U0ALICE01"
    assert resolver.resolve_user("bob") == "U0BOB0001"
    with pytest.raises(NotFoundError):
        resolver.resolve_user("@mallory")


def test_resolve_user_falls_back_to_dm_alias():
    base = make_snapshot()
    ghost_dm = Channel(id="D0GHOST01", name="@ghost", type=ChannelType.IM, user_id="U0GHOST01")
    resolver = _resolver(replace(base, channels=base.channels + (ghost_dm,)))

    assert resolver.resolve_user("@ghost") == "U0GHOST01"


def test_duplicate_handles_are_ambiguous():
    base = make_snapshot()
    clone = User(id="U0ALICE02", handle="alice")
    resolver = _resolver(replace(base, users=base.users + (clone,)))

    with pytest.raises(AmbiguousError):
        resolver.resolve_user("@alice")
    with pytest.raises(AmbiguousError):
        resolver.resolve_channel("@alice")


@pytest.mark.parametrize("token", ["", "   ", "general", "c0general", "@"])
def test_invalid_channel_tokens(token):
    with pytest.raises((InvalidReferenceError, NotFoundError)):
        _resolver().resolve_channel(token)


def test_reverse_lookups():
    resolver = _resolver()
    assert resolver.channel_name("C0GENERAL") == "#general"
    assert resolver.channel_name("D0ALICE01") == "@alice"
    assert resolver.user_handle("U0BOB0001") == "bob"
    assert resolver.user_handle("U0MISSING") is None
    assert resolver.channel_name("C0MISSING") is None
