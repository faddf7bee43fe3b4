import pytest

from slack_bridge.cli import build_parser


def test_unreads_arguments():
    args = build_parser().parse_args(
        ["unreads", "--messages", "--types", "dm", "--max-channels", "3", "--mentions-only"]
    )

    assert args.command == "unreads"
    assert args.messages and args.mentions_only
    assert args.types == "dm"
    assert args.max_channels == 3
    assert args.max_messages is None


def test_call_defaults_to_empty_arguments():
    args = build_parser().parse_args(["call", "channels_list"])
    assert args.tool == "channels_list"
    assert args.arguments == "{}"


@pytest.mark.parametrize(
    "argv",
    [[], ["unreads", "--max-channels", "0"], ["unreads", "--types", "voice"]],
)
def test_invalid_arguments_exit(argv):
    with pytest.raises(SystemExit):
        build_parser().parse_args(argv)
