#!/usr/bin/env python3
"""
Example demonstrating an application with several commands.

Each dataclass becomes a subcommand named after the class:

    subcommands_example.py fetch --url http://example.com --retries 5
    subcommands_example.py push --no-verify
"""

from dataclasses import dataclass, field

from dataclass_commands import Command, build, read_flags


def fetch(ctx) -> None:
    args = read_flags(Fetch, ctx)
    print(f"fetching {args.flag_url} ({args.flag_retries} retries)")


def push(ctx) -> None:
    args = read_flags(Push, ctx)
    print(f"pushing to {args.flag_remote} (verify: {args.flag_verify})")
    if ctx.args:
        print(f"refs: {', '.join(ctx.args)}")


@dataclass
class Fetch:
    command: Command = field(
        default_factory=lambda: Command(action=fetch),
        metadata={"cli": "usage:Download a url"},
    )
    flag_url: str = field(default="", metadata={"cli": "usage:What to download"})
    flag_retries: int = field(default=0, metadata={"cli": "usage:Retry count,default:3"})
    flag_api_token: str = field(default="", metadata={"cli": "hidden:true"})


@dataclass
class Push:
    command: Command = field(
        default_factory=lambda: Command(action=push, aliases=("p",)),
        metadata={"cli": "usage:'Upload changes, then verify them'"},
    )
    flag_remote: str = field(default="", metadata={"cli": "default:origin"})
    flag_verify: bool = field(default=True, metadata={"cli": "usage:Verify after pushing,default:true"})


if __name__ == "__main__":
    build(Fetch(), Push(), name="subcommands_example").run()
