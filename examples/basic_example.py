#!/usr/bin/env python3
"""
Example script demonstrating a single-command application.

With only one command dataclass the flags live at the root, so the tool is
invoked as ``basic_example.py --name demo --runs 3`` with no subcommand.
Every flag can also be set through its environment variable (e.g. RUNS=3).
"""

from dataclasses import dataclass, field
from datetime import timedelta

from dataclass_commands import Command, Float32, build, read_flags


def simulate(ctx) -> None:
    config = read_flags(Simulate, ctx)

    print("Parsed Configuration:")
    print("-" * 30)
    print(f"Simulation Name: {config.flag_name}")
    print(f"Temperature: {config.flag_temperature}°C")
    print(f"Number of Runs: {config.flag_runs}")
    print(f"Output Directory: {config.flag_output_dir}")
    print(f"Verbose: {config.flag_verbose}")
    print(f"Timeout: {config.flag_timeout}")
    print(f"Seeds: {config.flag_seeds}")


@dataclass
class Simulate:
    """Configuration for simulation parameters."""

    command: Command = field(
        default_factory=lambda: Command(action=simulate),
        metadata={"cli": "usage:'run a simulation, then print its settings'"},
    )
    flag_name: str = field(default="", metadata={"cli": "usage:Name of the simulation,default:sim"})
    flag_temperature: Float32 = field(
        default=Float32(0.0), metadata={"cli": "usage:Temperature in Celsius,default:27.0"}
    )
    flag_runs: int = field(default=0, metadata={"cli": "usage:Number of runs,default:100"})
    flag_output_dir: str = field(
        default="", metadata={"cli": "name:out,usage:Output directory path,default:/tmp/output"}
    )
    flag_verbose: bool = field(default=False, metadata={"cli": "usage:Enable verbose output"})
    flag_timeout: timedelta = field(
        default=timedelta(0), metadata={"cli": "usage:Give up after this long,default:5m"}
    )
    flag_seeds: list[int] = field(default_factory=list, metadata={"cli": "usage:Random seeds"})


def main() -> None:
    app = build(Simulate(), config_flag="--config")
    app.run()


if __name__ == "__main__":
    main()
