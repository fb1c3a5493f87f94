#!/usr/bin/env python3
"""Benchmark schema derivation against per-call merge cost.

Usage:
  python scripts/bench_updater.py --number 20000
"""

from __future__ import annotations

import sys
import timeit
from dataclasses import dataclass, field
from typing import Optional

import click

sys.path.insert(0, "src")

from record_updater import make_updater, patch_field  # noqa: E402
from record_updater.naming.case_folder import fold  # noqa: E402


@dataclass
class Person:
    Name: str = ""
    Age: int = 0
    Emails: list[str] = field(default_factory=list)
    DateOfBirth: str = patch_field(name="dob", default="")
    BFF: Optional[Person] = None
    Friends: list[Person] = field(default_factory=list)
    Extra: dict[str, str] = field(default_factory=dict)


PATCHES = {
    "basic": {"name": "Bob", "age": 25, "dob": "1999-02-10"},
    "container": {
        "emails": ["bob@thebuilder.us", "bobby@notan.org"],
        "extra": {"gender": "Robot"},
    },
    "composite": {
        "bff": Person(Name="Jane"),
        "friends": [Person(Name="John"), Person(Name="Doe")],
    },
}
PATCHES["all"] = {**PATCHES["basic"], **PATCHES["container"], **PATCHES["composite"]}


def _report(label: str, seconds: float, number: int) -> None:
    click.echo(f"{label:<20} {seconds / number * 1e6:10.2f} us/op")


@click.command()
@click.option("--number", default=10_000, help="Iterations per benchmark")
def main(number: int) -> None:
    """Time make_updater, each patch shape and identifier folding."""
    _report("make_updater", timeit.timeit(lambda: make_updater(Person()), number=number), number)

    update = make_updater(Person)
    existing = Person()
    for name, values in PATCHES.items():
        seconds = timeit.timeit(lambda: update(existing, values), number=number)
        _report(f"update[{name}]", seconds, number)

    _report("fold", timeit.timeit(lambda: fold("SomeTextToSnake@Case123"), number=number), number)


if __name__ == "__main__":
    main()
