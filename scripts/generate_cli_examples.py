from __future__ import annotations

import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

EXAMPLES_ROOT = Path("examples/cli-options")
BASE_ARGS = ["320x240", "-2.2,1.2", "1.0,-1.2"]


@dataclass
class Example:
    name: str
    output: Path
    args: list[str]

    def full_args(self) -> list[str]:
        return [sys.executable, "fractal.py", str(self.output), *self.args]


EXAMPLES: list[Example] = [
    Example(
        name="defaults",
        output=EXAMPLES_ROOT / "defaults" / "full-set.png",
        args=BASE_ARGS,
    ),
    Example(
        name="seahorse-valley",
        output=EXAMPLES_ROOT / "seahorse-valley" / "seahorse.png",
        args=["1000x750", "-1.20,0.35", "-1,0.20"],
    ),
    Example(
        name="max-iterations",
        output=EXAMPLES_ROOT / "max-iterations" / "shallow.png",
        args=[*BASE_ARGS, "--max-iterations", "32"],
    ),
    Example(
        name="threads",
        output=EXAMPLES_ROOT / "threads" / "single-band.png",
        args=[*BASE_ARGS, "--threads", "1"],
    ),
    Example(
        name="format",
        output=EXAMPLES_ROOT / "format" / "full-set",
        args=[*BASE_ARGS, "--format", "webp"],
    ),
    Example(
        name="inverted-window",
        output=EXAMPLES_ROOT / "inverted-window" / "mirrored.png",
        args=["320x240", "1.0,-1.2", "-2.2,1.2"],
    ),
    Example(
        name="verbose",
        output=EXAMPLES_ROOT / "verbose" / "diagnostic.png",
        args=[*BASE_ARGS, "--verbose"],
    ),
]


def _ensure_clean(paths: Iterable[Path]) -> None:
    for path in paths:
        if path.exists():
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink()


def _verify(example: Example) -> None:
    if not example.output.is_file():
        raise RuntimeError(f"Expected file {example.output} was not created")
    if example.output.stat().st_size == 0:
        raise RuntimeError(f"File {example.output} is empty")


def main() -> None:
    EXAMPLES_ROOT.mkdir(parents=True, exist_ok=True)
    for example in EXAMPLES:
        print(f"\n[cli-example] {example.name}")
        _ensure_clean([example.output.parent])
        subprocess.run(example.full_args(), check=True)
        _verify(example)
    print("\nAll CLI examples generated successfully.")


if __name__ == "__main__":
    main()
