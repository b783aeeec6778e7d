"""
Shared test helpers.

Shell-script stand-ins for FFmpeg and whisper.cpp, plus an in-process
runner for tests that never spawn anything.
"""

from __future__ import annotations

import stat
from pathlib import Path

from mediascribe.process import ProcessInvocation, ProcessResult

NORMALIZER_OK = """#!/bin/sh
for last; do :; done
: > "$last"
exit 0
"""

NORMALIZER_BAD_CODEC = """#!/bin/sh
echo "bad codec" >&2
exit 1
"""

FFMPEG_VERSION = """#!/bin/sh
echo "ffmpeg version 6.1.1 Copyright (c) 2000-2023 the FFmpeg developers"
exit 0
"""

TRANSCRIBER_HELLO = """#!/bin/sh
out=""
while [ "$#" -gt 0 ]; do
  if [ "$1" = "-of" ]; then out="$2"; fi
  shift
done
printf '%s' "hello world" > "$out.txt"
exit 0
"""

TRANSCRIBER_FAIL = """#!/bin/sh
echo "failed to load model" >&2
exit 2
"""


def write_script(path: Path, body: str, executable: bool = True) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(body)
    mode = stat.S_IRUSR | stat.S_IWUSR | stat.S_IRGRP | stat.S_IROTH
    if executable:
        mode |= stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH
    path.chmod(mode)
    return path


class FakeRunner:
    """Stand-in for run_process that records invocations.

    Results are consumed in order; an Exception instance is raised instead
    of returned. When transcript is set, a successful call carrying -of
    writes it to the derived .txt path the way whisper.cpp does.
    """

    def __init__(
        self,
        results: list[ProcessResult | Exception] | None = None,
        transcript: str | None = None,
    ) -> None:
        self.results = list(results or [])
        self.transcript = transcript
        self.invocations: list[ProcessInvocation] = []

    def __call__(self, invocation: ProcessInvocation, cancel=None) -> ProcessResult:
        self.invocations.append(invocation)
        result = self.results.pop(0) if self.results else ProcessResult(exit_code=0)
        if isinstance(result, Exception):
            raise result
        args = invocation.arguments
        if self.transcript is not None and "-of" in args and result.exit_code == 0:
            base = args[args.index("-of") + 1]
            Path(base + ".txt").write_text(self.transcript, encoding="utf-8")
        return result
