"""
Timeline Builder
=================

Derives a line-ordered list of pseudo-events from the script.  Each
line is trimmed and lower-cased, then checked against a small set of
line-level triggers; one line can yield several events.  The
"timestamp" of an event is a positional label such as ``"Line 4"``, not
a wall-clock time.
"""

from __future__ import annotations

from dataclasses import dataclass

from lexis.core.models import TimelineEvent, TimelineSeverity


@dataclass(frozen=True)
class _LineTrigger:
    action: str
    description: str
    severity: TimelineSeverity
    any_of: tuple[str, ...] = ()
    all_of: tuple[str, ...] = ()

    def fires(self, line: str) -> bool:
        if self.any_of and not any(term in line for term in self.any_of):
            return False
        return all(term in line for term in self.all_of)


_TRIGGERS: tuple[_LineTrigger, ...] = (
    _LineTrigger(
        action="Network Request",
        description="Script attempts to download content from remote server",
        severity=TimelineSeverity.WARNING,
        any_of=("invoke-webrequest", "downloadstring"),
    ),
    _LineTrigger(
        action="Code Execution",
        description="Script executes external code or process",
        severity=TimelineSeverity.CRITICAL,
        any_of=("start-process", "invoke-expression"),
    ),
    _LineTrigger(
        action="File Creation",
        description="Script creates executable file",
        severity=TimelineSeverity.WARNING,
        all_of=("new-item", ".exe"),
    ),
)


def build_timeline(text: str) -> tuple[TimelineEvent, ...]:
    """Return timeline events ordered by line number, then trigger order."""
    events: list[TimelineEvent] = []
    for index, raw_line in enumerate(text.split("\n"), start=1):
        line = raw_line.strip().lower()
        if not line:
            continue
        for trigger in _TRIGGERS:
            if trigger.fires(line):
                events.append(TimelineEvent(
                    timestamp=f"Line {index}",
                    action=trigger.action,
                    description=trigger.description,
                    severity=trigger.severity,
                    line_number=index,
                ))
    return tuple(events)
