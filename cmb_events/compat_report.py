"""
Compatibility reporting across titles.

Runs extracted callback registrations through decode and re-encode, and
aggregates the outcomes per FailureCategory so regressions in a title's
dialect show up as a changed success rate.
"""

from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from schema_errors import CallbackSchemaError, FailureCategory, RegistrationInputError, classify


@dataclass
class Registration:
    """One raw callback registration as extracted by the container reader."""
    source: str  # Script file (or other origin) the registration came from
    code: int
    operands: List[int]


@dataclass
class RegistrationOutcome:
    registration: Registration
    event_name: Optional[str] = None
    category: Optional[FailureCategory] = None
    message: str = ""
    mismatch: bool = False  # Decoded but re-encoded to different operands

    @property
    def ok(self) -> bool:
        return self.category is None and not self.mismatch


class CompatibilityReport:
    """Per-revision tally of registration outcomes."""

    def __init__(self, revision):
        self.revision = revision
        self.outcomes: List[RegistrationOutcome] = []

    def add(self, outcome: RegistrationOutcome):
        self.outcomes.append(outcome)

    @property
    def successes(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def failures(self) -> int:
        return len(self.outcomes) - self.successes

    @property
    def success_rate(self) -> float:
        """Percentage of registrations that decoded and round-tripped."""
        if not self.outcomes:
            return 0.0
        return self.successes / len(self.outcomes) * 100.0

    def counts_by_category(self) -> Dict[FailureCategory, int]:
        counts = Counter(o.category for o in self.outcomes if o.category is not None)
        return dict(counts)

    def to_text(self) -> str:
        """Human-readable report, one line per registration plus totals."""
        lines = [f"Compatibility report for {self.revision}", ""]
        for outcome in self.outcomes:
            reg = outcome.registration
            label = f"{reg.source} event 0x{reg.code:02X}"
            if outcome.event_name:
                label += f" ({outcome.event_name})"
            if outcome.ok:
                lines.append(f"  OK: {label}")
            elif outcome.mismatch:
                lines.append(f"  FAILED! {label}: output mismatch")
            else:
                lines.append(f"  FAILED! {label}: [{outcome.category.value}] {outcome.message}")

        lines.append("")
        for category, count in sorted(self.counts_by_category().items(), key=lambda kv: kv[0].value):
            lines.append(f"  {category.value:20s}: {count:4d}")
        mismatches = sum(1 for o in self.outcomes if o.mismatch)
        if mismatches:
            lines.append(f"  {'output_mismatch':20s}: {mismatches:4d}")
        lines.append(f"Successes: {self.successes}, Failures: {self.failures}, "
                     f"Rate: {self.success_rate:.1f}%")
        return "\n".join(lines)


def check_registration(resolver, revision, registration: Registration) -> RegistrationOutcome:
    """Decode one registration and re-encode it against the same schema."""
    outcome = RegistrationOutcome(registration=registration)
    try:
        schema = resolver.resolve(revision, registration.code)
        outcome.event_name = schema.name
        record = resolver.decode(revision, registration.code, registration.operands)
        raw = resolver.encode(schema, record)
    except CallbackSchemaError as e:
        outcome.category = classify(e)
        outcome.message = str(e)
        return outcome

    if raw != list(registration.operands):
        outcome.mismatch = True
        outcome.message = f"expected {list(registration.operands)}, got {raw}"
    return outcome


def check_registrations(resolver, revision,
                        registrations: Iterable[Registration]) -> CompatibilityReport:
    """Check every registration and collect the outcomes into a report."""
    report = CompatibilityReport(revision)
    for registration in registrations:
        report.add(check_registration(resolver, revision, registration))
    return report


def parse_number(value) -> int:
    """Parse a code or operand given as an int or a string.

    Strings are decimal (leading zeros allowed, e.g. "08") or carry a
    0x/0o/0b prefix.

    Raises:
        RegistrationInputError: If the value is not a number
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    text = str(value).strip()
    try:
        if text.lstrip('+-').isdigit():
            return int(text, 10)
        return int(text, 0)
    except ValueError:
        raise RegistrationInputError(f"'{value}' is not a number") from None


def registrations_from_config(config: Dict) -> List[Registration]:
    """Parse the 'registrations' list of a registrations YAML document."""
    registrations = []
    for i, entry in enumerate(config.get('registrations') or []):
        source = str(entry.get('source', f"#{i}"))
        if 'code' not in entry:
            raise RegistrationInputError(f"registration {source}: missing 'code'")
        try:
            code = parse_number(entry['code'])
            operands = [parse_number(v) for v in entry.get('operands') or []]
        except RegistrationInputError as e:
            raise RegistrationInputError(f"registration {source}: {e}") from None
        registrations.append(Registration(source=source, code=code, operands=operands))
    return registrations
