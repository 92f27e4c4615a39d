"""Layered exact + fuzzy origin detection against a merged ruleset."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from rapidfuzz.distance import Levenshtein

from ..constants import MatchKind
from ..utils.domains import ancestor_domains, registrable_label, strip_trailing_dot
from .models import DetectionResult, ListSource, MergedRuleset


@dataclass(frozen=True)
class _CompiledSource:
    source: ListSource
    allowlist: frozenset[str]
    blocklist: frozenset[str]
    fuzzy_targets: tuple[tuple[str, str], ...]  # (registrable label, original entry)


def _compile(source: ListSource) -> _CompiledSource:
    return _CompiledSource(
        source=source,
        allowlist=frozenset(strip_trailing_dot(e) for e in source.allowlist),
        blocklist=frozenset(strip_trailing_dot(e) for e in source.blocklist),
        fuzzy_targets=tuple(
            (registrable_label(entry), entry) for entry in source.fuzzylist if entry
        ),
    )


def _first_match(candidates: list[str], entries: frozenset[str]) -> Optional[str]:
    for candidate in candidates:
        if candidate in entries:
            return candidate
    return None


class DetectionEngine:
    """
    Immutable matcher bound to one MergedRuleset.

    Evaluation order:
    1. Allowlists of every source (origin or any ancestor domain). An allow
       match is final, so a trusted domain is never reported by any source.
    2. Per source, in priority order: blocklist (origin or ancestor), then
       fuzzylist (Levenshtein distance of registrable labels <= tolerance).
    3. No match -> not phishing.

    A new engine is built for every ruleset; engines are never mutated.
    """

    def __init__(self, ruleset: MergedRuleset):
        self.ruleset = ruleset
        self._sources = tuple(_compile(source) for source in ruleset)

    def classify(self, origin: str) -> DetectionResult:
        """Classify an already-normalized origin."""
        host = strip_trailing_dot((origin or "").strip().lower())
        if not host:
            return DetectionResult()

        candidates = ancestor_domains(host)

        for compiled in self._sources:
            entry = _first_match(candidates, compiled.allowlist)
            if entry:
                return DetectionResult(
                    phishing=False,
                    match_kind=MatchKind.ALLOW,
                    matched_source=compiled.source.name,
                    matched_entry=entry,
                    version=compiled.source.version,
                )

        fuzzy_form: Optional[str] = None
        for compiled in self._sources:
            source = compiled.source
            entry = _first_match(candidates, compiled.blocklist)
            if entry:
                return DetectionResult(
                    phishing=True,
                    match_kind=MatchKind.BLOCK,
                    matched_source=source.name,
                    matched_entry=entry,
                    version=source.version,
                )

            if source.tolerance <= 0 or not compiled.fuzzy_targets:
                continue
            if fuzzy_form is None:
                fuzzy_form = registrable_label(host)
            entry = self._fuzzy_match(fuzzy_form, compiled.fuzzy_targets, source.tolerance)
            if entry:
                return DetectionResult(
                    phishing=True,
                    match_kind=MatchKind.FUZZY,
                    matched_source=source.name,
                    matched_entry=entry,
                    version=source.version,
                )

        return DetectionResult()

    @staticmethod
    def _fuzzy_match(
        fuzzy_form: str,
        targets: tuple[tuple[str, str], ...],
        tolerance: int,
    ) -> Optional[str]:
        best_entry: Optional[str] = None
        best_distance = tolerance + 1
        for target, entry in targets:
            distance = Levenshtein.distance(fuzzy_form, target, score_cutoff=tolerance)
            if distance < best_distance:
                best_entry, best_distance = entry, distance
                if distance == 0:
                    break
        return best_entry
