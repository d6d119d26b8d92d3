"""Heuristic scorers: organization proximity and institution matching.

Both scorers read their lookup data from a ProximityTables instance so tests
and deployments can swap the tables without touching code.
"""

import logging
import re
from pathlib import Path

import yaml

from models.schemas.tables import ProximityTables

logger = logging.getLogger(__name__)

DEFAULT_TABLES_PATH = Path(__file__).resolve().parent.parent / "data" / "proximity_tables.yaml"

# Organization proximity levels
EXACT_MATCH = 1.0
NEIGHBOR_MATCH = 0.8
MAJOR_EMPLOYER_CROSS = 0.65
BASELINE = 0.3  # no detected signal, not "no match"

# Institution words this short are ignored by the partial matcher
_MIN_WORD_LEN = 3


def normalize(value: str | None) -> str:
    """Lowercase, trim and collapse internal whitespace."""
    return " ".join((value or "").lower().split())


def load_tables(path: str | Path | None = None) -> ProximityTables:
    """Load scoring tables from YAML. Falls back to the bundled table file."""
    table_path = Path(path) if path else DEFAULT_TABLES_PATH
    with open(table_path, encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    tables = ProximityTables(**raw)
    logger.info(
        "Loaded proximity tables v%s from %s (%d org targets, %d aliases)",
        tables.version,
        table_path,
        len(tables.organization_neighbors),
        len(tables.institution_aliases),
    )
    return tables


def organization_proximity(
    candidate_orgs: list[str],
    target: str | None,
    tables: ProximityTables,
) -> float:
    """Score how close a candidate's employers are to the target organization.

    Returns 1.0 for an exact match, 0.8 for a configured neighbor, 0.65 when
    both target and a candidate employer are major employers, else 0.3.
    """
    t = normalize(target)
    if not t:
        return BASELINE
    orgs = {normalize(o) for o in candidate_orgs}
    orgs.discard("")

    if t in orgs:
        return EXACT_MATCH

    neighbors = tables.organization_neighbors.get(t, set())
    if orgs & neighbors:
        return NEIGHBOR_MATCH

    if t in tables.major_employers and orgs & tables.major_employers:
        return MAJOR_EMPLOYER_CROSS

    return BASELINE


def _tokens(text: str) -> str:
    return " " + " ".join(re.findall(r"[a-z0-9]+", text)) + " "


def resolve_institution(value: str, tables: ProximityTables) -> set[str]:
    """Map an institution string to every canonical full name it mentions.

    A full name matches as a substring; an alias matches as a whole token run,
    so punctuation next to an abbreviation does not hide it.
    """
    text = normalize(value)
    if not text:
        return set()
    padded = _tokens(text)
    matches = set()
    for alias, full in tables.institution_aliases.items():
        if full in text or _tokens(alias) in padded:
            matches.add(full)
    return matches


def _partial_match(target: str, candidate: str) -> float:
    words = target.split()
    if not words:
        return 0.0
    hits = sum(1 for w in words if len(w) >= _MIN_WORD_LEN and w in candidate)
    return hits / len(words)


def institution_similarity(
    target: str | None,
    candidate_strings: list[str],
    tables: ProximityTables,
) -> float:
    """Score the best match between a target institution and a candidate's education strings.

    1.0 when a candidate string contains the target or both mention a shared
    alias entry; otherwise the best fraction of target words (longer than two
    characters) found in a single candidate string. 0.0 without inputs.
    """
    t = normalize(target)
    if not t or not candidate_strings:
        return 0.0

    target_names = resolve_institution(t, tables)
    best = 0.0
    for raw in candidate_strings:
        candidate = normalize(raw)
        if not candidate:
            continue
        if t in candidate:
            return 1.0
        if target_names & resolve_institution(candidate, tables):
            return 1.0
        best = max(best, _partial_match(t, candidate))
    return best
