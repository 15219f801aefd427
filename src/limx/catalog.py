# -----------------------------------------------------------------------------
# Fundamental-limit catalog
# Purpose: Parse the YAML table of known limits (categories → limits) into
# typed entries and match canonical expressions against them. Matching is
# textual: a pattern must describe the whole canonical string.
# -----------------------------------------------------------------------------

from __future__ import annotations
import re
import yaml
import sympy as sp
from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional, Pattern

from .config import DEFAULT_CATALOG_PATH, DEFAULT_EXAMPLES_PATH
from .types import LimitPoint

# Domain-specific error to signal malformed catalog inputs, missing fields, etc.
class CatalogError(Exception): pass

POINT_TAGS = ("zero", "infinity")

@dataclass
class FundamentalEntry:
    id: str
    name: str
    category: str
    point: str                   # "zero" | "infinity"
    value: str                   # SymPy text, may contain {a}
    patterns: List[Pattern[str]] = field(default_factory=list)
    explanation: str = ""

    def applies_at(self, point: LimitPoint) -> bool:
        if self.point == "zero":
            return not point.is_infinite and point.value == 0.0
        return point.is_infinite

@dataclass
class FundamentalMatch:
    # Entry plus the exact value bound from the matched text
    entry: FundamentalEntry
    value: sp.Expr

@dataclass
class Catalog:
    entries: List[FundamentalEntry]

    @staticmethod
    def from_yaml_dict(d: Dict[str, Any]) -> "Catalog":
        """
        Build a Catalog from a pre-parsed YAML dictionary.
        Expected shape:
          categories:
            trigonometric:
              limits:
                - id: sin_x_over_x
                  name: "sin(x)/x"
                  point: zero | infinity
                  value: "1"          # SymPy expression, may use {a}
                  patterns: ['^...$']  # regexes over the canonical text
                  explanation: "..."
        """
        if not isinstance(d, dict) or "categories" not in d:
            raise CatalogError("Catalog must define a 'categories' mapping")
        entries: List[FundamentalEntry] = []
        for cat_name, cat in (d.get("categories") or {}).items():
            for ld in (cat or {}).get("limits", []):
                try:
                    point = str(ld["point"])
                    patterns = [re.compile(p) for p in ld["patterns"]]
                    entry = FundamentalEntry(
                        id=str(ld["id"]), name=str(ld["name"]), category=cat_name,
                        point=point, value=str(ld["value"]), patterns=patterns,
                        explanation=str(ld.get("explanation", "")),
                    )
                except KeyError as e:
                    raise CatalogError(f"Catalog entry in '{cat_name}' is missing field {e}") from e
                except re.error as e:
                    raise CatalogError(f"Bad pattern in catalog entry {ld.get('id')}: {e}") from e
                if point not in POINT_TAGS:
                    raise CatalogError(f"Unknown point tag {point!r} in entry {entry.id}")
                if not patterns:
                    raise CatalogError(f"Catalog entry {entry.id} has no patterns")
                entries.append(entry)
        return Catalog(entries=entries)

    @staticmethod
    def from_yaml_text(text: str) -> "Catalog":
        return Catalog.from_yaml_dict(yaml.safe_load(text))

    @staticmethod
    def from_file(path: str = DEFAULT_CATALOG_PATH) -> "Catalog":
        with open(path, "r", encoding="utf-8") as f:
            return Catalog.from_yaml_text(f.read())

    def lookup(self, normalized: str, point: LimitPoint) -> Optional[FundamentalMatch]:
        """First entry whose pattern matches the whole canonical text at a compatible point."""
        text = re.sub(r"\s+", "", normalized)
        for entry in self.entries:
            if not entry.applies_at(point):
                continue
            for rx in entry.patterns:
                m = rx.match(text)
                if not m:
                    continue
                groups = m.groupdict()
                # (a^x-1)/x is only fundamental for a positive base
                if "a" in groups and float(groups["a"]) <= 0:
                    continue
                return FundamentalMatch(entry, sp.sympify(entry.value.format(**groups)))
        return None

    def list_entries(self) -> List[Dict[str, Any]]:
        """Flattened, UI-friendly listing of the catalog."""
        return [{
            "id": e.id, "name": e.name, "category": e.category,
            "point": e.point, "value": e.value, "explanation": e.explanation,
        } for e in self.entries]


def load_examples(path: str = DEFAULT_EXAMPLES_PATH) -> List[Dict[str, Any]]:
    """Flatten examples.yaml into [{category, function, point, direction, expected, description}]."""
    with open(path, "r", encoding="utf-8") as f:
        d = yaml.safe_load(f.read()) or {}
    out = []
    for group in d.get("examples", []):
        for item in group.get("items", []):
            out.append({"category": group.get("category", ""), **item})
    return out
