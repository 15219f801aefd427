# -----------------------------------------------------------------------------
# Step trace
# Purpose:
#   Append-only collector for the explanation shown to the student. Entries
#   are either plain sentences or structured rewrite records (factoring,
#   rationalization) that render to a sentence on export.
# -----------------------------------------------------------------------------

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Union, Iterable, Dict, Any

@dataclass
class FactoringStep:
    # One algebraic rewrite: a short pattern label and the before/after forms.
    label: str
    before: str
    after: str
    note: str = ""

    def render(self) -> str:
        text = f"{self.label}: {self.before} = {self.after}"
        return f"{text} ({self.note})" if self.note else text

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "before": self.before, "after": self.after, "note": self.note}


Entry = Union[str, FactoringStep]


class StepTrace:
    def __init__(self): self._entries: List[Entry] = []
    def add(self, text: str): self._entries.append(text)
    def add_record(self, label: str, before: str, after: str, note: str = ""):
        self._entries.append(FactoringStep(label, before, after, note))
    def extend(self, texts: Iterable[Entry]): self._entries.extend(texts)
    def entries(self) -> List[Entry]: return list(self._entries)
    def __len__(self) -> int: return len(self._entries)

    def lines(self) -> List[str]:
        # Export every entry as display text.
        return [e.render() if isinstance(e, FactoringStep) else e for e in self._entries]
