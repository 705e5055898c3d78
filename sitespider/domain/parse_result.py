from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Candidate:
    """A URI extracted by a parser, pending scope and dedup evaluation."""

    uri: str
    method: str = "GET"
    params: tuple[tuple[str, str], ...] = ()
    body: Optional[str] = None
    source: str = ""


@dataclass
class ParseResult:
    candidates: list[Candidate] = field(default_factory=list)
    stop_further_parsing: bool = False

    def extend(self, other: "ParseResult") -> None:
        self.candidates.extend(other.candidates)
        self.stop_further_parsing = self.stop_further_parsing or other.stop_further_parsing
