"""Editor-facing definition provider over the resolver and the macro index."""

from __future__ import annotations

from dataclasses import dataclass

from iamc_nav.index import MacroIndex, compute_line_starts
from iamc_nav.patterns import ReferenceMatch, reference_at
from iamc_nav.resolver import AliasMethodResolver, LocatedDefinition

C_FAMILY_EXTENSIONS = (".c", ".cc", ".cpp", ".cxx", ".m", ".mm", ".h", ".hh", ".hpp", ".hxx")


@dataclass(slots=True, frozen=True)
class DefinitionResult:
    """Reference recognised at the cursor and where it is defined."""

    reference: ReferenceMatch
    definition: LocatedDefinition | None

    def to_dict(self) -> dict[str, object]:
        """Return wire representation."""
        return {
            "found": self.definition is not None,
            "reference": {
                "alias": self.reference.alias,
                "method": self.reference.method,
                "origin_start": self.reference.origin_start,
                "origin_end": self.reference.origin_end,
            },
            "location": self.definition.to_dict() if self.definition is not None else None,
        }


class DefinitionProvider:
    """Resolves the reference under a cursor in a C-family document."""

    def __init__(self, resolver: AliasMethodResolver, index: MacroIndex) -> None:
        self._resolver = resolver
        self._index = index

    @staticmethod
    def supports_path(path: str) -> bool:
        """Return True when path is a C-family source or header file."""
        return path.lower().endswith(C_FAMILY_EXTENSIONS)

    async def provide_definition(
        self, path: str, text: str, line: int, character: int
    ) -> DefinitionResult | None:
        """Return the definition for the reference at the cursor, if one is recognised."""
        if not self.supports_path(path):
            return None
        await self._index.build()

        reference = reference_at(text, compute_line_starts(text), line, character)
        if reference is None:
            return None
        preferred = path if reference.prefer_current_file else None
        definition = await self._resolver.locate(reference.alias, reference.method, preferred)
        return DefinitionResult(reference=reference, definition=definition)

    def did_save(self, path: str) -> bool:
        """Invalidate the index when a C-family document is saved."""
        if not self.supports_path(path):
            return False
        self._index.invalidate(path)
        return True
