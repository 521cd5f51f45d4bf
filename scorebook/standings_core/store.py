"""
Formula storage interface.

The standings core only ever receives resolved ``Formula`` values. Looking a
formula up (including the shared templates) is the job of a ``FormulaStore``
owned by the application.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from scorebook.standings_core.formula import TEMPLATE_FORMULAS, Formula


class FormulaStore(ABC):
    """Supplies validated formulas by id."""

    @abstractmethod
    def get(self, formula_id: str) -> Optional[Formula]:
        """Return the formula with this id, or None."""
        pass

    @abstractmethod
    def list(self, tournament_id: Optional[str] = None) -> List[Formula]:
        """Formulas available to a tournament, templates included."""
        pass


class InMemoryFormulaStore(FormulaStore):
    """Formula store backed by dictionaries, seeded with the templates."""

    def __init__(self, templates: Iterable[Formula] = TEMPLATE_FORMULAS):
        self._templates: Dict[str, Formula] = {f.id: f for f in templates}
        self._formulas: Dict[str, Formula] = {}
        self._tournaments: Dict[str, str] = {}  # formula id -> tournament id

    def save(self, formula: Formula, tournament_id: Optional[str] = None) -> Formula:
        if formula.id is None:
            raise ValueError("Formula needs an id to be stored")
        if formula.id in self._templates:
            raise ValueError(f"Formula id '{formula.id}' is reserved by a template")
        self._formulas[formula.id] = formula
        if tournament_id is not None:
            self._tournaments[formula.id] = tournament_id
        return formula

    def get(self, formula_id: str) -> Optional[Formula]:
        return self._formulas.get(formula_id) or self._templates.get(formula_id)

    def list(self, tournament_id: Optional[str] = None) -> List[Formula]:
        formulas = [
            formula
            for formula_id, formula in self._formulas.items()
            if tournament_id is None or self._tournaments.get(formula_id) == tournament_id
        ]
        return formulas + list(self._templates.values())
