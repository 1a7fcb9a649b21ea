"""Capital blending across algorithm selections.

Several selections may point at the same dataset file. Their units are summed
so the dataset's trades are scaled once by the combined multiplier, and the
capital requirement is charged once per distinct dataset.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CapitalTable:
    """Read-only per-unit capital requirement and display label per dataset."""
    per_unit: Mapping[str, float]
    display_names: Mapping[str, str]

    @classmethod
    def from_mappings(
        cls,
        per_unit: Mapping[str, float],
        display_names: Mapping[str, str] | None = None,
    ) -> "CapitalTable":
        return cls(
            per_unit=MappingProxyType(dict(per_unit)),
            display_names=MappingProxyType(dict(display_names or {})),
        )

    def requirement(self, dataset_id: str) -> float:
        """Per-unit capital for a dataset; unknown datasets cost nothing."""
        return float(self.per_unit.get(dataset_id, 0.0))

    def display_name(self, dataset_id: str) -> str:
        return self.display_names.get(dataset_id, dataset_id)

    def datasets(self) -> list[dict]:
        return [
            {
                "dataset": dataset_id,
                "name": self.display_name(dataset_id),
                "capitalPerUnit": capital,
            }
            for dataset_id, capital in self.per_unit.items()
        ]


@dataclass(frozen=True)
class AlgorithmSelection:
    """A user-chosen (dataset, units) pair."""
    dataset_id: str
    units: int = 1


@dataclass(frozen=True)
class DatasetAllocation:
    """Blended exposure for one distinct dataset."""
    dataset_id: str
    total_units: int
    base_capital: float


@dataclass(frozen=True)
class CapitalBlend:
    allocations: tuple[DatasetAllocation, ...]
    initial_capital: float

    def units_for(self, dataset_id: str) -> int:
        for alloc in self.allocations:
            if alloc.dataset_id == dataset_id:
                return alloc.total_units
        return 0

    @property
    def dataset_ids(self) -> list[str]:
        return [alloc.dataset_id for alloc in self.allocations]


def blend_capital(
    selections: Iterable[AlgorithmSelection],
    table: CapitalTable,
) -> CapitalBlend:
    """Sum units per distinct dataset and charge its capital requirement once.

    Datasets keep the order in which they were first selected.
    """
    units: dict[str, int] = {}
    for sel in selections:
        units[sel.dataset_id] = units.get(sel.dataset_id, 0) + sel.units

    allocations = []
    for dataset_id, total_units in units.items():
        per_unit = table.requirement(dataset_id)
        if per_unit == 0:
            logger.warning(f"No capital requirement configured for {dataset_id}; contributing 0")
        allocations.append(
            DatasetAllocation(
                dataset_id=dataset_id,
                total_units=total_units,
                base_capital=per_unit * total_units,
            )
        )

    initial_capital = sum(a.base_capital for a in allocations)
    return CapitalBlend(allocations=tuple(allocations), initial_capital=initial_capital)
