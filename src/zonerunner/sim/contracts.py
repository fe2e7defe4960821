from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from zonerunner.sim.player import Inventory


@dataclass(frozen=True)
class ItemRequirement:
    item_name: str
    quantity: int

    def __post_init__(self) -> None:
        if not isinstance(self.item_name, str) or not self.item_name:
            raise ValueError("requirement.item_name must be a non-empty string")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity < 0:
            raise ValueError("requirement.quantity must be a non-negative integer")

    def is_met(self, inventory: Inventory) -> bool:
        return inventory.count_named(self.item_name) >= self.quantity


@dataclass
class Contract:
    contract_id: str
    description: str
    requirements: tuple[ItemRequirement, ...]
    completed: bool = False

    def evaluate(self, inventory: Inventory) -> bool:
        self.completed = all(requirement.is_met(inventory) for requirement in self.requirements)
        return self.completed

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.contract_id,
            "description": self.description,
            "requirements": [
                {"item_name": requirement.item_name, "quantity": requirement.quantity}
                for requirement in self.requirements
            ],
            "completed": self.completed,
        }


@dataclass(frozen=True)
class ContractStatus:
    description: str
    completed: bool


@dataclass
class ContractSet:
    """Session contracts in briefing order."""

    contracts: list[Contract] = field(default_factory=list)

    def validate(self, inventory: Inventory) -> list[ContractStatus]:
        return [
            ContractStatus(description=contract.description, completed=contract.evaluate(inventory))
            for contract in self.contracts
        ]

    def reset(self) -> None:
        for contract in self.contracts:
            contract.completed = False

    def all_completed(self) -> bool:
        return bool(self.contracts) and all(contract.completed for contract in self.contracts)

    def to_dict(self) -> list[dict[str, Any]]:
        return [contract.to_dict() for contract in self.contracts]


def default_contracts() -> ContractSet:
    return ContractSet(
        contracts=[
            Contract(
                contract_id="contract_001",
                description="Bring back one Fully Empty from the Zone",
                requirements=(ItemRequirement(item_name="Fully Empty", quantity=1),),
            )
        ]
    )
