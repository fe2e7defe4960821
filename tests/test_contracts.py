import pytest

from zonerunner.content.items import ItemType, make_item
from zonerunner.sim.contracts import Contract, ContractSet, ItemRequirement, default_contracts
from zonerunner.sim.player import Inventory


def test_fully_empty_contract_completes_once_item_is_carried() -> None:
    contracts = default_contracts()
    inventory = Inventory()

    assert [status.completed for status in contracts.validate(inventory)] == [False]

    inventory.add_item(make_item(ItemType.FULLY_EMPTY))
    statuses = contracts.validate(inventory)

    assert statuses[0].completed is True
    assert statuses[0].description == "Bring back one Fully Empty from the Zone"
    assert contracts.all_completed() is True


def test_every_requirement_must_be_met() -> None:
    contract = Contract(
        contract_id="c",
        description="Scrap run",
        requirements=(ItemRequirement("Scrap", 2), ItemRequirement("Battery", 1)),
    )
    contracts = ContractSet(contracts=[contract])
    inventory = Inventory(items=[make_item(ItemType.SCRAP), make_item(ItemType.BATTERY)])

    assert contracts.validate(inventory)[0].completed is False

    inventory.add_item(make_item(ItemType.SCRAP))
    assert contracts.validate(inventory)[0].completed is True


def test_reset_clears_completion_without_touching_requirements() -> None:
    contracts = default_contracts()
    contracts.validate(Inventory(items=[make_item(ItemType.FULLY_EMPTY)]))

    contracts.reset()

    assert [contract.completed for contract in contracts.contracts] == [False]
    assert contracts.contracts[0].requirements == (ItemRequirement("Fully Empty", 1),)


def test_requirement_rejects_negative_quantity() -> None:
    with pytest.raises(ValueError, match="quantity"):
        ItemRequirement("Scrap", -1)
