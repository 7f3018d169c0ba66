"""Tests for resolving recipients to device tokens."""

from dataclasses import replace

import pytest

from workforce_portal.services.recipient_resolver import RecipientResolver


class CountingEmployeeService:
    """Employee store double that records each batch lookup."""

    def __init__(self, tokens_by_employee: dict[str, list[str]]):
        self.tokens_by_employee = tokens_by_employee
        self.batches: list[list[str]] = []

    async def get_device_tokens_by_ps_ids(self, db, ps_ids: list[str]) -> dict[str, list[str]]:
        self.batches.append(list(ps_ids))
        return {
            ps_id: self.tokens_by_employee[ps_id]
            for ps_id in ps_ids
            if ps_id in self.tokens_by_employee
        }


@pytest.mark.asyncio
async def test_resolve_partitions_recipients(delivery_config):
    employee_service = CountingEmployeeService({"P1": ["t1", "t2"], "P2": []})
    resolver = RecipientResolver(delivery_config, employee_service)

    resolved = await resolver.resolve(None, "tx-1", ["P1", "P2", "P3"])

    assert resolved.device_tokens == {"P1": ["t1", "t2"]}
    assert resolved.without_tokens == ["P2"]
    assert resolved.unknown == ["P3"]
    assert not resolved.is_empty


@pytest.mark.asyncio
async def test_resolve_looks_up_in_batches(delivery_config):
    """Lookups go out in batches, never one query per employee."""
    ps_ids = [f"P{i}" for i in range(5)]
    employee_service = CountingEmployeeService({ps_id: [f"t-{ps_id}"] for ps_id in ps_ids})
    config = replace(delivery_config, device_token_batch_size=2)
    resolver = RecipientResolver(config, employee_service)

    resolved = await resolver.resolve(None, "tx-1", ps_ids)

    assert employee_service.batches == [["P0", "P1"], ["P2", "P3"], ["P4"]]
    assert len(resolved.device_tokens) == 5


@pytest.mark.asyncio
async def test_resolve_deduplicates_recipients(delivery_config):
    employee_service = CountingEmployeeService({"P1": ["t1"]})
    resolver = RecipientResolver(delivery_config, employee_service)

    resolved = await resolver.resolve(None, "tx-1", ["P1", "P1", "P1"])

    assert employee_service.batches == [["P1"]]
    assert resolved.device_tokens == {"P1": ["t1"]}


@pytest.mark.asyncio
async def test_resolve_nobody_reachable_is_empty(delivery_config):
    resolver = RecipientResolver(delivery_config, CountingEmployeeService({"P1": []}))

    resolved = await resolver.resolve(None, "tx-1", ["P1", "P9"])

    assert resolved.is_empty
    assert resolved.without_tokens == ["P1"]
    assert resolved.unknown == ["P9"]


@pytest.mark.asyncio
async def test_resolve_against_the_employee_store(db_session, delivery_config, seed_employee):
    """Tokens come back newest registration first."""
    await seed_employee("P1", ["old", "middle", "new"])
    await seed_employee("P2")

    resolved = await RecipientResolver(delivery_config).resolve(
        db_session, "tx-1", ["P1", "P2", "P3"]
    )

    assert resolved.device_tokens == {"P1": ["new", "middle", "old"]}
    assert resolved.without_tokens == ["P2"]
    assert resolved.unknown == ["P3"]
