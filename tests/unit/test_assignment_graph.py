"""Tests for AssignmentGraph (accountant <-> client edges)."""

from fiscalhub.application.services.assignment_graph import AssignmentGraph
from fiscalhub.core.constants import (
    ALREADY_LINKED_MESSAGE,
    TABLE_ACCOUNTANT_CLIENTS,
    TABLE_CLIENTS,
    TABLE_PROFILES,
)
from fiscalhub.domain.enums import ErrorKind
from tests.fakes import InMemoryRowStore


def seed_pair(store: InMemoryRowStore) -> tuple[str, str]:
    client = store.seed(TABLE_CLIENTS, name="Acme", cnpj="12345678000195")
    accountant = store.seed(TABLE_PROFILES, email="ana@example.com", full_name="Ana")
    return accountant["id"], client["id"]


async def test_link_creates_one_edge(graph: AssignmentGraph, store: InMemoryRowStore) -> None:
    a, c = seed_pair(store)
    result = await graph.link(a, c)
    assert result.success
    assert result.data.accountant_id == a
    assert result.data.client_id == c
    assert len(store.rows(TABLE_ACCOUNTANT_CLIENTS)) == 1


async def test_second_link_is_conflict(graph: AssignmentGraph, store: InMemoryRowStore) -> None:
    """Linking twice: first succeeds, second fails with the already-linked message."""
    a, c = seed_pair(store)
    assert (await graph.link(a, c)).success
    second = await graph.link(a, c)
    assert not second.success
    assert second.error_kind is ErrorKind.CONFLICT
    assert second.error == ALREADY_LINKED_MESSAGE
    assert len(store.rows(TABLE_ACCOUNTANT_CLIENTS)) == 1


async def test_unique_violation_is_not_retried(
    graph: AssignmentGraph, store: InMemoryRowStore, sleeps: list[float]
) -> None:
    """A backend unique violation renders the already-linked message on the first attempt."""
    a, c = seed_pair(store)
    store.fail_next(TABLE_ACCOUNTANT_CLIENTS, "duplicate key value", "23505")
    result = await graph.link(a, c)
    assert result.error == ALREADY_LINKED_MESSAGE
    assert result.error_code == "23505"
    assert sleeps == []


async def test_link_requires_ids(graph: AssignmentGraph, store: InMemoryRowStore) -> None:
    result = await graph.link("", "c1")
    assert not result.success
    assert store.queries == []


async def test_unlink_is_idempotent(graph: AssignmentGraph, store: InMemoryRowStore) -> None:
    a, c = seed_pair(store)
    await graph.link(a, c)
    assert (await graph.unlink(a, c)).success
    assert (await graph.unlink(a, c)).success
    assert store.rows(TABLE_ACCOUNTANT_CLIENTS) == []


async def test_unlink_not_found_code_is_success(graph: AssignmentGraph, store: InMemoryRowStore) -> None:
    store.fail_next(TABLE_ACCOUNTANT_CLIENTS, "no rows", "PGRST116")
    assert (await graph.unlink("a1", "c1")).success


async def test_unlink_forbidden_fails(graph: AssignmentGraph, store: InMemoryRowStore) -> None:
    store.fail_next(TABLE_ACCOUNTANT_CLIENTS, "permission denied", "42501")
    result = await graph.unlink("a1", "c1")
    assert result.is_forbidden


async def test_link_unlink_link_succeeds(graph: AssignmentGraph, store: InMemoryRowStore) -> None:
    a, c = seed_pair(store)
    assert (await graph.link(a, c)).success
    assert (await graph.unlink(a, c)).success
    assert (await graph.link(a, c)).success


async def test_list_clients_for_accountant(graph: AssignmentGraph, store: InMemoryRowStore) -> None:
    a, c1 = seed_pair(store)
    c2 = store.seed(TABLE_CLIENTS, name="Beta", cnpj="98765432000110")["id"]
    store.seed(TABLE_CLIENTS, name="Unlinked", cnpj="11111111000111")
    await graph.link(a, c1)
    await graph.link(a, c2)

    result = await graph.list_clients_for(a)
    assert result.success
    assert result.count == 2
    # newest edge first
    assert [lc.client_id for lc in result.data] == [c2, c1]
    assert result.data[1].name == "Acme"
    assert result.data[1].to_client().cnpj == "12345678000195"


async def test_list_accountants_for_client(graph: AssignmentGraph, store: InMemoryRowStore) -> None:
    a, c = seed_pair(store)
    await graph.link(a, c)
    result = await graph.list_accountants_for(c)
    assert [la.accountant_id for la in result.data] == [a]
    assert result.data[0].email == "ana@example.com"
    assert result.data[0].full_name == "Ana"


async def test_dangling_edges_are_skipped(graph: AssignmentGraph, store: InMemoryRowStore) -> None:
    """An edge whose client row is gone never appears in a listing."""
    a, c = seed_pair(store)
    store.seed(TABLE_ACCOUNTANT_CLIENTS, accountant_id=a, client_id="deleted-client")
    await graph.link(a, c)
    result = await graph.list_clients_for(a)
    assert [lc.client_id for lc in result.data] == [c]
    assert result.count == 1


async def test_list_with_no_edges_is_empty(graph: AssignmentGraph, store: InMemoryRowStore) -> None:
    result = await graph.list_clients_for("nobody")
    assert result.success
    assert result.data == []
    assert store.calls(TABLE_CLIENTS) == 0


async def test_list_failure_surfaces(graph: AssignmentGraph, store: InMemoryRowStore) -> None:
    a, c = seed_pair(store)
    await graph.link(a, c)
    store.fail_next(TABLE_CLIENTS, "JWT expired", "PGRST301")
    result = await graph.list_clients_for(a)
    assert not result.success
    assert result.data == []
    assert result.is_forbidden


async def test_unlink_all_for_accountant(graph: AssignmentGraph, store: InMemoryRowStore) -> None:
    a, c = seed_pair(store)
    other = store.seed(TABLE_CLIENTS, name="Beta", cnpj="98765432000110")["id"]
    await graph.link(a, c)
    await graph.link(a, other)
    await graph.link("someone-else", c)
    assert (await graph.unlink_all_for_accountant(a)).success
    assert [e["accountant_id"] for e in store.rows(TABLE_ACCOUNTANT_CLIENTS)] == ["someone-else"]
