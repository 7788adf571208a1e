from __future__ import annotations

from policyingest.domain.ingest_pipeline import EntityResolutionPhase, PipelineContext
from policyingest.domain.model import Address, Agent, User
from tests.helpers.fake_store import FakeIngestUnitOfWork, FakeStore
from tests.helpers.policy_files import make_batch, make_row


def _context(store: FakeStore) -> PipelineContext:
    return PipelineContext(unit_of_work_factory=lambda: FakeIngestUnitOfWork(store))


def test_known_keys_resolve_and_unknown_keys_are_planned() -> None:
    store = FakeStore()
    known = Agent(name="Known")
    store.add(known)
    context = _context(store)
    batch = make_batch(
        make_row(0, agent="Known"),
        make_row(1, agent="New"),
        make_row(2, agent="New"),
        make_row(3, agent=None),
    )

    EntityResolutionPhase().run(batch, context=context)

    assert context.agents.get("Known") is known
    assert context.agents.existing == 1
    assert [agent.name for agent in context.agents.to_create] == ["New"]
    assert "New" not in context.agents


def test_every_kind_is_resolved() -> None:
    context = _context(FakeStore())

    EntityResolutionPhase().run(make_batch(make_row()), context=context)

    assert [category.category_name for category in context.categories.to_create] == ["Auto"]
    assert [carrier.company_name for carrier in context.carriers.to_create] == [
        "Acme Insurance"
    ]
    assert [user.email for user in context.users.to_create] == ["jane@example.com"]


def test_user_candidate_comes_from_first_row_with_first_name() -> None:
    context = _context(FakeStore())
    batch = make_batch(
        make_row(0, first_name=None, phone="000"),
        make_row(1, first_name="Jane", phone="111"),
        make_row(2, first_name="Janet", phone="222"),
    )

    EntityResolutionPhase().run(batch, context=context)

    (candidate,) = context.users.to_create
    assert isinstance(candidate, User)
    assert (candidate.first_name, candidate.phone) == ("Jane", "111")


def test_email_without_any_first_name_is_incomplete() -> None:
    context = _context(FakeStore())

    EntityResolutionPhase().run(make_batch(make_row(first_name=None)), context=context)

    assert context.users.to_create == []
    assert context.users.incomplete == 1


def test_empty_address_is_not_stored_on_user() -> None:
    context = _context(FakeStore())

    EntityResolutionPhase().run(make_batch(make_row(address=Address())), context=context)

    assert context.users.to_create[0].address is None
