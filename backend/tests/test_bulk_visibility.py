from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError

from watchlog.core.enums import GroupOperation
from watchlog.core.exceptions import ValidationException
from watchlog.repositories.watch_repository import WatchRepository
from watchlog.services.bulk_visibility import BulkUpdateResult, BulkVisibilityMutator
from watchlog.services.membership_service import MembershipService
from fakes import StaticMemberships


@pytest.fixture
def setup(db, make_user, make_movie, make_group):
    owner = make_user("owner")
    other = make_user("other")
    friends = make_group(owner, other, name="Friends")
    family = make_group(owner, name="Family")
    strangers = make_group(other, name="Strangers")
    movie = make_movie("Arrival")
    return SimpleNamespace(
        owner=owner, other=other, friends=friends, family=family, strangers=strangers, movie=movie,
        mutator=BulkVisibilityMutator(db, MembershipService(db)),
    )


def reload(db, watch_id):
    db.expire_all()
    return WatchRepository(db).get(watch_id)


def test_replace_with_foreign_watch_in_the_batch(db, setup, make_watch):
    w1 = make_watch(setup.owner, setup.movie)
    w2 = make_watch(setup.other, setup.movie)
    w3 = make_watch(setup.owner, setup.movie, group_ids=[setup.family.id])

    result = setup.mutator.apply(
        setup.owner.id, [w1.id, w2.id, w3.id], False, [setup.friends.id], "replace"
    )

    assert result.success is False
    assert result.updated == 2
    assert result.failed == 1
    assert result.errors == [f"watch {w2.id}: not found or not owned"]
    for watch_id in (w1.id, w3.id):
        watch = reload(db, watch_id)
        assert watch.is_private is False
        assert watch.group_ids == [setup.friends.id]
    untouched = reload(db, w2.id)
    assert untouched.is_private is True
    assert untouched.group_ids == []


def test_add_with_no_groups_fails_per_item_for_private_watch(db, setup, make_watch):
    watch = make_watch(setup.owner, setup.movie)

    result = setup.mutator.apply(setup.owner.id, [watch.id], False, [], "add")

    assert result.updated == 0
    assert result.failed == 1
    assert result.errors == [f"watch {watch.id}: MissingGroups"]
    assert reload(db, watch.id).is_private is True


def test_add_never_removes_existing_shares(db, setup, make_watch):
    watch = make_watch(setup.owner, setup.movie, group_ids=[setup.family.id])

    result = setup.mutator.apply(setup.owner.id, [watch.id], False, [setup.friends.id], "add")

    assert result.success is True
    assert reload(db, watch.id).group_ids == sorted([setup.family.id, setup.friends.id])


def test_add_with_no_new_groups_keeps_a_shared_watch_shared(db, setup, make_watch):
    watch = make_watch(setup.owner, setup.movie, group_ids=[setup.family.id])

    result = setup.mutator.apply(setup.owner.id, [watch.id], False, [], "add")

    assert result.updated == 1
    assert reload(db, watch.id).group_ids == [setup.family.id]


def test_replace_drops_foreign_candidates(db, setup, make_watch):
    watch = make_watch(setup.owner, setup.movie, group_ids=[setup.family.id])

    result = setup.mutator.apply(
        setup.owner.id, [watch.id], False, [setup.friends.id, setup.strangers.id], "replace"
    )

    assert result.updated == 1
    assert reload(db, watch.id).group_ids == [setup.friends.id]


def test_replace_with_only_foreign_candidates_fails_the_item(db, setup, make_watch):
    watch = make_watch(setup.owner, setup.movie, group_ids=[setup.family.id])

    result = setup.mutator.apply(setup.owner.id, [watch.id], False, [setup.strangers.id], "replace")

    assert result.failed == 1
    assert result.errors == [f"watch {watch.id}: MissingGroups"]
    assert reload(db, watch.id).group_ids == [setup.family.id]


def test_going_private_clears_shares_and_ignores_candidates(db, setup, make_watch):
    watch = make_watch(setup.owner, setup.movie, group_ids=[setup.family.id, setup.friends.id])

    result = setup.mutator.apply(setup.owner.id, [watch.id], True, [setup.friends.id], "add")

    assert result.success is True
    stored = reload(db, watch.id)
    assert stored.is_private is True
    assert stored.group_ids == []


def test_counts_always_cover_every_requested_id(db, setup, make_watch):
    mine = make_watch(setup.owner, setup.movie)
    ids = [mine.id, 999, mine.id, -1]

    result = setup.mutator.apply(setup.owner.id, ids, False, [setup.family.id], "replace")

    assert result.updated + result.failed == len(ids)
    assert result.updated == 2
    assert result.errors == ["watch 999: not found or not owned", "watch -1: not found or not owned"]


@pytest.mark.parametrize("watch_ids, operation", [
    ([], "add"),
    (None, "replace"),
    ([1], None),
    ([1], "merge"),
])
def test_request_level_validation_happens_before_any_item(db, setup, make_watch, watch_ids, operation):
    watch = make_watch(setup.owner, setup.movie)
    ids = [watch.id] if watch_ids == [1] else watch_ids

    with pytest.raises(ValidationException):
        setup.mutator.apply(setup.owner.id, ids, True, [], operation)

    assert reload(db, watch.id).is_private is True


def test_memberships_are_read_once_per_call(db, setup, make_watch):
    memberships = StaticMemberships({setup.owner.id: {setup.family.id}})
    mutator = BulkVisibilityMutator(db, memberships)
    watches = [make_watch(setup.owner, setup.movie) for _ in range(3)]

    mutator.apply(setup.owner.id, [w.id for w in watches], False, [setup.family.id], "add")

    assert memberships.calls == 1


def test_store_failure_is_recorded_and_later_items_continue(db, setup, make_watch, monkeypatch):
    w1 = make_watch(setup.owner, setup.movie)
    w2 = make_watch(setup.owner, setup.movie)
    real_save = setup.mutator.watch_repository.save_sharing

    def flaky_save(watch, is_private, group_ids):
        if watch.id == w1.id:
            raise OperationalError("UPDATE watches", {}, Exception("database is locked"))
        return real_save(watch, is_private, group_ids)

    monkeypatch.setattr(setup.mutator.watch_repository, "save_sharing", flaky_save)

    result = setup.mutator.apply(setup.owner.id, [w1.id, w2.id], False, [setup.family.id], "replace")

    assert result.updated == 1
    assert result.errors == [f"watch {w1.id}: update failed"]
    assert reload(db, w2.id).group_ids == [setup.family.id]


def test_load_failure_is_recorded_and_later_items_continue(db, setup, make_watch, monkeypatch):
    w1 = make_watch(setup.owner, setup.movie)
    w2 = make_watch(setup.owner, setup.movie)
    real_get_owned = setup.mutator.watch_repository.get_owned

    def flaky_get_owned(watch_id, owner_id):
        if watch_id == w1.id:
            raise OperationalError("SELECT watches", {}, Exception("connection reset"))
        return real_get_owned(watch_id, owner_id)

    monkeypatch.setattr(setup.mutator.watch_repository, "get_owned", flaky_get_owned)

    result = setup.mutator.apply(setup.owner.id, [w1.id, w2.id], False, [setup.family.id], "replace")

    assert result.updated == 1
    assert result.failed == 1
    assert result.errors == [f"watch {w1.id}: update failed"]
    assert reload(db, w1.id).group_ids == []
    assert reload(db, w2.id).group_ids == [setup.family.id]


def test_compute_shares():
    watch = SimpleNamespace(group_ids=[1, 2])
    compute = BulkVisibilityMutator.compute_shares
    assert compute(watch, True, {3}, GroupOperation.ADD) == set()
    assert compute(watch, False, {3}, GroupOperation.ADD) == {1, 2, 3}
    assert compute(watch, False, {3}, GroupOperation.REPLACE) == {3}


def test_result_success_flag():
    result = BulkUpdateResult(updated=3)
    assert result.success is True
    result.record_failure(7, "MissingGroups")
    assert result.success is False
    assert result.errors == ["watch 7: MissingGroups"]
