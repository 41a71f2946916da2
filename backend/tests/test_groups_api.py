from datetime import datetime, timedelta

import pytest

BASE = datetime(2024, 5, 1, 19, 30)


@pytest.fixture
def crew(make_user, make_group, make_movie):
    ana = make_user("ana")
    ben = make_user("ben")
    outsider = make_user("outsider")
    group = make_group(ana, ben, name="Weekend")
    side = make_group(ben, name="Aardvarks")
    return ana, ben, outsider, group, side, make_movie("Paprika")


def test_my_groups_with_roles(client, crew, auth_headers):
    ana, ben, _, group, side, _ = crew

    response = client.get("/groups", headers=auth_headers(ben))

    assert response.status_code == 200
    assert [(g["name"], g["role"]) for g in response.json()] == [("Aardvarks", "creator"), ("Weekend", "member")]
    assert client.get("/groups", headers=auth_headers(ana)).json()[0]["id"] == group.id


def test_group_feed_for_member(client, crew, make_watch, auth_headers):
    ana, ben, _, group, _, movie = crew
    shared = make_watch(ana, movie, BASE, rating=8, group_ids=[group.id])
    make_watch(ana, movie, BASE + timedelta(days=1), rating=2)  # private

    response = client.get(f"/groups/{group.id}/feed", headers=auth_headers(ben))

    assert response.status_code == 200
    data = response.json()
    assert data["skip"] == 0
    assert data["take"] == 20
    assert data["hasMore"] is False
    assert [item["id"] for item in data["items"]] == [shared.id]
    item = data["items"][0]
    assert item["username"] == "ana"
    assert item["movie"]["title"] == "Paprika"
    assert item["rating"] == 8


def test_group_feed_for_non_member_is_empty_not_forbidden(client, crew, make_watch, auth_headers):
    ana, _, outsider, group, _, movie = crew
    make_watch(ana, movie, BASE, group_ids=[group.id])

    response = client.get(f"/groups/{group.id}/feed", headers=auth_headers(outsider))
    missing = client.get("/groups/987654/feed", headers=auth_headers(outsider))

    assert response.status_code == 200
    assert response.json()["items"] == []
    assert missing.status_code == 200
    assert missing.json() == response.json()


def test_group_feed_paging(client, crew, make_watch, auth_headers):
    ana, ben, _, group, _, movie = crew
    for day in range(3):
        make_watch(ana, movie, BASE + timedelta(days=day), group_ids=[group.id])

    first = client.get(f"/groups/{group.id}/feed", params={"skip": 0, "take": 2}, headers=auth_headers(ben)).json()
    rest = client.get(f"/groups/{group.id}/feed", params={"skip": 2, "take": 2}, headers=auth_headers(ben)).json()

    assert len(first["items"]) == 2 and first["hasMore"] is True
    assert len(rest["items"]) == 1 and rest["hasMore"] is False
    bad = client.get(f"/groups/{group.id}/feed", params={"take": 0}, headers=auth_headers(ben))
    assert bad.status_code == 400


def test_feed_stats(client, crew, make_watch, auth_headers):
    ana, ben, outsider, group, _, movie = crew
    make_watch(ana, movie, BASE, rating=9, group_ids=[group.id])
    make_watch(ben, movie, BASE + timedelta(days=1), rating=6, group_ids=[group.id])

    data = client.get(f"/groups/{group.id}/feed/stats", headers=auth_headers(ana)).json()

    assert data["groupName"] == "Weekend"
    assert data["totalWatches"] == 2
    assert data["uniqueMovies"] == 1
    assert data["activeMembers"] == 2
    assert data["averageGroupRating"] == 7.5
    assert data["topMovies"][0]["watchedByUsernames"] == ["ben", "ana"]
    assert len(data["watches"]) == 2

    hidden = client.get(f"/groups/{group.id}/feed/stats", headers=auth_headers(outsider)).json()
    assert hidden["totalWatches"] == 0
    assert hidden["topMovies"] == []


def test_combined_feed(client, crew, make_watch, auth_headers):
    ana, ben, outsider, group, side, movie = crew
    in_group = make_watch(ana, movie, BASE, group_ids=[group.id])
    in_side = make_watch(ben, movie, BASE + timedelta(days=1), group_ids=[side.id])

    ben_feed = client.get("/feed", headers=auth_headers(ben)).json()
    ana_feed = client.get("/feed", headers=auth_headers(ana)).json()

    assert [i["id"] for i in ben_feed["items"]] == [in_side.id, in_group.id]
    assert [i["id"] for i in ana_feed["items"]] == [in_group.id]
    assert client.get("/feed", headers=auth_headers(outsider)).json()["items"] == []
