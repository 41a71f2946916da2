from datetime import datetime
from types import SimpleNamespace

import pytest

from watchlog.core.exceptions import CatalogUnavailableException, ValidationException
from watchlog.services.group_recommendations_service import GroupRecommendationsService
from watchlog.services.membership_service import MembershipService
from fakes import FakeTMDB

BASE = datetime(2024, 6, 1, 20, 0)


@pytest.fixture
def club(db, make_user, make_group, make_movie, tmdb):
    ana = make_user("ana")
    ben = make_user("ben", share_ratings=False)
    outsider = make_user("outsider")
    group = make_group(ana, ben, name="Movie night")
    return SimpleNamespace(
        ana=ana, ben=ben, outsider=outsider, group=group,
        matrix=make_movie("The Matrix", tmdb_id=603, genres=["Action", "Science Fiction"]),
        heat=make_movie("Heat", tmdb_id=949, genres=["Action", "Crime"]),
        service=GroupRecommendationsService(db, MembershipService(db), tmdb),
    )


def test_recommendations_skip_movies_any_member_watched(club, make_watch):
    # private watches still mark a movie as seen
    make_watch(club.ben, club.matrix, BASE, is_private=True)

    picks = club.service.get_recommendations(club.group.id, club.ana.id)

    assert [m["id"] for m in picks] == [550, 680]


def test_recommendations_respect_count(club):
    picks = club.service.get_recommendations(club.group.id, club.ana.id, count=1)
    assert [m["id"] for m in picks] == [603]
    with pytest.raises(ValidationException):
        club.service.get_recommendations(club.group.id, club.ana.id, count=0)


def test_non_member_gets_nothing(club, tmdb):
    assert club.service.get_recommendations(club.group.id, club.outsider.id) == []
    assert club.service.get_recommendations(987654, club.ana.id) == []
    assert tmdb.popular_calls == 0


def test_catalog_outage(db, club):
    service = GroupRecommendationsService(db, MembershipService(db), FakeTMDB(fail=True))
    with pytest.raises(CatalogUnavailableException):
        service.get_recommendations(club.group.id, club.ana.id)


def test_recommendation_stats(club, make_watch):
    make_watch(club.ana, club.matrix, BASE, rating=9)
    make_watch(club.ana, club.heat, BASE, rating=7)
    make_watch(club.ben, club.heat, BASE, rating=1)

    stats = club.service.get_recommendation_stats(club.group.id, club.ben.id)

    assert stats.group_name == "Movie night"
    assert stats.total_movies_watched == 2
    # ben does not share ratings
    assert stats.average_group_rating == 8.0
    assert stats.top_genres == {"Action": 2, "Crime": 1, "Science Fiction": 1}
    assert stats.preferred_genres == ["Action", "Crime", "Science Fiction"]
    assert [m["id"] for m in stats.recommendations] == [550, 680]


def test_recommendation_stats_for_non_member(club):
    stats = club.service.get_recommendation_stats(club.group.id, club.outsider.id)
    assert stats.group_name == ""
    assert stats.total_movies_watched == 0
    assert stats.recommendations == []


def test_recommendations_endpoint(client, club, make_watch, auth_headers):
    make_watch(club.ana, club.matrix, BASE, group_ids=[club.group.id])

    response = client.get(f"/groups/{club.group.id}/recommendations", headers=auth_headers(club.ben))

    assert response.status_code == 200
    data = response.json()
    assert [m["id"] for m in data] == [550, 680]
    assert data[0]["title"] == "Fight Club"
    assert data[0]["releaseDate"] == "1999-10-15"
    assert data[0]["voteAverage"] == 8.4

    limited = client.get(
        f"/groups/{club.group.id}/recommendations", params={"count": 1}, headers=auth_headers(club.ben)
    )
    assert [m["id"] for m in limited.json()] == [550]
    bad = client.get(f"/groups/{club.group.id}/recommendations", params={"count": 0}, headers=auth_headers(club.ben))
    assert bad.status_code == 400


def test_recommendations_endpoint_for_non_member_is_empty(client, club, auth_headers):
    response = client.get(f"/groups/{club.group.id}/recommendations", headers=auth_headers(club.outsider))
    assert response.status_code == 200
    assert response.json() == []


def test_recommendation_stats_endpoint(client, club, make_watch, auth_headers):
    make_watch(club.ana, club.heat, BASE, rating=6)

    data = client.get(
        f"/groups/{club.group.id}/recommendations/stats", headers=auth_headers(club.ana)
    ).json()

    assert data["groupName"] == "Movie night"
    assert data["totalMoviesWatched"] == 1
    assert data["averageGroupRating"] == 6.0
    assert data["preferredGenres"] == ["Action", "Crime"]
    assert [m["id"] for m in data["recommendations"]] == [603, 550, 680]

    hidden = client.get(
        f"/groups/{club.group.id}/recommendations/stats", headers=auth_headers(club.outsider)
    ).json()
    assert hidden["groupName"] == ""
    assert hidden["recommendations"] == []
