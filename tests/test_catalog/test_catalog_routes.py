# tests/test_catalog/test_catalog_routes.py
from __future__ import annotations

from uuid import uuid4

import pytest
from httpx import AsyncClient

BASE = "/api/v1"


# ─────────────────────────────────────────────────────────────
# 🏷️ Genres
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_admin_creates_genre_once(async_client: AsyncClient, admin_auth):
    _, headers = admin_auth

    first = await async_client.post(f"{BASE}/genres", json={"name": "Noir"}, headers=headers)
    second = await async_client.post(f"{BASE}/genres", json={"name": "Noir"}, headers=headers)
    listing = await async_client.get(f"{BASE}/genres")

    assert first.status_code == 201
    assert second.status_code == 409
    assert [g["name"] for g in listing.json()] == ["Noir"]


@pytest.mark.anyio
async def test_non_admin_cannot_manage_genres(async_client: AsyncClient, user_auth):
    _, headers = user_auth

    resp = await async_client.post(f"{BASE}/genres", json={"name": "Noir"}, headers=headers)

    assert resp.status_code == 403


@pytest.mark.anyio
async def test_rename_and_delete_genre(async_client: AsyncClient, admin_auth, create_genre):
    _, headers = admin_auth
    genre = await create_genre("Sci-Fi")
    await create_genre("Western")

    renamed = await async_client.put(f"{BASE}/genres/{genre.id}", json={"name": "Science Fiction"}, headers=headers)
    clash = await async_client.put(f"{BASE}/genres/{genre.id}", json={"name": "Western"}, headers=headers)
    deleted = await async_client.delete(f"{BASE}/genres/{genre.id}", headers=headers)
    missing = await async_client.get(f"{BASE}/genres/{genre.id}")

    assert renamed.json()["name"] == "Science Fiction"
    assert clash.status_code == 409
    assert deleted.status_code == 204
    assert missing.status_code == 404


# ─────────────────────────────────────────────────────────────
# 🎬 Movies
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_admin_creates_movie(async_client: AsyncClient, admin_auth, create_genre):
    _, headers = admin_auth
    genre = await create_genre("Drama")

    resp = await async_client.post(
        f"{BASE}/movies",
        json={"title": "Quiet Rooms", "release_year": 2019, "genre_ids": [str(genre.id)]},
        headers=headers,
    )

    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["average_rating"] == 0.0
    assert [g["name"] for g in body["genres"]] == ["Drama"]


@pytest.mark.anyio
async def test_movie_without_genres_is_rejected(async_client: AsyncClient, admin_auth):
    _, headers = admin_auth

    resp = await async_client.post(f"{BASE}/movies", json={"title": "Orphan"}, headers=headers)

    assert resp.status_code == 400


@pytest.mark.anyio
async def test_movie_with_unknown_genre_is_404(async_client: AsyncClient, admin_auth):
    _, headers = admin_auth

    resp = await async_client.post(
        f"{BASE}/movies", json={"title": "Ghost", "genre_ids": [str(uuid4())]}, headers=headers
    )

    assert resp.status_code == 404


@pytest.mark.anyio
async def test_non_admin_cannot_create_movie(async_client: AsyncClient, user_auth, create_genre):
    _, headers = user_auth
    genre = await create_genre()

    resp = await async_client.post(
        f"{BASE}/movies", json={"title": "Nope", "genre_ids": [str(genre.id)]}, headers=headers
    )

    assert resp.status_code == 403


@pytest.mark.anyio
async def test_list_movies_filters(async_client: AsyncClient, create_genre, create_movie):
    horror = await create_genre("Horror")
    comedy = await create_genre("Romantic Comedy")
    await create_movie("Night Shift", genres=[horror], release_year=1999, description="a haunted hospital")
    await create_movie("Happy Days", genres=[comedy], release_year=2005)
    await create_movie("Midnight Laughs", genres=[horror, comedy], release_year=2005)

    by_genre = await async_client.get(f"{BASE}/movies", params={"genre": "comedy"})
    by_year = await async_client.get(f"{BASE}/movies", params={"year": 2005})
    by_search = await async_client.get(f"{BASE}/movies", params={"search": "HAUNTED"})
    paged = await async_client.get(f"{BASE}/movies", params={"page": 2, "limit": 2})

    assert {m["title"] for m in by_genre.json()["data"]} == {"Happy Days", "Midnight Laughs"}
    assert by_year.json()["total"] == 2
    assert [m["title"] for m in by_search.json()["data"]] == ["Night Shift"]
    assert paged.json()["total_pages"] == 2
    assert len(paged.json()["data"]) == 1


@pytest.mark.anyio
async def test_update_movie_replaces_genres(async_client: AsyncClient, admin_auth, movie, create_genre):
    _, headers = admin_auth
    thriller = await create_genre("Thriller")

    resp = await async_client.put(
        f"{BASE}/movies/{movie.id}",
        json={"title": "Renamed", "genre_ids": [str(thriller.id)]},
        headers=headers,
    )

    assert resp.status_code == 200
    assert resp.json()["title"] == "Renamed"
    assert [g["name"] for g in resp.json()["genres"]] == ["Thriller"]


@pytest.mark.anyio
async def test_delete_movie_cascades_reviews(async_client: AsyncClient, admin_auth, user_auth, movie, store):
    _, admin_headers = admin_auth
    _, user_headers = user_auth
    await async_client.post(
        f"{BASE}/movies/{movie.id}/reviews",
        json={"rating": 5, "title": "meh", "content": "fine"},
        headers=user_headers,
    )

    resp = await async_client.delete(f"{BASE}/movies/{movie.id}", headers=admin_headers)
    gone = await async_client.get(f"{BASE}/movies/{movie.id}")

    assert resp.status_code == 204
    assert gone.status_code == 404
    assert store.reviews == {}


@pytest.mark.anyio
async def test_reviews_of_unknown_movie_is_empty_page(async_client: AsyncClient):
    resp = await async_client.get(f"{BASE}/movies/{uuid4()}/reviews")

    assert resp.status_code == 200
    assert resp.json()["total"] == 0
    assert resp.json()["data"] == []
