"""Integration tests for the catalogue CRUD endpoints.

Requests go through the full app (middleware, exception handlers, routers)
against an in-memory SQLite database.
"""

import pytest
from httpx import AsyncClient

from services.entity_handler import INTERNAL_ERROR_MESSAGE
from tests.factories import author_payload, book_payload, publisher_payload

pytestmark = pytest.mark.integration


async def _create(client: AsyncClient, resource: str, body: dict) -> dict:
    response = await client.post(f"/api/{resource}", json=body)
    assert response.status_code == 201, response.text
    return response.json()


class TestListEndpoint:
    @pytest.mark.parametrize("resource", ["authors", "publishers", "books"])
    async def test_empty_store_returns_empty_list(self, client: AsyncClient, resource):
        response = await client.get(f"/api/{resource}")

        assert response.status_code == 200
        assert response.json() == []

    async def test_lists_created_rows_in_id_order(self, client: AsyncClient):
        first = await _create(client, "authors", author_payload())
        second = await _create(client, "authors", author_payload())

        response = await client.get("/api/authors")

        assert [a["id"] for a in response.json()] == [first["id"], second["id"]]


class TestGetEndpoint:
    async def test_returns_created_author(self, client: AsyncClient):
        body = author_payload(first_name="Luigi", last_name="Pirandello")
        created = await _create(client, "authors", body)

        response = await client.get(f"/api/authors/{created['id']}")

        assert response.status_code == 200
        assert response.json() == {"id": created["id"], **body}

    async def test_unknown_id_returns_404(self, client: AsyncClient):
        response = await client.get("/api/publishers/99999")

        assert response.status_code == 404
        assert "detail" in response.json()

    async def test_non_integer_id_returns_400(self, client: AsyncClient):
        response = await client.get("/api/books/abc")

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "path.entity_id"

    async def test_read_dto_hides_audit_columns(self, client: AsyncClient):
        created = await _create(client, "publishers", publisher_payload())

        body = (await client.get(f"/api/publishers/{created['id']}")).json()

        assert "created_at" not in body
        assert "updated_at" not in body


class TestCreateEndpoint:
    async def test_returns_201_with_location_header(self, client: AsyncClient):
        response = await client.post("/api/publishers", json=publisher_payload())

        assert response.status_code == 201
        created = response.json()
        assert response.headers["location"] == f"/api/publishers/{created['id']}"

    async def test_book_links_author_and_publisher(self, client: AsyncClient):
        author = await _create(client, "authors", author_payload())
        publisher = await _create(client, "publishers", publisher_payload())

        book = await _create(
            client,
            "books",
            book_payload(author_id=author["id"], publisher_id=publisher["id"]),
        )

        assert book["author_id"] == author["id"]
        assert book["publisher_id"] == publisher["id"]

    async def test_missing_body_returns_400(self, client: AsyncClient):
        response = await client.post("/api/authors")

        assert response.status_code == 400
        assert response.json() == {"detail": "Request body is required."}

    async def test_malformed_json_returns_400(self, client: AsyncClient):
        response = await client.post(
            "/api/authors",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["errors"]

    async def test_invalid_isbn_returns_400_with_field_error(self, client: AsyncClient):
        response = await client.post("/api/books", json=book_payload(isbn="12-34"))

        assert response.status_code == 400
        assert [e["field"] for e in response.json()["errors"]] == ["isbn"]

    async def test_duplicate_isbn_returns_generic_500(self, client: AsyncClient):
        body = book_payload()
        await _create(client, "books", body)

        response = await client.post("/api/books", json=book_payload(isbn=body["isbn"]))

        assert response.status_code == 500
        assert response.json() == {"detail": INTERNAL_ERROR_MESSAGE}

    async def test_unknown_author_reference_returns_500(self, client: AsyncClient):
        response = await client.post("/api/books", json=book_payload(author_id=4242))

        assert response.status_code == 500
        assert (await client.get("/api/books")).json() == []


class TestUpdateEndpoint:
    async def test_replaces_fields_and_returns_204(self, client: AsyncClient):
        created = await _create(client, "authors", author_payload(bio="before"))
        replacement = {
            "id": created["id"],
            "first_name": "Giovanni",
            "last_name": "Verga",
        }

        response = await client.put(f"/api/authors/{created['id']}", json=replacement)

        assert response.status_code == 204
        assert response.content == b""
        stored = (await client.get(f"/api/authors/{created['id']}")).json()
        assert stored == {**replacement, "bio": None}

    async def test_id_mismatch_returns_400_and_keeps_row(self, client: AsyncClient):
        created = await _create(client, "publishers", publisher_payload(name="Bompiani"))

        response = await client.put(
            f"/api/publishers/{created['id']}",
            json={"id": created["id"] + 1, "name": "Changed"},
        )

        assert response.status_code == 400
        stored = (await client.get(f"/api/publishers/{created['id']}")).json()
        assert stored["name"] == "Bompiani"

    async def test_unknown_id_returns_404(self, client: AsyncClient):
        response = await client.put(
            "/api/authors/99999",
            json={"id": 99999, "first_name": "A", "last_name": "B"},
        )

        assert response.status_code == 404

    async def test_book_update_keeps_references(self, client: AsyncClient):
        author = await _create(client, "authors", author_payload())
        book = await _create(client, "books", book_payload(author_id=author["id"]))

        response = await client.put(
            f"/api/books/{book['id']}",
            json={"id": book["id"], "title": "New title", "isbn": book["isbn"]},
        )

        assert response.status_code == 204
        stored = (await client.get(f"/api/books/{book['id']}")).json()
        assert stored["title"] == "New title"
        assert stored["author_id"] == author["id"]


class TestDeleteEndpoint:
    async def test_removes_row_and_returns_204(self, client: AsyncClient):
        created = await _create(client, "authors", author_payload())

        response = await client.delete(f"/api/authors/{created['id']}")

        assert response.status_code == 204
        gone = await client.get(f"/api/authors/{created['id']}")
        assert gone.status_code == 404

    async def test_unknown_id_returns_404(self, client: AsyncClient):
        response = await client.delete("/api/books/99999")

        assert response.status_code == 404

    async def test_zero_id_returns_400(self, client: AsyncClient):
        response = await client.delete("/api/books/0")

        assert response.status_code == 400

    async def test_referenced_author_returns_500_and_survives(
        self, client: AsyncClient
    ):
        author = await _create(client, "authors", author_payload())
        await _create(client, "books", book_payload(author_id=author["id"]))

        response = await client.delete(f"/api/authors/{author['id']}")

        assert response.status_code == 500
        assert response.json() == {"detail": INTERNAL_ERROR_MESSAGE}
        still_there = await client.get(f"/api/authors/{author['id']}")
        assert still_there.status_code == 200


class TestRequestTimingHeaders:
    async def test_every_response_is_tagged(self, client: AsyncClient):
        ok = await client.get("/api/authors")
        missing = await client.get("/api/authors/99999")

        for response in (ok, missing):
            assert response.headers["x-request-id"]
            assert float(response.headers["x-request-duration-ms"]) >= 0
        assert ok.headers["x-request-id"] != missing.headers["x-request-id"]


class TestInputEdges:
    async def test_infinite_price_is_rejected_and_list_still_renders(
        self, client: AsyncClient
    ):
        response = await client.post(
            "/api/books",
            content=b'{"title": "T", "isbn": "9788804668237", "price": 1e309}',
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["errors"]
        listing = await client.get("/api/books")
        assert listing.status_code == 200
        assert listing.json() == []

    @pytest.mark.parametrize("entity_id", [3_000_000_000, 2**63])
    async def test_id_beyond_key_range_is_not_found(
        self, client: AsyncClient, entity_id: int
    ):
        get = await client.get(f"/api/authors/{entity_id}")
        delete = await client.delete(f"/api/authors/{entity_id}")
        put = await client.put(
            f"/api/authors/{entity_id}",
            json={"id": entity_id, "first_name": "A", "last_name": "B"},
        )

        assert (get.status_code, delete.status_code, put.status_code) == (404, 404, 404)
