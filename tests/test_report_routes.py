"""
Tests for the report proxy routes.
"""
from app.core.config import Settings, get_settings
from app.main import app


def test_anonymous_sections_are_always_blurred(client, upstream):
    upstream.add("/property/graphs/avm", body={"estimate": 1})

    response = client.get("/api/property/GANSW1", params={"section": "avm", "blur": "false"})

    assert response.json() == {"data": {"estimate": 1}, "section": "avm"}
    assert upstream.requests[0].url.params["blur"] == "true"


def test_paid_members_see_unblurred_sections(client, upstream, login):
    upstream.add("/suburb_report/graphs/msp/Bondi", body={"house": {}})
    login(plans=["pln_essentials-vb1k04zy"])

    client.get("/api/suburb/Bondi", params={"section": "msp"})

    assert upstream.requests[0].url.params["blur"] == "false"


def test_unknown_section_is_400(client):
    response = client.get("/api/suburb/Bondi", params={"section": "horoscope"})
    assert response.status_code == 400
    assert response.json()["error"] == "Unknown section"


def test_suburb_overview(client, upstream):
    upstream.add("/api/suburb/info", body={"information": {"state": "NSW", "poa": "2026"}})

    response = client.get("/api/suburb/Bondi")

    assert response.json() == {"name": "Bondi", "state": "NSW", "poa": "2026"}
    assert upstream.requests[0].url.params["suburb"] == "Bondi"


def test_suburb_not_found(client, upstream):
    upstream.add("/api/suburb/info", body={"error": "no such suburb"})

    response = client.get("/api/suburb/Atlantis")

    assert response.status_code == 404
    assert response.json()["error"] == "Suburb not found"


def test_property_not_found(client):
    response = client.get("/api/property/GANSW0")
    assert response.status_code == 404
    assert response.json()["error"] == "Property not found"


def test_short_queries_return_empty_results(client, upstream):
    assert client.get("/api/suburb/search", params={"q": "b"}).json() == {"results": []}
    assert client.get("/api/region/search", params={"q": "b"}).json() == {"results": []}
    assert client.get("/api/property/search", params={"q": "12"}).json() == {"suggestions": []}
    assert upstream.requests == []


def test_suburb_search(client, upstream):
    upstream.add("/api/suburb/suburbs", body={"page": 2, "results": [{
        "area_name": "Bondi",
        "area_level": "suburb",
        "information": {"state": "NSW", "poa": "2026", "lga": "Waverley", "sa3": "Eastern Suburbs - North"},
    }]})

    response = client.get("/api/suburb/search", params={"q": "bon", "state": "NSW", "page": 2})

    assert response.json() == {
        "results": [{
            "name": "Bondi",
            "level": "suburb",
            "state": "NSW",
            "postcode": "2026",
            "lga": "Waverley",
            "sa3": "Eastern Suburbs - North",
        }],
        "page": 2,
    }
    params = upstream.requests[0].url.params
    assert (params["suburb"], params["state"], params["page"], params["limit"]) == ("bon", "NSW", "2", "10")


def test_property_search_sample_fallback_is_opt_in(client):
    app.dependency_overrides[get_settings] = lambda: Settings(use_sample_fallback=True)

    response = client.get("/api/property/search", params={"q": "Bondi"})

    assert response.json() == {"suggestions": [{
        "gnaf_id": "GANSW345678901",
        "address": "78 Ocean Drive",
        "suburb": "Bondi",
        "state": "NSW",
        "postcode": "2026",
    }]}


def test_region_overview(client, upstream):
    upstream.add("/api/suburb/suburbs", body={"results": [{"name": "Ryde", "information": {"sa3": "Ryde"}}]})
    upstream.add("/api/suburb/info", body={"information": {"state": "NSW"}})

    response = client.get("/api/region/Ryde")

    assert response.json() == {
        "name": "Ryde",
        "type": "SA3",
        "representativeSuburb": "Ryde",
        "state": "NSW",
        "suburbCount": 1,
    }


def test_region_without_suburbs_is_404(client):
    response = client.get("/api/region/Nowhere")
    assert response.status_code == 404
    assert response.json()["error"] == "Could not find suburbs in this region"


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
