"""
HTTP-level tests. Vendor APIs are mocked with respx; the audit log is a
temporary SQLite database per test (see the client fixture).
"""

import base64
import io
import json

import httpx
import respx

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.5-flash:generateContent"
OPENAI_URL = "https://api.openai.com/v1/chat/completions"
DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"
WEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"


def upload(data, content_type="image/png", name="invoice.png"):
    return {"file": (name, io.BytesIO(data), content_type)}


def flush_audit(client):
    client.app.state.api_logs.flush()


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_parse_rejects_non_image(client):
    r = client.post("/invoices/parse?parser=gemini", files=upload(b"%PDF-1.4", "application/pdf", "a.pdf"))
    assert r.status_code == 400


def test_parse_rejects_empty_upload(client):
    r = client.post("/invoices/parse?parser=gemini", files=upload(b""))
    assert r.status_code == 400


def test_parse_missing_file_returns_422(client):
    r = client.post("/invoices/parse?parser=gemini")
    assert r.status_code == 422


def test_parse_unknown_parser(client, png_bytes):
    r = client.post("/invoices/parse?parser=tesseract", files=upload(png_bytes))
    assert r.status_code == 400
    assert "tesseract" in r.json()["detail"]


def test_parse_unconfigured_provider(client, png_bytes):
    r = client.post("/invoices/parse?parser=azure", files=upload(png_bytes))
    assert r.status_code == 503


def test_parse_gemini_and_browse_audit_log(client, png_bytes, make_gemini_response, sample_invoice_json):
    with respx.mock:
        gemini = respx.post(GEMINI_URL).mock(
            return_value=httpx.Response(200, json=make_gemini_response(f"```json\n{sample_invoice_json}\n```"))
        )
        r = client.post("/invoices/parse?parser=GEMINI", files=upload(png_bytes))

    assert r.status_code == 200
    body = r.json()
    assert body["freightBillNo"] == "FB-1001"
    assert body["amountDue"] == {"currencySymbol": "$", "amount": 1250.5}
    assert body["items"][0]["class"] == "70"
    assert body["modelVersion"] == "gemini-2.5-flash-001"
    assert body["usageMetadata"]["totalTokenCount"] == 1500

    sent = json.loads(gemini.calls.last.request.content)
    inline = sent["contents"][0]["parts"][1]["inlineData"]
    assert inline["mimeType"] == "image/png"
    assert base64.b64decode(inline["data"]) == png_bytes
    assert gemini.calls.last.request.url.params["key"] == "test-gemini-key"

    flush_audit(client)

    recent = client.get("/api-logs/recent").json()
    assert len(recent) == 1
    summary = recent[0]
    assert summary["apiProvider"] == "gemini"
    assert summary["success"] is True
    assert summary["fileName"] == "invoice.png"
    assert summary["fileSize"] == len(png_bytes)
    assert "responseContent" not in summary

    log_id = summary["id"]
    detail = client.get(f"/api-logs/{log_id}").json()
    assert detail["parsedInvoice"]["freightBillNo"] == "FB-1001"
    assert base64.b64decode(detail["imageBase64"]) == png_bytes
    assert json.loads(detail["responseContent"])["modelVersion"] == "gemini-2.5-flash-001"

    image = client.get(f"/api-logs/{log_id}/image")
    assert image.status_code == 200
    assert image.headers["content-type"] == "image/png"
    assert image.content == png_bytes

    assert [log["id"] for log in client.get("/api-logs/provider/gemini").json()] == [log_id]
    assert client.get("/api-logs/provider/openai").json() == []


def test_parse_gemini_invalid_json_is_logged_once(client, png_bytes, make_gemini_response):
    with respx.mock:
        respx.post(GEMINI_URL).mock(
            return_value=httpx.Response(200, json=make_gemini_response('{"freightBillNo": "A1",, }'))
        )
        r = client.post("/invoices/parse?parser=gemini", files=upload(png_bytes))

    assert r.status_code == 422
    flush_audit(client)

    recent = client.get("/api-logs/recent").json()
    assert len(recent) == 1
    assert recent[0]["success"] is False
    assert "Invalid invoice JSON" in recent[0]["errorMessage"]


def test_parse_gemini_upstream_error(client, png_bytes):
    with respx.mock:
        respx.post(GEMINI_URL).mock(return_value=httpx.Response(500, text="internal"))
        r = client.post("/invoices/parse?parser=gemini", files=upload(png_bytes))

    assert r.status_code == 502
    flush_audit(client)
    assert client.get("/api-logs/recent").json()[0]["success"] is False


def test_parse_openai(client, png_bytes, make_openai_response, sample_invoice_json):
    with respx.mock:
        openai = respx.post(OPENAI_URL).mock(
            return_value=httpx.Response(200, json=make_openai_response(f"```json\n{sample_invoice_json}\n```"))
        )
        r = client.post("/invoices/parse?parser=openai", files=upload(png_bytes))

    assert r.status_code == 200
    assert r.json()["invoiceTotal"]["amount"] == 1250.5
    assert r.json()["usageMetadata"]["candidatesTokenCount"] == 250

    request = openai.calls.last.request
    assert request.headers["authorization"] == "Bearer test-openai-key"
    image_url = json.loads(request.content)["messages"][0]["content"][1]["image_url"]["url"]
    assert image_url.startswith("data:image/png;base64,")


def test_log_not_found(client):
    assert client.get("/api-logs/missing").status_code == 404
    assert client.get("/api-logs/missing/image").status_code == 404
    assert client.delete("/api-logs/missing").status_code == 404


def test_delete_logs(client, png_bytes):
    # Two failed attempts still produce two audit records
    with respx.mock:
        respx.post(GEMINI_URL).mock(return_value=httpx.Response(429, text="slow down"))
        client.post("/invoices/parse?parser=gemini", files=upload(png_bytes))
        client.post("/invoices/parse?parser=gemini", files=upload(png_bytes))
    flush_audit(client)

    ids = [log["id"] for log in client.get("/api-logs/recent").json()]
    assert len(ids) == 2

    assert client.delete(f"/api-logs/{ids[0]}").status_code == 204
    assert client.get(f"/api-logs/{ids[0]}").status_code == 404

    r = client.delete("/api-logs")
    assert r.status_code == 200
    assert r.json() == {"deletedCount": 1}


def test_weather_route_requires_origin_and_destination(client):
    r = client.post("/weather-route/forecast", json={"origin": " ", "destination": "Detroit"})
    assert r.status_code == 400


def test_weather_route_forecast(client, make_gemini_response):
    with respx.mock:
        respx.get(DIRECTIONS_URL).mock(return_value=httpx.Response(200, json={
            "status": "OK",
            "routes": [{
                "legs": [{"distance": {"text": "283 mi"}, "duration": {"text": "4 hours 30 mins"}}],
                "overview_polyline": {"points": "_p~iF~ps|U_ulLnnqC"},
            }],
        }))
        weather = respx.get(WEATHER_URL).mock(return_value=httpx.Response(200, json={
            "name": "Somewhere",
            "main": {"temp": -3.0},
            "weather": [{"description": "snow", "icon": "13d"}],
            "snow": {"1h": 1.5},
        }))
        respx.post(GEMINI_URL).mock(
            return_value=httpx.Response(200, json=make_gemini_response("Snow may slow deliveries."))
        )

        r = client.post("/weather-route/forecast", json={"origin": "Chicago", "destination": "Detroit"})

    assert r.status_code == 200
    body = r.json()
    assert body["summary"] == "Snow may slow deliveries."
    assert body["route"]["distance"] == "283 mi"
    assert len(body["route"]["path"]) == 2
    assert weather.call_count == 2
    assert body["weatherPoints"][0]["locationName"] == "Somewhere"
    assert body["weatherPoints"][0]["precipitation"] == 1.5

    # The summary call is audited like any other Gemini call
    flush_audit(client)
    logs = client.get("/api-logs/provider/gemini").json()
    assert len(logs) == 1
    assert logs[0]["success"] is True


def test_weather_route_summary_failure_uses_fallback(client):
    with respx.mock:
        respx.get(DIRECTIONS_URL).mock(return_value=httpx.Response(200, json={
            "status": "OK",
            "routes": [{"legs": [{}], "overview_polyline": {"points": "_p~iF~ps|U"}}],
        }))
        respx.get(WEATHER_URL).mock(return_value=httpx.Response(500, text="down"))
        respx.post(GEMINI_URL).mock(return_value=httpx.Response(503, text="overloaded"))

        r = client.post("/weather-route/forecast", json={"origin": "A", "destination": "B"})

    assert r.status_code == 200
    body = r.json()
    assert body["weatherPoints"] == []
    assert body["summary"].startswith("Unable to generate weather summary")


def test_weather_route_not_found(client):
    with respx.mock:
        respx.get(DIRECTIONS_URL).mock(return_value=httpx.Response(200, json={"status": "ZERO_RESULTS", "routes": []}))
        r = client.post("/weather-route/forecast", json={"origin": "Atlantis", "destination": "Detroit"})

    assert r.status_code == 404
