"""Tests for the Flask front end and its form state store."""

import csv
import io

import pytest

from amort_calc_web.app import create_app
from amort_calc_web.form_state_store import STATE_KEY, FormStateModel, FormStateStore


@pytest.fixture
def app(database_url):
    app = create_app(database_url)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def _token(client) -> str:
    with client.session_transaction() as sess:
        return sess["user_token"]


class TestIndex:
    def test_default_form(self, client):
        response = client.get("/")
        assert response.status_code == 200
        body = response.get_data(as_text=True)
        assert "Amortization table" in body
        assert "$17,062.50" in body
        assert 'name="prepayment_120"' in body

    def test_post_recomputes_and_persists(self, app, client):
        client.get("/")
        response = client.post(
            "/",
            data={
                "principal": "$1,750,000",
                "rate": "11.7",
                "term": "120",
                "system": "annuity",
                "insurance": "1050",
                "admin_fee": "175",
                "vat_pct": "0",
                "vat_base": "none",
                "prepayment_1": "10,000",
            },
        )
        assert response.status_code == 200
        assert "$10,000.00" in response.get_data(as_text=True)

        state = app.extensions["form_state_store"].load(_token(client))
        assert state["principal"] == "$1,750,000"
        assert state["prepayments"] == {"1": "10,000"}

    def test_state_restored_on_reload(self, client):
        client.post("/", data={"principal": "500000", "term": "24"})
        body = client.get("/").get_data(as_text=True)
        assert 'value="500000"' in body
        assert 'name="prepayment_24"' in body
        assert 'name="prepayment_25"' not in body

    def test_blank_prepayment_removes_entry(self, app, client):
        client.post("/", data={"prepayment_3": "1000"})
        client.post("/", data={"prepayment_3": ""})
        state = app.extensions["form_state_store"].load(_token(client))
        assert state["prepayments"] == {}

    def test_invalid_system_shows_error(self, client):
        response = client.post("/", data={"system": "balloon"})
        assert response.status_code == 200
        assert "Unsupported amortization system" in response.get_data(as_text=True)

    def test_reset(self, app, client):
        client.post("/", data={"principal": "500000"})
        response = client.post("/reset")
        assert response.status_code == 302
        assert app.extensions["form_state_store"].load(_token(client)) is None


class TestCsvExport:
    def test_download(self, client):
        client.post("/", data={"principal": "1000", "rate": "0", "term": "1"})
        response = client.get("/export.csv")
        assert response.status_code == 200
        assert response.mimetype == "text/csv"
        assert "amortization_table.csv" in response.headers["Content-Disposition"]
        rows = list(csv.reader(io.StringIO(response.get_data(as_text=True))))
        assert len(rows) == 2
        assert float(rows[1][4]) == 1000.0


class TestFormStateStore:
    def test_round_trip(self, database_url):
        store = FormStateStore(database_url)
        assert store.load("abc") is None
        store.save("abc", {"principal": "100", "prepayments": {"2": "50"}})
        store.save("abc", {"principal": "200", "prepayments": {}})
        assert store.load("abc") == {"principal": "200", "prepayments": {}}
        assert store.load("other") is None

    def test_clear(self, database_url):
        store = FormStateStore(database_url)
        store.save("abc", {"principal": "100"})
        store.clear("abc")
        assert store.load("abc") is None

    def test_empty_token_is_ignored(self, database_url):
        store = FormStateStore(database_url)
        store.save("", {"principal": "100"})
        assert store.load("") is None

    def test_corrupt_state_is_discarded(self, database_url):
        store = FormStateStore(database_url)
        with store._session_factory() as session:
            session.add(FormStateModel(user_token="abc", state_key=STATE_KEY, state_json="{not json"))
            session.commit()
        assert store.load("abc") is None


class TestSavedStateShape:
    @pytest.mark.parametrize(
        "saved",
        [
            {"prepayments": "abc"},
            {"prepayments": ["1", "2"]},
            {"system": 5},
            {"principal": None, "prepayments": {"1": ["10"], "2": "500"}},
        ],
    )
    def test_wrong_types_fall_back_to_defaults(self, app, client, saved):
        client.get("/")
        app.extensions["form_state_store"].save(_token(client), saved)
        response = client.get("/")
        assert response.status_code == 200
        assert "$17,062.50" in response.get_data(as_text=True)

    def test_usable_prepayments_are_kept(self, app, client):
        client.get("/")
        app.extensions["form_state_store"].save(_token(client), {"prepayments": {"1": ["10"], "2": "500"}})
        body = client.get("/").get_data(as_text=True)
        assert "$500.00" in body


class TestTermCap:
    def test_term_is_capped(self, app, client):
        app.config["MAX_TERM_MONTHS"] = 36
        client.post("/", data={"principal": "100000", "term": "100000000"})
        body = client.get("/").get_data(as_text=True)
        assert 'name="prepayment_36"' in body
        assert 'name="prepayment_37"' not in body
        rows = list(csv.reader(io.StringIO(client.get("/export.csv").get_data(as_text=True))))
        assert len(rows) == 37


class TestMonthlyRateHint:
    def test_shows_monthly_rate(self, client):
        body = client.get("/").get_data(as_text=True)
        assert "Monthly ≈ 0.975%" in body
