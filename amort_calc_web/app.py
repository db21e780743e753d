import io
import logging
import os
from uuid import uuid4

from flask import Flask, Response, redirect, render_template, request, session, url_for

from amort_calc.data_models import LoanParameters
from amort_calc.engine import compare_with_baseline, generate, summarize
from amort_calc.formatter import format_currency
from amort_calc.main import write_csv
from amort_calc.utils import normalize_term, parse_system, parse_vat_base, prepayments_from_form, to_number
from amort_calc_web.form_state_store import create_store_from_env

logger = logging.getLogger(__name__)

DEFAULT_STATE = {
    "principal": "1750000",
    "rate": "11.7",
    "term": "120",
    "system": "annuity",
    "insurance": "1050",
    "admin_fee": "175",
    "vat_pct": "0",
    "vat_base": "none",
    "prepayments": {},
}

SYSTEM_OPTIONS = {
    "annuity": "Annuity (fixed payment)",
    "equal-principal": "Equal principal (fixed amortization)",
}

VAT_BASE_OPTIONS = {
    "none": "None",
    "fees": "Accessories",
    "interest+fees": "Interest + accessories",
}

PREPAYMENT_FIELD_PREFIX = "prepayment_"

MAX_TERM_MONTHS = int(os.getenv("MAX_TERM_MONTHS", "600"))


def _ensure_user_token() -> str:
    token = session.get("user_token")
    if not token:
        token = uuid4().hex
        session["user_token"] = token
        session.modified = True
    return token


def _state_from_form(form, previous: dict) -> dict:
    """Merge submitted fields over the previously saved state.

    Prepayment inputs are only rendered for rows of the current table, so
    entries for installments that were not submitted are carried over.
    """
    state = {key: str(form.get(key, previous.get(key, default))).strip()
             for key, default in DEFAULT_STATE.items() if key != "prepayments"}
    prepayments = dict(previous.get("prepayments") or {})
    for field, value in form.items():
        if not field.startswith(PREPAYMENT_FIELD_PREFIX):
            continue
        installment = field[len(PREPAYMENT_FIELD_PREFIX):]
        if value.strip():
            prepayments[installment] = value.strip()
        else:
            prepayments.pop(installment, None)
    state["prepayments"] = prepayments
    return state


def _sanitize_state(saved: dict) -> dict:
    """Keep only saved fields whose type the form can use.

    Scalar fields must be strings and ``prepayments`` must map installment
    keys to strings or numbers. Anything else is dropped so the defaults apply.
    """
    state = {}
    for key, value in saved.items():
        if key not in DEFAULT_STATE:
            continue
        if key == "prepayments":
            if not isinstance(value, dict):
                logger.warning("Dropping saved prepayments of type %s", type(value).__name__)
                continue
            state[key] = {
                str(k): v for k, v in value.items()
                if isinstance(v, (str, int, float)) and not isinstance(v, bool)
            }
            if len(state[key]) != len(value):
                logger.warning("Dropped %d unusable saved prepayments", len(value) - len(state[key]))
        elif isinstance(value, str):
            state[key] = value
        else:
            logger.warning("Dropping saved %s of type %s", key, type(value).__name__)
    return state


def _state_to_params(state: dict, max_term: int = MAX_TERM_MONTHS) -> LoanParameters:
    return LoanParameters(
        principal=to_number(state.get("principal")),
        annual_rate_pct=to_number(state.get("rate")),
        term_months=min(normalize_term(state.get("term")), max_term),
        system=parse_system(state.get("system") or "annuity"),
        monthly_insurance=to_number(state.get("insurance")),
        monthly_admin_fee=to_number(state.get("admin_fee")),
        vat_pct=to_number(state.get("vat_pct")),
        vat_base=parse_vat_base(state.get("vat_base") or "none"),
        prepayments=prepayments_from_form(state.get("prepayments") or {}),
    )


def _run_analysis(state: dict, max_term: int = MAX_TERM_MONTHS):
    params = _state_to_params(state, max_term)
    rows = generate(params)
    totals = summarize(rows)
    comparison = compare_with_baseline(params)
    logger.debug("Recomputed %d rows for principal %s", len(rows), params.principal)
    return params, rows, totals, comparison


def create_app(database_url: str | None = None) -> Flask:
    app = Flask(__name__)
    app.config["ASSET_VERSION"] = os.environ.get("ASSET_VERSION", "1")
    app.config["CURRENCY_PREFIX"] = os.environ.get("CURRENCY_PREFIX", "$")
    app.config["MAX_TERM_MONTHS"] = MAX_TERM_MONTHS
    app.secret_key = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    store = create_store_from_env(database_url or os.environ.get("FORM_STATE_DATABASE_URL"))
    app.extensions["form_state_store"] = store

    @app.template_filter("currency")
    def currency_filter(value):
        return format_currency(value, prefix=app.config["CURRENCY_PREFIX"])

    def _load_state(user_token: str) -> dict:
        state = dict(DEFAULT_STATE)
        state.update(_sanitize_state(store.load(user_token) or {}))
        return state

    @app.route("/", methods=["GET", "POST"])
    def index():
        user_token = _ensure_user_token()
        state = _load_state(user_token)
        if request.method == "POST":
            state = _state_from_form(request.form, state)
            store.save(user_token, state)

        error = None
        params = rows = totals = comparison = None
        try:
            params, rows, totals, comparison = _run_analysis(state, app.config["MAX_TERM_MONTHS"])
        except ValueError as exc:
            error = str(exc)

        return render_template(
            "index.html",
            state=state,
            params=params,
            rows=rows,
            totals=totals,
            comparison=comparison,
            error=error,
            system_options=SYSTEM_OPTIONS,
            vat_base_options=VAT_BASE_OPTIONS,
            prepayment_prefix=PREPAYMENT_FIELD_PREFIX,
            asset_version=app.config["ASSET_VERSION"],
        )

    @app.get("/export.csv")
    def export_csv():
        state = _load_state(_ensure_user_token())
        try:
            _, rows, _, _ = _run_analysis(state, app.config["MAX_TERM_MONTHS"])
        except ValueError as exc:
            return Response(str(exc), status=400, mimetype="text/plain")
        buffer = io.StringIO()
        write_csv(buffer, rows)
        return Response(
            buffer.getvalue(),
            mimetype="text/csv",
            headers={"Content-Disposition": "attachment; filename=amortization_table.csv"},
        )

    @app.post("/reset")
    def reset_state():
        store.clear(session.get("user_token"))
        return redirect(url_for("index"))

    return app


if __name__ == "__main__":
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))
    print("Starting amortization calculator web app...")
    create_app().run(host="0.0.0.0", port=8710, debug=True)
