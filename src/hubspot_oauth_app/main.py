from flask import Blueprint, current_app, redirect, render_template, request, url_for

from .crm import get_contact
from .oauth import ProviderError, get_oauth_client
from .session import get_session_id


main_bp = Blueprint("main", __name__)


@main_bp.route("/")
def index():
    """Status page.

    Shows an install link until this session has completed the OAuth
    flow, and a confirmation afterwards.
    """

    installed = get_oauth_client().is_authorized(get_session_id())
    return render_template("index.html", installed=installed)


@main_bp.route("/error")
def error():
    return render_template("error.html", msg=request.args.get("msg", ""))


@main_bp.route("/webhook", methods=["POST"])
def webhook():
    """Receive CRM event notifications.

    Payloads are logged and acknowledged; unknown or missing event types
    are never rejected.
    """

    payload = request.get_json(silent=True)
    current_app.logger.info("Received webhook payload: %s", payload)

    event_type = payload.get("eventType") if isinstance(payload, dict) else None
    if event_type == "contact_created":
        current_app.logger.info("A new contact was created: %s", payload.get("contact"))
    elif event_type == "contact_updated":
        current_app.logger.info("A contact was updated: %s", payload.get("contact"))
    elif event_type is not None:
        current_app.logger.warning("Unknown event type: %s", event_type)
    else:
        current_app.logger.warning("Webhook payload has no eventType")

    return "Webhook received", 200, {"Content-Type": "text/plain; charset=utf-8"}


@main_bp.route("/contact")
def contact():
    """Diagnostic page showing the first CRM contact."""

    client = get_oauth_client()
    session_id = get_session_id()
    if not client.is_authorized(session_id):
        return redirect(url_for("main.index"))

    access_token = client.get_access_token(session_id)
    if not access_token:
        current_app.logger.info("No access token available after refresh attempt")
        return redirect(url_for("main.error", msg="Unable to obtain an access token"))

    result = get_contact(access_token, current_app.config, http=client.http)
    if isinstance(result, ProviderError):
        return redirect(url_for("main.error", msg=result.message))

    return render_template("contact.html", contact=result)
