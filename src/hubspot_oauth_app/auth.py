from flask import Blueprint, current_app, redirect, request, url_for

from .oauth import ProviderError, get_oauth_client
from .session import get_session_id


auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/install")
def install():
    """Send the browser to the provider's authorization page."""

    auth_url = get_oauth_client().build_authorize_url()
    current_app.logger.info("Redirecting to provider authorization page")
    return redirect(auth_url)


@auth_bp.route("/oauth-callback")
def oauth_callback():
    """Handle the redirect from the provider with an authorization code."""

    code = request.args.get("code")
    if not code:
        message = (
            request.args.get("error_description")
            or request.args.get("error")
            or "Missing authorization code"
        )
        current_app.logger.warning("OAuth callback without a code: %s", message)
        return redirect(url_for("main.error", msg=message))

    client = get_oauth_client()
    result = client.exchange_for_tokens(get_session_id(), client.build_auth_code_proof(code))
    if isinstance(result, ProviderError):
        return redirect(url_for("main.error", msg=result.message))

    current_app.logger.info(
        "Stored tokens for session (has_refresh=%s)", bool(result.refresh_token)
    )
    return redirect(url_for("main.index"))
